"""Shared test fixtures and configuration."""

import asyncio
import tempfile
from pathlib import Path
from typing import Optional

import pytest

from convcommit.config import BackendKind
from convcommit.llm.base import BaseBackend
from convcommit.llm.stream import DeltaStream


class ScriptedBackend(BaseBackend):
    """Backend that replays canned replies, one per generate() call.

    Each reply is a list of deltas, or an exception to raise from generate().
    """

    kind = BackendKind.OLLAMA
    display_name = "Scripted"

    def __init__(self, replies: list):
        super().__init__(model="scripted")
        self.replies = list(replies)
        self.calls = 0
        self.streams: list[DeltaStream] = []

    async def generate(self, diff: str, cancel: Optional[asyncio.Event] = None) -> DeltaStream:
        self.calls += 1
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply

        async def source():
            for delta in reply:
                yield delta

        stream = DeltaStream(source(), cancel=cancel)
        self.streams.append(stream)
        return stream


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config_path(temp_dir, monkeypatch):
    """Point the backend config file at a temporary location."""
    path = temp_dir / ".convcommit" / "llm.config.yaml"
    monkeypatch.setenv("CONVCOMMIT_CONFIG", str(path))
    return path


@pytest.fixture
def credentials_dir(temp_dir, mocker):
    """Point the credentials file at a temporary location."""
    path = temp_dir / "home" / ".convcommit"
    mocker.patch("convcommit.credentials._CREDENTIALS_DIR", path)
    return path


@pytest.fixture
def sample_diff():
    """Sample staged diff for testing."""
    return """diff --git a/auth/session.py b/auth/session.py
index 1234567..abcdefg 100644
--- a/auth/session.py
+++ b/auth/session.py
@@ -10,6 +10,12 @@ class Session:
     def login(self, user):
         self.user = user
+
+    def logout(self):
+        self.user = None
+        self.token = None
"""


@pytest.fixture
def scripted_backend():
    """Factory for ScriptedBackend instances."""
    return ScriptedBackend
