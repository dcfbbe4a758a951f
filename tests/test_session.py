"""Tests for convcommit.session module."""

import asyncio

import pytest

from convcommit.config import MAX_PARSE_FAILURES
from convcommit.llm.exceptions import (
    BackendSetupError,
    ConfigMissingError,
    ExhaustedError,
    NoBackendEnabledError,
    StreamError,
    TagMissingError,
)
from convcommit.llm_config import LLMConfig
from convcommit.session import (
    CommitMessageSession,
    SessionResult,
    SessionState,
    generate_commit_message,
)

GOOD = ["<Commit>", "feat(auth): implement user logout", "</Commit>"]
BAD = ["Sure! Here is a commit message: feat: something"]


def always(answer):
    calls = []

    def confirm(message):
        calls.append(message)
        return answer

    confirm.calls = calls
    return confirm


class TestHappyPath:
    """Tests for sessions that end in acceptance."""

    @pytest.mark.asyncio
    async def test_accepts_first_message(self, scripted_backend, sample_diff):
        """Test accepting the first well-formed message."""
        backend = scripted_backend([GOOD])
        confirm = always(True)
        session = CommitMessageSession(backend, confirm)

        result = await session.run(sample_diff)

        assert isinstance(result, SessionResult)
        assert result.message == "feat(auth): implement user logout"
        assert result.generations == 1
        assert result.parse_failures == 0
        assert result.rejections == 0
        assert session.state == SessionState.ACCEPTED
        assert confirm.calls == ["feat(auth): implement user logout"]

    @pytest.mark.asyncio
    async def test_reports_state_transitions(self, scripted_backend, sample_diff):
        """Test that every transition is reported in order."""
        states = []
        session = CommitMessageSession(scripted_backend([GOOD]), always(True), on_state=states.append)

        await session.run(sample_diff)

        assert states == [
            SessionState.GENERATING,
            SessionState.PARSED,
            SessionState.AWAITING_CONFIRMATION,
            SessionState.ACCEPTED,
        ]

    @pytest.mark.asyncio
    async def test_async_confirm_callback(self, scripted_backend, sample_diff):
        """Test that confirm may be a coroutine function."""

        async def confirm(message):
            await asyncio.sleep(0)
            return True

        session = CommitMessageSession(scripted_backend([GOOD]), confirm)
        result = await session.run(sample_diff)
        assert result.message == "feat(auth): implement user logout"

    @pytest.mark.asyncio
    async def test_streams_closed_after_each_generation(self, scripted_backend, sample_diff):
        """Test that no producer task outlives its generation."""
        backend = scripted_backend([BAD, GOOD])
        await CommitMessageSession(backend, always(True)).run(sample_diff)
        assert all(stream.closed for stream in backend.streams)


class TestParseFailureBudget:
    """Tests for the parse-failure attempt budget."""

    @pytest.mark.asyncio
    async def test_exhausted_after_three_parse_failures(self, scripted_backend, sample_diff):
        """Test that three unparsable replies exhaust the budget with no 4th request."""
        backend = scripted_backend([BAD, BAD, BAD, GOOD])
        confirm = always(True)
        session = CommitMessageSession(backend, confirm)

        with pytest.raises(ExhaustedError) as exc_info:
            await session.run(sample_diff)

        assert backend.calls == 3
        assert exc_info.value.attempts == MAX_PARSE_FAILURES
        assert isinstance(exc_info.value.__cause__, TagMissingError)
        assert session.state == SessionState.EXHAUSTED
        assert confirm.calls == []

    @pytest.mark.asyncio
    async def test_one_failure_then_success_counts_one(self, scripted_backend, sample_diff):
        """Test that one parse failure followed by a good reply uses one attempt."""
        states = []
        backend = scripted_backend([BAD, GOOD])
        session = CommitMessageSession(backend, always(True), on_state=states.append)

        result = await session.run(sample_diff)

        assert result.parse_failures == 1
        assert result.generations == 2
        assert states[:4] == [
            SessionState.GENERATING,
            SessionState.PARSE_FAILED,
            SessionState.REGENERATING,
            SessionState.GENERATING,
        ]
        assert SessionState.AWAITING_CONFIRMATION in states

    @pytest.mark.asyncio
    async def test_two_failures_then_success(self, scripted_backend, sample_diff):
        """Test that two failures stay within the budget."""
        backend = scripted_backend([BAD, BAD, GOOD])
        result = await CommitMessageSession(backend, always(True)).run(sample_diff)
        assert result.parse_failures == 2
        assert backend.calls == 3

    @pytest.mark.asyncio
    async def test_custom_budget(self, scripted_backend, sample_diff):
        """Test a session with a budget of one."""
        backend = scripted_backend([BAD, GOOD])
        session = CommitMessageSession(backend, always(True), max_parse_failures=1)

        with pytest.raises(ExhaustedError):
            await session.run(sample_diff)
        assert backend.calls == 1


class TestRejection:
    """Tests for operator rejection.

    Rejections never count against the parse-failure budget; only
    unparsable output does.
    """

    @pytest.mark.asyncio
    async def test_accept_on_fifth_generation(self, scripted_backend, sample_diff):
        """Test that four rejections followed by acceptance succeeds."""
        backend = scripted_backend([GOOD] * 5)
        answers = iter([False, False, False, False, True])
        session = CommitMessageSession(backend, lambda message: next(answers))

        result = await session.run(sample_diff)

        assert result.generations == 5
        assert result.rejections == 4
        assert result.parse_failures == 0

    @pytest.mark.asyncio
    async def test_rejections_do_not_consume_budget(self, scripted_backend, sample_diff):
        """Test that rejections mixed with two parse failures still succeed."""
        backend = scripted_backend([BAD, GOOD, GOOD, BAD, GOOD, GOOD])
        answers = iter([False, False, False, True])
        session = CommitMessageSession(backend, lambda message: next(answers))

        result = await session.run(sample_diff)

        assert result.parse_failures == 2
        assert result.rejections == 3
        assert result.generations == 6

    @pytest.mark.asyncio
    async def test_rejection_regenerates_from_scratch(self, scripted_backend, sample_diff):
        """Test that the second message shown comes from a fresh generation."""
        backend = scripted_backend([
            ["<Commit>feat: first</Commit>"],
            ["<Commit>fix: second</Commit>"],
        ])
        answers = iter([False, True])
        shown = []

        def confirm(message):
            shown.append(message)
            return next(answers)

        result = await CommitMessageSession(backend, confirm).run(sample_diff)

        assert shown == ["feat: first", "fix: second"]
        assert result.message == "fix: second"


class TestFatalErrors:
    """Tests for errors that bypass the retry budget."""

    @pytest.mark.asyncio
    async def test_setup_error_propagates(self, scripted_backend, sample_diff):
        """Test that a setup failure is raised without retrying."""
        backend = scripted_backend([BackendSetupError("unauthorized"), GOOD])

        with pytest.raises(BackendSetupError):
            await CommitMessageSession(backend, always(True)).run(sample_diff)
        assert backend.calls == 1

    @pytest.mark.asyncio
    async def test_setup_error_after_parse_failure(self, scripted_backend, sample_diff):
        """Test that a setup failure mid-session is still fatal."""
        backend = scripted_backend([BAD, BackendSetupError("unreachable"), GOOD])

        with pytest.raises(BackendSetupError):
            await CommitMessageSession(backend, always(True)).run(sample_diff)
        assert backend.calls == 2

    @pytest.mark.asyncio
    async def test_stream_error_propagates(self, sample_diff, mocker):
        """Test that a mid-stream failure is fatal."""
        from convcommit.llm.stream import DeltaStream

        async def broken():
            yield "<Commit>feat: "
            raise ConnectionError("connection reset")

        backend = mocker.MagicMock()
        backend.name = "broken"
        backend.generate = mocker.AsyncMock(side_effect=lambda diff, cancel=None: DeltaStream(broken()))

        with pytest.raises(StreamError):
            await CommitMessageSession(backend, always(True)).run(sample_diff)
        assert backend.generate.await_count == 1

    @pytest.mark.asyncio
    async def test_cancelled_generation_is_fatal(self, sample_diff, mocker):
        """Test that cancelling mid-stream ends the session with a cancelled StreamError."""
        from convcommit.llm.stream import DeltaStream

        async def stalled():
            yield "<Commit>"
            await asyncio.sleep(3600)

        backend = mocker.MagicMock()
        backend.name = "stalled"
        backend.generate = mocker.AsyncMock(
            side_effect=lambda diff, cancel=None: DeltaStream(stalled(), cancel=cancel)
        )
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, cancel.set)

        with pytest.raises(StreamError) as exc_info:
            await asyncio.wait_for(
                CommitMessageSession(backend, always(True)).run(sample_diff, cancel=cancel),
                timeout=2,
            )
        assert exc_info.value.cancelled is True


class TestGenerateCommitMessage:
    """Tests for generate_commit_message helper."""

    @pytest.mark.asyncio
    async def test_missing_config(self, sample_diff):
        """Test that a missing config fails fast."""
        with pytest.raises(ConfigMissingError):
            await generate_commit_message(None, sample_diff, always(True))

    @pytest.mark.asyncio
    async def test_no_backend_enabled(self, sample_diff):
        """Test that an all-disabled config fails fast."""
        with pytest.raises(NoBackendEnabledError):
            await generate_commit_message(LLMConfig(), sample_diff, always(True))

    @pytest.mark.asyncio
    async def test_uses_selected_backend(self, scripted_backend, sample_diff, mocker):
        """Test that the selected backend drives the session."""
        backend = scripted_backend([GOOD])
        mocker.patch("convcommit.session.select_backend", return_value=backend)

        message = await generate_commit_message(LLMConfig(), sample_diff, always(True))

        assert message == "feat(auth): implement user logout"
