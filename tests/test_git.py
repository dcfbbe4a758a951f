"""Tests for convcommit.git module."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from convcommit.git import (
    GitError,
    NoStagedChangesError,
    _run_git_command,
    commit_with_message,
    get_repo_root,
    get_staged_diff,
)


class TestRunGitCommand:
    """Tests for _run_git_command function."""

    def test_returns_stripped_stdout(self, mocker):
        """Test successful command returns stdout."""
        mock_run = mocker.patch(
            "convcommit.git.subprocess.run",
            return_value=MagicMock(stdout="output\n"),
        )

        assert _run_git_command(["status"]) == "output"
        assert mock_run.call_args.args[0] == ["git", "status"]

    def test_keeps_stdout_when_not_stripping(self, mocker):
        """Test that strip=False returns stdout unchanged."""
        mocker.patch(
            "convcommit.git.subprocess.run",
            return_value=MagicMock(stdout="  output\n"),
        )

        assert _run_git_command(["status"], strip=False) == "  output\n"

    def test_raises_on_failure(self, mocker):
        """Test that a failing command raises GitError with stderr."""
        mocker.patch(
            "convcommit.git.subprocess.run",
            side_effect=subprocess.CalledProcessError(128, ["git", "status"], stderr="fatal: bad\n"),
        )

        with pytest.raises(GitError) as exc_info:
            _run_git_command(["status"])
        assert "fatal: bad" in str(exc_info.value)

    def test_raises_when_git_missing(self, mocker):
        """Test that a missing git binary raises GitError."""
        mocker.patch("convcommit.git.subprocess.run", side_effect=FileNotFoundError())

        with pytest.raises(GitError) as exc_info:
            _run_git_command(["status"])
        assert "not installed" in str(exc_info.value)


class TestGetRepoRoot:
    """Tests for get_repo_root function."""

    def test_returns_path(self, mocker):
        """Test returning the repository root."""
        mocker.patch("convcommit.git._run_git_command", return_value="/home/user/project")

        assert get_repo_root() == Path("/home/user/project")

    def test_not_a_repo(self, mocker):
        """Test error outside a repository."""
        mocker.patch("convcommit.git._run_git_command", side_effect=GitError("fatal"))

        with pytest.raises(GitError) as exc_info:
            get_repo_root()
        assert "Not in a git repository" in str(exc_info.value)


class TestGetStagedDiff:
    """Tests for get_staged_diff function."""

    def test_returns_diff(self, mocker, sample_diff):
        """Test returning the staged diff."""
        mock_git = mocker.patch("convcommit.git._run_git_command", return_value=sample_diff)

        assert get_staged_diff() == sample_diff
        mock_git.assert_called_once_with(["diff", "--staged"], strip=False)

    def test_nothing_staged(self, mocker):
        """Test that an empty diff raises NoStagedChangesError."""
        mocker.patch("convcommit.git._run_git_command", return_value="")

        with pytest.raises(NoStagedChangesError):
            get_staged_diff()

    def test_keeps_trailing_newline(self, mocker, sample_diff):
        """Test that the diff keeps the trailing newline git prints."""
        diff = sample_diff.rstrip("\n") + "\n"
        mocker.patch(
            "convcommit.git.subprocess.run",
            return_value=MagicMock(stdout=diff),
        )

        result = get_staged_diff()

        assert result == diff
        assert result.endswith("\n")

    def test_whitespace_only_is_nothing_staged(self, mocker):
        """Test that a whitespace-only diff raises NoStagedChangesError."""
        mocker.patch("convcommit.git.subprocess.run", return_value=MagicMock(stdout="\n\n"))

        with pytest.raises(NoStagedChangesError):
            get_staged_diff()

    def test_no_staged_changes_is_git_error(self):
        """Test that NoStagedChangesError is a GitError."""
        assert issubclass(NoStagedChangesError, GitError)


class TestCommitWithMessage:
    """Tests for commit_with_message function."""

    def test_passes_message(self, mocker):
        """Test that the message is passed to git commit -m."""
        mock_git = mocker.patch("convcommit.git._run_git_command", return_value="[main abc1234] fix: x")

        assert commit_with_message("fix: x") == "[main abc1234] fix: x"
        mock_git.assert_called_once_with(["commit", "-m", "fix: x"])
