"""Git helpers used by the CLI.

Contains:
- GitError / NoStagedChangesError
- get_repo_root: Root directory of the current repository
- get_staged_diff: The staged diff sent to the backend
- commit_with_message: Commit the staged changes
"""

import subprocess
from pathlib import Path


class GitError(Exception):
    """Custom exception for git-related errors."""

    pass


class NoStagedChangesError(GitError):
    """Raised when there are no staged changes."""

    pass


def _run_git_command(args: list[str], strip: bool = True) -> str:
    """Run a git command and return its output.

    Args:
        args: List of arguments to pass to git.
        strip: Strip surrounding whitespace from the output.

    Returns:
        The stdout of the git command.

    Raises:
        GitError: If the command fails.
    """
    try:
        result = subprocess.run(
            ["git"] + args,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip() if strip else result.stdout
    except subprocess.CalledProcessError as e:
        raise GitError(f"Git command failed: git {' '.join(args)}\n{(e.stderr or '').strip()}")
    except FileNotFoundError:
        raise GitError("Git is not installed or not in PATH.")


def get_repo_root() -> Path:
    """Get the root directory of the current git repository.

    Raises:
        GitError: If not in a git repository.
    """
    try:
        return Path(_run_git_command(["rev-parse", "--show-toplevel"]))
    except GitError:
        raise GitError("Not in a git repository. Please run this command from within a git repo.")


def get_staged_diff() -> str:
    """Get the diff of the staged changes, byte for byte as git printed it.

    Raises:
        NoStagedChangesError: If nothing is staged.
    """
    diff = _run_git_command(["diff", "--staged"], strip=False)
    if not diff.strip():
        raise NoStagedChangesError("No staged changes found. Stage files with 'git add' first.")
    return diff


def commit_with_message(message: str) -> str:
    """Commit the staged changes with a single-line message.

    Returns:
        The output of git commit.
    """
    return _run_git_command(["commit", "-m", message])
