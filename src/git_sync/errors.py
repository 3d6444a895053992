"""Exception hierarchy for git-sync.

Only ``SyncStepError`` is recoverable: the loop counts it and tries again on
the next iteration. Every other error terminates the process.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .git_wrapper import CommandResult


class GitSyncError(Exception):
    """Base class for all git-sync errors."""


class ConfigurationError(GitSyncError):
    """Required configuration is missing or malformed."""


class ToolNotFoundError(GitSyncError):
    """The git executable is not available on PATH."""


class CredentialSetupError(GitSyncError):
    """The git credential cache could not be primed."""


class CommandError(GitSyncError):
    """An external command exited with a non-zero status.

    Attributes:
        result (CommandResult): The argument vector, exit status and
            combined output of the failed invocation.
    """

    def __init__(self, result: "CommandResult"):
        self.result = result
        super().__init__(
            f"error running command {result.command_line!r}: "
            f"exit status {result.returncode}: {result.output.strip()}"
        )


class SyncStepError(GitSyncError):
    """A single step of one sync iteration failed.

    Attributes:
        step (str): The step that failed (e.g. 'clone', 'pull', 'callback').
    """

    def __init__(self, step: str, message: str):
        self.step = step
        super().__init__(f"{step} failed: {message}")


class FailureLimitExceeded(GitSyncError):
    """Too many consecutive sync iterations have failed."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"error limit of {limit} exceeded")
