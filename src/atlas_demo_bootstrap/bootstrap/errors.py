"""Error taxonomy for the bootstrap run.

Fatal errors derive from `BootstrapError` and stop the run at the current stage.
Recoverable conditions (label already present, issue template missing) are
handled where they occur and never reach the orchestrator.
"""

from __future__ import annotations


class BootstrapError(Exception):
    """Base class for errors that abort a bootstrap run."""


class ProjectReferenceError(BootstrapError, ValueError):
    """The template project reference is neither a number nor a `/projects/<n>` URL."""


class StageFieldError(BootstrapError):
    """The reconciled Stage field lacks its default option."""


class IssueSeedingError(BootstrapError):
    """Neither the template nor the inline path produced an issue."""


class StageAssignmentError(BootstrapError):
    """Setting the Stage value on the project item failed (strict mode only)."""


class RemoteOperationError(BootstrapError):
    """A GitHub call failed. `operation` names the client method that failed."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message


class RemoteUnavailableError(RemoteOperationError):
    """GitHub could not be reached (timeout or connection failure)."""


class IssueTemplateNotFound(RemoteOperationError):
    """The requested issue template does not exist in the repository."""
