"""Error types raised by sfdelta.

Classification gaps are not errors: a path that matches no rule is
reported as an unclassified count by the API layer.
"""

from typing import Optional


class SfDeltaError(RuntimeError):
    """Base class for sfdelta errors."""


class UsageError(SfDeltaError):
    """Raised when command-line arguments are missing or inconsistent."""


class GitError(SfDeltaError):
    """Raised when a git query fails."""


class PipelineError(SfDeltaError):
    """Base class for deploy pipeline stage failures."""


class CollaboratorFailure(PipelineError):
    """An external command exited non-zero.

    The collaborator's own diagnostic output is kept on the exception so the
    CLI can surface it unchanged.
    """

    stage = "external command"

    def __init__(self, exit_code: int, diagnostic: str = "", command: Optional[str] = None):
        self.exit_code = exit_code
        self.diagnostic = diagnostic.strip()
        self.command = command
        message = f"{self.stage} failed with exit code {exit_code}"
        if self.diagnostic:
            message = f"{message}: {self.diagnostic}"
        super().__init__(message)


class RetrievalFailure(CollaboratorFailure):
    stage = "Retrieve"


class DeploymentFailure(CollaboratorFailure):
    stage = "Deploy"


class ArchiveError(PipelineError):
    """Raised when an expected archive is missing or unreadable."""


class ManifestPatchError(PipelineError):
    """Raised when the extracted manifest cannot be stamped with a change-set name."""


class WorkspaceError(PipelineError):
    """Raised when the working directory would overlap the project root."""
