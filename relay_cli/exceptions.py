"""Custom exceptions for relay"""

from typing import Optional


class RelayError(Exception):
    """Base exception for all relay errors.

    ``hint`` is the next command a user can run to fix the problem.
    """

    hint: Optional[str] = None

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        if hint is not None:
            self.hint = hint
        super().__init__(message)


class ConfigurationMissing(RelayError):
    """Raised when keys, configuration or repositories are missing."""

    hint = "relay setup"


class NotFoundError(RelayError):
    """Raised when a catalog or tracker lookup misses."""


class RepositoryNotFoundError(NotFoundError):
    """Exception raised when a repository is not in the catalog."""

    hint = "relay repo list"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Repository not found: {name}")


class IssueNotFoundError(NotFoundError):
    """Exception raised when the tracker has no such issue."""

    def __init__(self, identifier: str, message: Optional[str] = None):
        self.identifier = identifier
        super().__init__(message or f"Issue {identifier} not found")


class WorktreeNotFoundError(NotFoundError):
    """Exception raised when no worktree is catalogued for an issue."""

    hint = "relay list"

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Worktree not found: {identifier}")


class ConflictError(RelayError):
    """Raised when a unique catalog field is already taken."""


class GitStateError(RelayError):
    """Exception raised for errors in git operations.

    Mirrors the operation-aware messages of the git layer: the failing
    operation, the branch involved and the underlying git output.
    """

    def __init__(
        self,
        operation: str,
        branch: Optional[str] = None,
        message: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.operation = operation
        self.branch = branch
        self.detail = message

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg, hint)


class NotAGitRepositoryError(GitStateError):
    """Exception raised when a path is not a git repository."""

    def __init__(self, path: str):
        self.path = path
        super().__init__("open_repository", message=f"{path} is not a git repository")


class EmptyRepositoryError(GitStateError):
    """Exception raised when a repository has no commits yet."""

    hint = 'git add . && git commit -m "Initial commit"'

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            "create_worktree",
            message=f"Git repository at {path} has no commits. Please make an initial commit first",
        )


class BranchExistsError(GitStateError):
    """Exception raised when the worktree branch name is already taken."""

    def __init__(self, branch: str, stderr: Optional[str] = None):
        self.stderr = stderr
        super().__init__("create_worktree", branch, f"Branch {branch} already exists")


class BaseBranchNotFoundError(GitStateError):
    """Exception raised when the base branch for a new worktree is invalid."""

    hint = "relay config show"

    def __init__(self, base_branch: str, stderr: Optional[str] = None):
        self.base_branch = base_branch
        self.stderr = stderr
        super().__init__(
            "create_worktree",
            message=f"Base branch '{base_branch}' does not exist. Please check your config",
        )


class WorktreeCreationError(GitStateError):
    """Exception raised for any other failure of ``git worktree add``."""

    def __init__(self, branch: str, stderr: str):
        self.stderr = stderr
        super().__init__("create_worktree", branch, stderr)


class WorktreeRemovalError(GitStateError):
    """Exception raised when git refuses to remove or prune a worktree."""

    def __init__(self, path: str, stderr: str, operation: str = "remove_worktree"):
        self.path = path
        self.stderr = stderr
        super().__init__(operation, message=stderr)


class StartupScriptError(GitStateError):
    """Exception raised when a worktree startup script exits non-zero."""

    def __init__(self, script: str, message: str):
        self.script = script
        super().__init__("startup_script", message=f"'{script}' {message}")


class ExternalServiceError(RelayError):
    """Exception raised when a remote service call fails."""

    service = "service"

    def __init__(self, operation: str, message: Optional[str] = None, hint: Optional[str] = None):
        self.operation = operation
        self.detail = message

        error_msg = f"{self.service} operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg, hint)


class TrackerError(ExternalServiceError):
    """Exception raised for errors in Linear API operations."""

    service = "Linear"


class GeneratorError(ExternalServiceError):
    """Exception raised for errors in AI generation requests."""

    service = "AI"


class GitHubAPIError(ExternalServiceError):
    """Exception raised for errors in GitHub API operations."""

    service = "GitHub API"


class EditorLaunchError(RelayError):
    """Exception raised when the editor binary is missing or fails."""

    hint = "relay config set-editor <vscode|cursor|zed>"


class WorkflowCancelled(RelayError):
    """Raised when the user aborts a workflow."""

    def __init__(self, message: str = "Operation cancelled by user"):
        super().__init__(message)
