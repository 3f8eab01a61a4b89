"""GitHub API integration service"""

from typing import Optional, TYPE_CHECKING
from urllib.parse import urlparse

import git
from github import Auth, Github, GithubException

from relay_cli.exceptions import ConfigurationMissing, GitHubAPIError, NotAGitRepositoryError
from relay_cli.utils.logging import get_logger

if TYPE_CHECKING:
    from github.Repository import Repository

logger = get_logger(__name__)


def parse_github_repo(remote_url: str) -> Optional[str]:
    """Return ``org/repo`` for a GitHub remote URL, or None for other hosts."""
    if "github.com" not in remote_url:
        return None

    if remote_url.startswith("git@"):
        # Handle SSH URL format (git@github.com:org/repo.git)
        path = remote_url.split("github.com:", 1)[1]
    else:
        # Handle HTTPS URL format (https://github.com/org/repo.git)
        parsed_url = urlparse(remote_url)
        path = parsed_url.path.strip("/")

    if path.endswith(".git"):
        path = path[:-4]
    return path or None


class PullRequestService:
    """Opens pull requests for the branch checked out at ``repo_path``."""

    def __init__(self, repo_path: str, github_token: Optional[str], remote_name: str = "origin"):
        self.repo_path = repo_path
        self.github_token = github_token
        self.remote_name = remote_name
        self.github_repo: Optional[str] = None
        self.github: Optional[Github] = None
        self.gh_repo: Optional["Repository"] = None

    def setup_github_api(self) -> None:
        """Resolve the GitHub repository from the remote and connect."""
        if not self.github_token:
            raise ConfigurationMissing(
                "GitHub token not found", hint="relay config set-key github <token>"
            )

        try:
            remote_url = git.Repo(self.repo_path).remote(self.remote_name).url
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            raise NotAGitRepositoryError(self.repo_path)
        except ValueError:
            raise GitHubAPIError("setup", f"No '{self.remote_name}' remote configured")

        self.github_repo = parse_github_repo(remote_url)
        if self.github_repo is None:
            raise GitHubAPIError("setup", f"Remote {remote_url} is not a GitHub repository")

        try:
            self.github = Github(auth=Auth.Token(self.github_token))
            self.gh_repo = self.github.get_repo(self.github_repo)
        except GithubException as e:
            logger.error(f"[GitHub] Failed to setup GitHub API: {e}")
            raise GitHubAPIError("setup", str(e))

        logger.debug(f"[GitHub] GitHub integration enabled for: {self.github_repo}")

    def create_pull_request(
        self, title: str, body: str, base_branch: str, head_branch: str, draft: bool = False
    ) -> str:
        """Open a pull request and return its URL.

        The head branch must already be pushed to the remote.
        """
        if self.gh_repo is None:
            self.setup_github_api()

        try:
            pr = self.gh_repo.create_pull(
                title=title, body=body, base=base_branch, head=head_branch, draft=draft
            )
        except GithubException as e:
            message = e.data.get("message") if isinstance(e.data, dict) else None
            logger.error(f"[GitHub] Failed to create PR for {head_branch}: {e}")
            raise GitHubAPIError(
                "create_pull_request",
                message or str(e),
                hint=f"git push -u {self.remote_name} {head_branch}",
            )

        logger.info(f"[GitHub] Opened PR #{pr.number} for {head_branch}")
        return pr.html_url

    def close(self) -> None:
        """Close the GitHub API connection to clean up resources."""
        if self.github:
            self.github.close()
            logger.debug("[GitHub] Closed GitHub API connection")
