"""Commit history queries used to annotate commits and pull requests."""

from typing import List, Optional

import git

from relay_cli.constants import (
    EMBEDDED_ISSUE_PATTERN,
    MAX_COAUTHOR_FILES,
    MAX_COAUTHORS,
    MAX_REVIEWER_FILES,
    MAX_REVIEWERS,
)
from relay_cli.exceptions import GitStateError, NotAGitRepositoryError
from relay_cli.services.git.worktrees import git_error_text
from relay_cli.utils.logging import get_logger
from relay_cli.utils.threading import map_concurrently

logger = get_logger(__name__)


def extract_issue_identifier(branch_name: str) -> Optional[str]:
    """Find a tracker identifier embedded in a branch name.

    Matches ``user/ENG-123-description`` and ``eng-123-description``; the
    result is uppercased.
    """
    match = EMBEDDED_ISSUE_PATTERN.search(branch_name or "")
    return match.group(1).upper() if match else None


def _unique(items: List[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


class GitHistory:
    """Read-mostly history queries against one checkout."""

    def __init__(self, repo_path: str):
        """Initialize the history service.

        Args:
            repo_path: Path to the repository or worktree
        """
        self.repo_path = repo_path

    def _get_repo(self) -> git.Repo:
        """Get a fresh git.Repo instance.

        A new instance per call keeps the thread-pool fan-out safe.
        """
        try:
            return git.Repo(self.repo_path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            raise NotAGitRepositoryError(self.repo_path)

    def _run(self, operation: str, *args: str) -> str:
        try:
            return self._get_repo().git.execute(["git", *args])
        except git.exc.GitCommandError as e:
            raise GitStateError(operation, message=git_error_text(e))

    def current_branch(self) -> str:
        return self._run("current_branch", "branch", "--show-current").strip()

    def staged_files(self) -> List[str]:
        output = self._run("staged_files", "diff", "--cached", "--name-only")
        return [line for line in output.splitlines() if line.strip()]

    def staged_diff(self) -> str:
        return self._run("staged_diff", "diff", "--cached")

    def current_author(self) -> str:
        """The configured ``Name <email>`` of the committer."""
        reader = self._get_repo().config_reader()
        name = reader.get_value("user", "name", "")
        email = reader.get_value("user", "email", "")
        return f"{str(name).strip()} <{str(email).strip()}>"

    def recent_authors(self, file_path: str, count: int = 3) -> List[str]:
        """Authors of the last ``count`` commits touching ``file_path``.

        Files without history (new files) yield no authors.
        """
        try:
            output = self._get_repo().git.log(
                "-n", str(count), "--pretty=format:%an <%ae>", "--", file_path
            )
        except git.exc.GitCommandError as e:
            logger.debug(f"No history for {file_path}: {git_error_text(e)}")
            return []
        return [line.strip() for line in output.splitlines() if line.strip()]

    def _authors_of(self, files: List[str], per_file: int) -> List[str]:
        results = map_concurrently(lambda path: self.recent_authors(path, per_file), files)
        return _unique([author for authors in results for author in authors])

    def co_authors(self, files: List[str]) -> List[str]:
        """Recent authors of the staged files, excluding the current user."""
        authors = self._authors_of(files[:MAX_COAUTHOR_FILES], per_file=3)
        me = self.current_author()
        co_authors = [author for author in authors if author != me][:MAX_COAUTHORS]
        logger.debug(f"Co-authors for {len(files)} staged files: {co_authors}")
        return co_authors

    def commits_since(self, base_branch: str) -> List[str]:
        """Subjects of the commits on HEAD that are not on ``base_branch``."""
        output = self._run("log", "log", f"{base_branch}..HEAD", "--pretty=format:%s")
        return [line for line in output.splitlines() if line.strip()]

    def diff_since(self, base_branch: str) -> str:
        return self._run("diff", "diff", f"{base_branch}...HEAD")

    def changed_files_since(self, base_branch: str) -> List[str]:
        output = self._run("diff", "diff", f"{base_branch}...HEAD", "--name-only")
        return [line for line in output.splitlines() if line.strip()]

    def suggest_reviewers(self, files: List[str]) -> List[str]:
        """Most recent authors of the changed files, excluding the current user."""
        authors = self._authors_of(files[:MAX_REVIEWER_FILES], per_file=5)
        me = self.current_author()
        return [author for author in authors if author != me][:MAX_REVIEWERS]

    def commit(self, message: str) -> str:
        """Commit the staged changes and return the new commit sha."""
        repo = self._get_repo()
        try:
            repo.git.commit("-m", message)
        except git.exc.GitCommandError as e:
            raise GitStateError("commit", message=git_error_text(e))
        sha = repo.head.commit.hexsha
        logger.info(f"Created commit {sha[:8]}")
        return sha


def build_commit_message(
    message: str, issue_identifier: Optional[str] = None, co_authors: Optional[List[str]] = None
) -> str:
    """Append the issue link and ``Co-authored-by`` trailers to ``message``."""
    full_message = message.strip()
    if issue_identifier:
        full_message += f"\n\nLinear: {issue_identifier}"
    if co_authors:
        full_message += "\n\n" + "\n".join(f"Co-authored-by: {author}" for author in co_authors)
    return full_message
