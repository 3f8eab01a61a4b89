"""Worktree operations service for relay."""

import os
import subprocess
from typing import Any, Dict, List, Optional

import git

from relay_cli.exceptions import (
    BaseBranchNotFoundError,
    BranchExistsError,
    EmptyRepositoryError,
    GitStateError,
    NotAGitRepositoryError,
    StartupScriptError,
    WorktreeCreationError,
    WorktreeRemovalError,
)
from relay_cli.models.worktree import WorktreeInfo
from relay_cli.utils.logging import get_logger

logger = get_logger(__name__)


def git_error_text(error: git.exc.GitCommandError) -> str:
    """Extract a readable message from a GitCommandError."""
    stderr = (getattr(error, "stderr", None) or str(error)).strip()
    status = getattr(error, "status", "unknown")
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:") :].strip().strip("'").strip()
    if stderr:
        return f"{stderr} (exit {status})"
    return f"git exited with code {status}"


def worktree_path_for(repo_path: str, worktree_base: str, branch_name: str) -> str:
    """Target path of the worktree for ``branch_name``: repo/base/branch."""
    return os.path.join(repo_path, worktree_base, branch_name)


class WorktreeManager:
    """Service for managing git worktrees.

    Owns the on-disk side of a catalogued worktree; callers keep the catalog
    in sync. Each call opens a fresh ``git.Repo`` so the manager holds no
    per-repository state.
    """

    def _get_repo(self, repo_path: str) -> git.Repo:
        """Open the repository at ``repo_path``."""
        try:
            return git.Repo(repo_path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            raise NotAGitRepositoryError(repo_path)

    def create_worktree(
        self, repo_path: str, worktree_base: str, branch_name: str, base_branch: str
    ) -> str:
        """Create a worktree with a new branch forked from ``base_branch``.

        Args:
            repo_path: Path to the git repository
            worktree_base: Directory for worktrees, relative to ``repo_path``
            branch_name: New branch to create and check out
            base_branch: Existing branch the new one is based on

        Returns:
            Absolute path of the new worktree
        """
        if not os.path.exists(os.path.join(repo_path, ".git")):
            raise NotAGitRepositoryError(repo_path)
        repo = self._get_repo(repo_path)

        # The base branch cannot root a worktree until something is committed
        if not repo.head.is_valid():
            raise EmptyRepositoryError(repo_path)

        if branch_name in {head.name for head in repo.heads}:
            raise BranchExistsError(branch_name)

        try:
            repo.commit(base_branch)
        except (git.exc.BadName, ValueError) as e:
            raise BaseBranchNotFoundError(base_branch, str(e))

        worktree_path = worktree_path_for(repo_path, worktree_base, branch_name)
        try:
            repo.git.worktree("add", worktree_path, "-b", branch_name, base_branch)
        except git.exc.GitCommandError as e:
            error_msg = git_error_text(e)
            logger.error(f"Failed to create worktree for {branch_name}: {error_msg}")
            if "already exists" in error_msg and "branch" in error_msg:
                raise BranchExistsError(branch_name, error_msg)
            if "invalid reference" in error_msg:
                raise BaseBranchNotFoundError(base_branch, error_msg)
            raise WorktreeCreationError(branch_name, error_msg)

        logger.info(f"Created worktree for {branch_name} at {worktree_path}")
        return worktree_path

    def get_worktree_info(self, repo_path: str) -> List[WorktreeInfo]:
        """Get detailed information about all worktrees of a repository."""
        repo = self._get_repo(repo_path)
        try:
            output = repo.git.worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            raise GitStateError("list_worktrees", message=git_error_text(e))

        worktree_list = _parse_porcelain(output)
        logger.debug(f"Found {len(worktree_list)} worktrees in {repo_path}")
        for wt in worktree_list:
            logger.debug(f"  {wt}")
        return worktree_list

    def list_worktrees(self, repo_path: str) -> List[str]:
        """Absolute paths of all worktrees registered with git."""
        return [wt.path for wt in self.get_worktree_info(repo_path)]

    def find_existing_worktree(self, repo_path: str, branch_name: str) -> Optional[str]:
        """Return the path of a linked worktree already holding ``branch_name``.

        A worktree matches when it has the branch checked out or when its path
        contains the branch name.
        """
        for wt in self.get_worktree_info(repo_path):
            if wt.is_main:
                continue
            if wt.branch_name == branch_name or branch_name in wt.path:
                logger.debug(f"Reusing existing worktree {wt.path} for {branch_name}")
                return wt.path
        return None

    def remove_worktree(self, repo_path: str, worktree_path: str, force: bool = False) -> None:
        """Remove a worktree at the specified path.

        Args:
            repo_path: Path to the owning repository
            worktree_path: Path to the worktree directory
            force: Force removal even if working tree is dirty or locked
        """
        repo = self._get_repo(repo_path)
        args = ["remove", worktree_path]
        if force:
            args.append("--force")

        try:
            repo.git.worktree(*args)
        except git.exc.GitCommandError as e:
            error_msg = git_error_text(e)
            logger.error(f"Failed to remove worktree at {worktree_path}: {error_msg}")
            raise WorktreeRemovalError(worktree_path, error_msg)
        logger.info(f"Removed worktree at {worktree_path}")

    def delete_branch(self, repo_path: str, branch_name: str) -> None:
        """Force-delete a local branch that no worktree has checked out."""
        repo = self._get_repo(repo_path)
        try:
            repo.git.branch("-D", branch_name)
        except git.exc.GitCommandError as e:
            error_msg = git_error_text(e)
            logger.error(f"Failed to delete branch {branch_name}: {error_msg}")
            raise GitStateError("delete_branch", message=error_msg)
        logger.info(f"Deleted branch {branch_name}")

    def prune_worktrees(self, repo_path: str) -> None:
        """Prune worktree metadata whose directories no longer exist."""
        repo = self._get_repo(repo_path)
        try:
            repo.git.worktree("prune")
        except git.exc.GitCommandError as e:
            error_msg = git_error_text(e)
            logger.error(f"Failed to prune worktrees: {error_msg}")
            raise WorktreeRemovalError(repo_path, error_msg, operation="prune_worktrees")
        logger.info(f"Pruned orphaned worktree metadata in {repo_path}")

    def get_current_branch(self, path: str) -> str:
        """Name of the branch checked out at ``path`` (empty when detached)."""
        repo = self._get_repo(path)
        try:
            return repo.git.branch("--show-current").strip()
        except git.exc.GitCommandError as e:
            raise GitStateError("current_branch", message=git_error_text(e))

    def run_startup_scripts(self, worktree_path: str, scripts: List[str]) -> None:
        """Run each configured startup command inside a fresh worktree."""
        for script in scripts:
            logger.info(f"Running startup script in {worktree_path}: {script}")
            try:
                result = subprocess.run(
                    script, shell=True, cwd=worktree_path, capture_output=True, text=True
                )
            except OSError as e:
                raise StartupScriptError(script, f"could not be started: {e}")
            if result.returncode != 0:
                output = (result.stderr or result.stdout).strip()
                raise StartupScriptError(
                    script, f"exited with code {result.returncode}: {output}".rstrip(": ")
                )


def _parse_porcelain(output: str) -> List[WorktreeInfo]:
    """Parse ``git worktree list --porcelain``.

    Format:
        worktree /path/to/worktree
        HEAD commit_sha
        branch refs/heads/branch-name
        (blank line between worktrees)
    """
    worktree_list: List[WorktreeInfo] = []
    current: Dict[str, Any] = {}

    def _flush():
        path = current.get("path", "")
        if path:
            worktree_list.append(
                WorktreeInfo(
                    path=path,
                    branch_name=current.get("branch", ""),
                    commit_sha=current.get("HEAD", ""),
                    is_main=not worktree_list,  # First entry is always the main worktree
                    is_orphaned=not os.path.exists(path),
                )
            )

    for line in output.split("\n"):
        line = line.strip()
        if not line:
            _flush()
            current = {}
            continue

        if line.startswith("worktree "):
            current["path"] = line.split(" ", 1)[1]
        elif line.startswith("HEAD "):
            current["HEAD"] = line.split(" ", 1)[1]
        elif line.startswith("branch "):
            branch_ref = line.split(" ", 1)[1]
            if branch_ref.startswith("refs/heads/"):
                current["branch"] = branch_ref[len("refs/heads/") :]
            else:
                current["branch"] = ""
        elif line.startswith("detached"):
            current["branch"] = ""

    # Handle last entry if no trailing blank line
    _flush()
    return worktree_list
