"""Steps shared by the create and open workflows."""

import os
from typing import Optional, Tuple, TYPE_CHECKING

from relay_cli.exceptions import (
    ConfigurationMissing,
    GitStateError,
    NotFoundError,
    RepositoryNotFoundError,
    StartupScriptError,
)
from relay_cli.models.issue import Issue, Team, TrackerContext
from relay_cli.models.repository import Repository
from relay_cli.models.worktree import Worktree
from relay_cli.utils.logging import get_logger

if TYPE_CHECKING:
    from relay_cli.context import RelayContext

logger = get_logger(__name__)


def resolve_repository(ctx: "RelayContext", repo_name: Optional[str] = None) -> Repository:
    """Pick the repository a command operates on.

    An explicit name must exist. Otherwise the catalogued repository (or
    worktree) containing the current directory wins, then a sole repository,
    then the user chooses.
    """
    if ctx.catalog.count_repositories() == 0:
        raise ConfigurationMissing("No repositories found", hint="relay repo add")

    if repo_name:
        repo = ctx.catalog.get_repository_by_name(repo_name)
        if repo is None:
            raise RepositoryNotFoundError(repo_name)
        return repo

    repo = ctx.catalog.find_repository_containing(ctx.cwd)
    if repo is not None:
        logger.debug(f"Using repository {repo.name} containing {ctx.cwd}")
        return repo

    cwd = os.path.abspath(ctx.cwd)
    for wt in ctx.catalog.list_all_worktrees():
        wt_path = os.path.abspath(wt.path)
        if cwd == wt_path or cwd.startswith(wt_path + os.sep):
            logger.debug(f"Using repository {wt.repo_name} of worktree {wt.path}")
            return ctx.catalog.get_repository_by_id(wt.repo_id)

    repos = ctx.catalog.list_repositories()
    if len(repos) == 1:
        return repos[0]

    return ctx.prompter.select(
        "Select a repository", [(f"{r.name} ({r.path})", r) for r in repos]
    )


def select_team(
    ctx: "RelayContext", context: TrackerContext, repo: Repository, team_key: Optional[str] = None
) -> Team:
    """``--team`` key, then the project config's team, then the default team setting, then the first team."""
    if not context.teams:
        raise ConfigurationMissing(
            "No teams found in your Linear workspace. Please create a team first",
            hint="https://linear.app",
        )

    if team_key:
        team = context.find_team(team_key)
        if team is None:
            available = ", ".join(t.key for t in context.teams)
            raise NotFoundError(f'Team "{team_key}" not found. Available teams: {available}')
        return team

    config = ctx.config_for(repo)
    for preferred in (config.default_team if config else None, ctx.settings.default_team_id):
        if preferred:
            team = context.find_team(preferred)
            if team is not None:
                return team
            logger.warning(f"Configured team {preferred} not found; using {context.teams[0].key}")

    return context.teams[0]


def find_or_create_worktree(
    ctx: "RelayContext", repo: Repository, issue: Issue
) -> Tuple[str, bool]:
    """Reuse the git worktree holding the issue branch, or create one.

    Returns the worktree path and whether it was created.
    """
    existing = ctx.worktrees.find_existing_worktree(repo.path, issue.branch_name)
    if existing is not None:
        return existing, False
    return create_worktree_for(ctx, repo, issue), True


def create_worktree_for(ctx: "RelayContext", repo: Repository, issue: Issue) -> str:
    path = ctx.worktrees.create_worktree(
        repo.path, repo.worktree_base, issue.branch_name, ctx.base_branch_for(repo)
    )
    scripts = ctx.startup_scripts_for(repo)
    if scripts:
        try:
            ctx.worktrees.run_startup_scripts(path, scripts)
        except StartupScriptError as e:
            # A half-prepared tree would be reused next time without its scripts
            try:
                ctx.worktrees.remove_worktree(repo.path, path, force=True)
                ctx.worktrees.delete_branch(repo.path, issue.branch_name)
            except GitStateError as cleanup_error:
                logger.warning(f"Could not discard worktree {path}: {cleanup_error}")
                e.hint = f"git worktree remove --force {path}"
            raise
    return path


def persist_worktree(ctx: "RelayContext", repo: Repository, issue: Issue, path: str) -> Worktree:
    """Catalogue the worktree unless its branch is already recorded."""
    existing = ctx.catalog.get_worktree_by_branch(repo.id, issue.branch_name)
    if existing is not None:
        logger.debug(f"Worktree for {issue.branch_name} already catalogued")
        return existing
    return ctx.catalog.create_worktree(
        repo_id=repo.id,
        issue_id=issue.id,
        issue_identifier=issue.identifier,
        issue_title=issue.title,
        branch_name=issue.branch_name,
        path=path,
    )


def worktree_summary(issue: Issue, path: str, editor: str) -> dict:
    return {
        "Issue": f"{issue.identifier} {issue.title}".strip(),
        "URL": issue.url,
        "Branch": issue.branch_name,
        "Worktree": path,
        "Editor": editor,
    }
