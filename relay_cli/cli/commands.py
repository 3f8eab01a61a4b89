"""Handlers for each relay subcommand.

Every handler takes the parsed arguments and a ``RelayContext`` and returns
the process exit code.
"""

import argparse
import os
from typing import Optional

import git

from relay_cli.config import RelayConfig, save_config
from relay_cli.constants import (
    DEFAULT_BASE_BRANCH,
    DEFAULT_WORKTREE_BASE,
    EDITOR_CHOICES,
    FALLBACK_EDITOR,
    KEY_NAMES,
    SETTING_DEFAULT_EDITOR,
    SETTING_DEFAULT_TEAM,
    SETTING_GITHUB_TOKEN,
    SETTING_LINEAR_KEY,
    SETTING_OPENROUTER_KEY,
)
from relay_cli.context import RelayContext
from relay_cli.exceptions import (
    ConfigurationMissing,
    NotAGitRepositoryError,
    RelayError,
    RepositoryNotFoundError,
)
from relay_cli.utils.logging import get_logger
from relay_cli.workflows import (
    CleanupWorkflow,
    CommitWorkflow,
    CreateWorkflow,
    IssueReference,
    OpenWorkflow,
    PullRequestWorkflow,
    ReopenWorkflow,
    WorkflowResult,
    classify_input,
)

logger = get_logger(__name__)


def report(ctx: RelayContext, result: WorkflowResult) -> int:
    """Print a workflow's outcome and map it to an exit code."""
    if result.ok:
        ctx.display.display_success(result.headline, result.summary)
        return 0
    ctx.display.display_error(result.error)
    return 1


def _git_toplevel(path: str) -> str:
    try:
        return git.Repo(path, search_parent_directories=True).working_tree_dir
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        raise NotAGitRepositoryError(path)


# Workflows


def cmd_run(args: argparse.Namespace, ctx: RelayContext) -> int:
    """``relay <task-or-issue-id>``: issue identifiers open, anything else creates."""
    routed = classify_input(" ".join(args.input))
    if isinstance(routed, IssueReference):
        logger.debug(f"Routing {routed.identifier} to open")
        return report(ctx, OpenWorkflow(ctx, routed.identifier, repo_name=args.repo).run())
    logger.debug("Routing task description to create")
    return report(ctx, CreateWorkflow(ctx, routed.text, args.repo, args.team).run())


def cmd_create(args: argparse.Namespace, ctx: RelayContext) -> int:
    return report(ctx, CreateWorkflow(ctx, " ".join(args.task), args.repo, args.team).run())


def cmd_switch(args: argparse.Namespace, ctx: RelayContext) -> int:
    return report(ctx, OpenWorkflow(ctx, None, repo_name=args.repo).run())


def cmd_open(args: argparse.Namespace, ctx: RelayContext) -> int:
    return report(ctx, ReopenWorkflow(ctx, args.issue_id).run())


def cmd_cleanup(args: argparse.Namespace, ctx: RelayContext) -> int:
    return report(ctx, CleanupWorkflow(ctx, args.issue_id, force=args.force).run())


def cmd_commit(args: argparse.Namespace, ctx: RelayContext) -> int:
    return report(ctx, CommitWorkflow(ctx).run())


def cmd_pr(args: argparse.Namespace, ctx: RelayContext) -> int:
    return report(ctx, PullRequestWorkflow(ctx, args.base, draft=args.draft).run())


# Catalog listings


def cmd_list(args: argparse.Namespace, ctx: RelayContext) -> int:
    repo_id = None
    if args.repo:
        repo = ctx.catalog.get_repository_by_name(args.repo)
        if repo is None:
            raise RepositoryNotFoundError(args.repo)
        repo_id = repo.id
    ctx.display.display_worktrees(ctx.catalog.list_all_worktrees(repo_id))
    return 0


def cmd_prune(args: argparse.Namespace, ctx: RelayContext) -> int:
    """Prune git metadata and drop catalog rows whose directory is gone."""
    if args.repo:
        repo = ctx.catalog.get_repository_by_name(args.repo)
        if repo is None:
            raise RepositoryNotFoundError(args.repo)
        repos = [repo]
    else:
        repos = ctx.catalog.list_repositories()

    removed = 0
    for repo in repos:
        if not os.path.isdir(repo.path):
            ctx.console.print(f"[yellow]Skipping {repo.name}: {repo.path} does not exist[/yellow]")
            continue
        ctx.worktrees.prune_worktrees(repo.path)
        for wt in ctx.catalog.list_worktrees_by_repo(repo.id):
            if not os.path.isdir(wt.path):
                ctx.catalog.delete_worktree(wt.id)
                ctx.console.print(f"  Removed {wt.issue_identifier} ({wt.path})")
                removed += 1

    ctx.display.display_success(
        "Pruned worktrees", {"Repositories": str(len(repos)), "Entries removed": str(removed)}
    )
    return 0


# relay repo ...


def cmd_repo_add(args: argparse.Namespace, ctx: RelayContext) -> int:
    path = os.path.abspath(args.path or ctx.cwd)
    if not os.path.exists(os.path.join(path, ".git")):
        raise NotAGitRepositoryError(path)
    name = args.name or os.path.basename(path.rstrip(os.sep))
    repo = ctx.catalog.create_repository(
        name, path, worktree_base=args.worktree_base, editor=args.editor
    )
    ctx.display.display_success(
        f"Repository {repo.name} added",
        {"Path": repo.path, "Worktree base": repo.worktree_base, "Editor": repo.editor or ""},
    )
    return 0


def cmd_repo_list(args: argparse.Namespace, ctx: RelayContext) -> int:
    repos = ctx.catalog.list_repositories()
    counts = {repo.id: ctx.catalog.count_worktrees(repo.id) for repo in repos}
    ctx.display.display_repositories(repos, counts)
    return 0


def cmd_repo_remove(args: argparse.Namespace, ctx: RelayContext) -> int:
    repo = ctx.catalog.delete_repository_by_name(args.name)
    ctx.display.display_success(f"Repository {repo.name} removed", {"Path": repo.path})
    ctx.console.print("[dim]Worktree directories on disk were left untouched.[/dim]")
    return 0


def cmd_repo_edit(args: argparse.Namespace, ctx: RelayContext) -> int:
    repo = ctx.catalog.get_repository_by_name(args.name)
    if repo is None:
        raise RepositoryNotFoundError(args.name)
    if not args.editor and not args.worktree_base:
        raise RelayError(
            "No changes specified", hint=f"relay repo edit {args.name} --editor <editor>"
        )
    repo = ctx.catalog.update_repository(
        repo.id, editor=args.editor, worktree_base=args.worktree_base
    )
    ctx.display.display_success(
        f"Repository {repo.name} updated",
        {"Editor": repo.editor or "", "Worktree base": repo.worktree_base},
    )
    return 0


# relay config ...


def cmd_config_show(args: argparse.Namespace, ctx: RelayContext) -> int:
    ctx.display.display_settings(ctx.settings.all(), ctx.config)
    return 0


def cmd_config_set_key(args: argparse.Namespace, ctx: RelayContext) -> int:
    value = args.value.strip()
    if not value:
        raise RelayError("Key cannot be empty")
    ctx.settings.set(KEY_NAMES[args.key_name], value)
    ctx.display.display_success(f"{args.key_name} key saved", {})
    return 0


def cmd_config_set_editor(args: argparse.Namespace, ctx: RelayContext) -> int:
    ctx.settings.set(SETTING_DEFAULT_EDITOR, args.editor)
    ctx.display.display_success("Default editor saved", {"Editor": args.editor})
    if not ctx.editor.is_available(args.editor):
        ctx.console.print(f"[yellow]Warning: {args.editor} was not found in PATH[/yellow]")
    return 0


def cmd_config_set_team(args: argparse.Namespace, ctx: RelayContext) -> int:
    ctx.settings.set(SETTING_DEFAULT_TEAM, args.team)
    ctx.display.display_success("Default team saved", {"Team": args.team})
    return 0


# relay setup


def cmd_setup(args: argparse.Namespace, ctx: RelayContext) -> int:
    """Interactive first-time setup: keys, editor, team and current repository."""
    prompter = ctx.prompter
    settings = ctx.settings

    linear_key = prompter.ask(
        "Linear API key (https://linear.app/settings/api)",
        default=settings.linear_key,
        password=True,
    ).strip()
    tracker = ctx.tracker_factory(linear_key)
    if not linear_key or not tracker.test_connection():
        raise ConfigurationMissing("Linear API key is invalid")
    settings.set(SETTING_LINEAR_KEY, linear_key)

    openrouter_key = prompter.ask(
        "OpenRouter API key (https://openrouter.ai/keys)",
        default=settings.openrouter_key,
        password=True,
    ).strip()
    if not openrouter_key:
        raise ConfigurationMissing("OpenRouter API key is required")
    settings.set(SETTING_OPENROUTER_KEY, openrouter_key)

    github_token = prompter.ask(
        "GitHub token for `relay pr` (leave empty to skip)",
        default=settings.github_token or "",
        password=True,
    ).strip()
    if github_token:
        settings.set(SETTING_GITHUB_TOKEN, github_token)

    editor = prompter.select(
        "Default editor", [(name, name) for name in EDITOR_CHOICES]
    )
    settings.set(SETTING_DEFAULT_EDITOR, editor)

    teams = tracker.get_context().teams
    if teams:
        team = prompter.select(
            "Default team", [(f"{t.name} ({t.key})", t) for t in teams]
        )
        settings.set(SETTING_DEFAULT_TEAM, team.id)

    repo_summary = _setup_repository(ctx, editor)

    ctx.display.display_success(
        "Relay is set up!",
        {"Editor": editor, "Repository": repo_summary or "", "Next": 'relay "<task>"'},
    )
    return 0


def _setup_repository(ctx: RelayContext, editor: str) -> Optional[str]:
    """Register the repository containing the cwd and write its project config."""
    try:
        root = _git_toplevel(ctx.cwd)
    except NotAGitRepositoryError:
        ctx.console.print("[dim]Not inside a git repository; skipping repository setup.[/dim]")
        return None

    repo = ctx.catalog.get_repository_by_path(root)
    if repo is None:
        if not ctx.prompter.confirm(f"Register {root} with relay?"):
            return None
        name = ctx.prompter.ask("Repository name", default=os.path.basename(root))
        worktree_base = ctx.prompter.ask("Worktree directory", default=DEFAULT_WORKTREE_BASE)
        repo = ctx.catalog.create_repository(name, root, worktree_base=worktree_base)

    base_branch = ctx.prompter.ask("Base branch for new worktrees", default=DEFAULT_BASE_BRANCH)
    config = RelayConfig(
        repo_base=root,
        editor=editor if editor in EDITOR_CHOICES else FALLBACK_EDITOR,
        worktree_base=repo.worktree_base,
        base_branch=base_branch,
    )
    save_config(config, root)
    ctx.config = config
    return repo.name


HANDLERS = {
    "run": cmd_run,
    "create": cmd_create,
    "switch": cmd_switch,
    "open": cmd_open,
    "cleanup": cmd_cleanup,
    "commit": cmd_commit,
    "pr": cmd_pr,
    "list": cmd_list,
    "prune": cmd_prune,
    "setup": cmd_setup,
    ("repo", "add"): cmd_repo_add,
    ("repo", "list"): cmd_repo_list,
    ("repo", "remove"): cmd_repo_remove,
    ("repo", "edit"): cmd_repo_edit,
    ("config", "show"): cmd_config_show,
    ("config", "set-key"): cmd_config_set_key,
    ("config", "set-editor"): cmd_config_set_editor,
    ("config", "set-team"): cmd_config_set_team,
}


def get_handler(args: argparse.Namespace):
    if args.command == "repo":
        return HANDLERS[("repo", args.repo_command)]
    if args.command == "config":
        return HANDLERS[("config", args.config_command)]
    return HANDLERS[args.command]
