"""Command-line argument parsing for relay."""

import argparse
import sys
from typing import List, Optional

from relay_cli.__version__ import __version__
from relay_cli.constants import EDITOR_CHOICES, KEY_NAMES

# Hidden subcommand that receives `relay <task-or-issue-id>`
DEFAULT_COMMAND = "run"

# Flags of the top-level parser; they take no value
GLOBAL_FLAGS = {"-v", "--verbose", "--debug"}

COMMANDS = {
    "setup",
    "repo",
    "create",
    "switch",
    "list",
    "open",
    "cleanup",
    "prune",
    "config",
    "commit",
    "pr",
    DEFAULT_COMMAND,
}


def _global_options(parser: argparse.ArgumentParser, default) -> None:
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=default, help="Show verbose output"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=default,
        help="Show debug information and write ~/.relay/relay.log",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relay",
        description="AI-powered Linear issue creation with automatic git worktree setup",
        epilog='Examples: relay "fix login redirect loop"   relay ENG-123   relay switch',
    )
    _global_options(parser, default=False)
    parser.add_argument("--version", action="version", version=f"relay {__version__}")

    # Global flags are also accepted after the subcommand without resetting them
    common = argparse.ArgumentParser(add_help=False)
    _global_options(common, default=argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    subparsers.add_parser(
        "setup", parents=[common], help="Store API keys and register the current repository"
    )

    # relay repo ...
    repo = subparsers.add_parser("repo", parents=[common], help="Manage registered repositories")
    repo_sub = repo.add_subparsers(dest="repo_command", metavar="<action>")
    repo_sub.required = True
    repo_add = repo_sub.add_parser("add", parents=[common], help="Register a git repository")
    repo_add.add_argument("--name", help="Repository name (default: directory name)")
    repo_add.add_argument("--path", help="Path to the repository (default: current directory)")
    repo_add.add_argument("--worktree-base", help="Worktree directory relative to the repository")
    repo_add.add_argument("--editor", choices=EDITOR_CHOICES, help="Editor for this repository")
    repo_sub.add_parser("list", parents=[common], help="List registered repositories")
    repo_remove = repo_sub.add_parser("remove", parents=[common], help="Unregister a repository")
    repo_remove.add_argument("name", help="Repository name")
    repo_edit = repo_sub.add_parser("edit", parents=[common], help="Change repository settings")
    repo_edit.add_argument("name", help="Repository name")
    repo_edit.add_argument("--editor", choices=EDITOR_CHOICES, help="Editor for this repository")
    repo_edit.add_argument("--worktree-base", help="Worktree directory relative to the repository")

    # Workflows that create or open worktrees
    create = subparsers.add_parser(
        "create", parents=[common], help="Create a Linear issue from a task and open a worktree"
    )
    create.add_argument("task", nargs="+", help="Task description")
    run = subparsers.add_parser(DEFAULT_COMMAND, parents=[common])
    run.add_argument("input", nargs="+", help="Task description or issue identifier (ENG-123)")
    for sub in (create, run):
        sub.add_argument("--repo", help="Repository name")
        sub.add_argument("-t", "--team", help="Team key (e.g., ENG)")
        sub.add_argument("-y", "--yes", action="store_true", help="Create without confirmation")

    switch = subparsers.add_parser(
        "switch", parents=[common], help="Pick one of your assigned issues and open its worktree"
    )
    switch.add_argument("--repo", help="Repository name")

    # Catalogued worktrees
    list_cmd = subparsers.add_parser("list", parents=[common], help="List worktrees")
    list_cmd.add_argument("--repo", help="Only show worktrees of this repository")
    open_cmd = subparsers.add_parser(
        "open", parents=[common], help="Open a catalogued worktree in its editor"
    )
    open_cmd.add_argument("issue_id", help="Issue identifier (e.g., ENG-123)")
    cleanup = subparsers.add_parser("cleanup", parents=[common], help="Remove a worktree")
    cleanup.add_argument("issue_id", nargs="?", help="Issue identifier (default: choose)")
    cleanup.add_argument(
        "-f", "--force", action="store_true", help="Remove even with uncommitted changes"
    )
    prune = subparsers.add_parser(
        "prune", parents=[common], help="Forget worktrees whose directories were deleted"
    )
    prune.add_argument("--repo", help="Only prune this repository")

    # relay config ...
    config = subparsers.add_parser("config", parents=[common], help="Manage settings")
    config_sub = config.add_subparsers(dest="config_command", metavar="<action>")
    config_sub.required = True
    config_sub.add_parser("show", parents=[common], help="Show settings and project config")
    set_key = config_sub.add_parser("set-key", parents=[common], help="Store an API key")
    set_key.add_argument("key_name", choices=sorted(KEY_NAMES), help="Which key")
    set_key.add_argument("value", help="Key value")
    set_editor = config_sub.add_parser("set-editor", parents=[common], help="Set the default editor")
    set_editor.add_argument("editor", choices=EDITOR_CHOICES)
    set_team = config_sub.add_parser("set-team", parents=[common], help="Set the default team")
    set_team.add_argument("team", help="Team id or key")

    # Git helpers
    commit = subparsers.add_parser(
        "commit", parents=[common], help="Commit staged changes with an AI-written message"
    )
    commit.add_argument("-y", "--yes", action="store_true", help="Commit without confirmation")
    pr = subparsers.add_parser("pr", parents=[common], help="Open a pull request for this branch")
    pr.add_argument("--base", help="Base branch (default: project config or main)")
    pr.add_argument("--draft", action="store_true", help="Open as a draft pull request")
    pr.add_argument("-y", "--yes", action="store_true", help="Open without confirmation")

    return parser


def route_default_command(argv: List[str]) -> List[str]:
    """Insert the hidden ``run`` command when the first word is not a command.

    ``relay fix the bug`` and ``relay ENG-123`` become ``relay run ...``.
    Options of ``run`` given before the task (``relay --repo demo fix``) go
    to the inserted command together with their values.
    """
    for index, token in enumerate(argv):
        if token in GLOBAL_FLAGS:
            continue
        if token in ("-h", "--help", "--version"):
            return argv
        if token.startswith("-") or token not in COMMANDS:
            return argv[:index] + [DEFAULT_COMMAND] + argv[index:]
        return argv
    return argv


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(route_default_command(list(argv)))
    args.parser = parser
    return args
