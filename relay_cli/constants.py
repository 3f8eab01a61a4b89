"""Shared constants for relay."""

import re
from dataclasses import dataclass
from typing import Dict, List


# Supported editors and how to launch them
@dataclass(frozen=True)
class EditorCommand:
    """Executable and extra arguments used to open a path."""

    command: str
    args: tuple = ()


EDITORS: Dict[str, EditorCommand] = {
    "vscode": EditorCommand("code"),
    "cursor": EditorCommand("cursor"),
    "zed": EditorCommand("zed"),
}
EDITOR_CHOICES: List[str] = list(EDITORS)
FALLBACK_EDITOR = "cursor"

# Catalog defaults
DEFAULT_WORKTREE_BASE = "../worktrees"
DEFAULT_BASE_BRANCH = "main"
DATA_DIR_NAME = ".relay"
DATABASE_FILE = "relay.db"
LOG_FILE = "relay.log"

# Project configuration file, discovered by walking up from the cwd
CONFIG_DIR = ".relay"
CONFIG_FILE = "relay-config.json"

# Settings keys
SETTING_LINEAR_KEY = "linear_key"
SETTING_OPENROUTER_KEY = "openrouter_key"
SETTING_GITHUB_TOKEN = "github_token"
SETTING_DEFAULT_EDITOR = "default_editor"
SETTING_DEFAULT_TEAM = "default_team_id"

# `relay config set-key <name>` -> settings key
KEY_NAMES: Dict[str, str] = {
    "linear": SETTING_LINEAR_KEY,
    "openrouter": SETTING_OPENROUTER_KEY,
    "github": SETTING_GITHUB_TOKEN,
}

# Tracker issue codes such as ENG-123
ISSUE_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z]+-\d+$")
EMBEDDED_ISSUE_PATTERN = re.compile(r"([A-Za-z]+-\d+)")

# External endpoints
LINEAR_API_URL = "https://api.linear.app/graphql"
OPENROUTER_API_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "x-ai/grok-4-fast"
REQUEST_TIMEOUT = 30

# Annotation limits
MAX_COAUTHOR_FILES = 5
MAX_COAUTHORS = 3
MAX_REVIEWER_FILES = 10
MAX_REVIEWERS = 5
MAX_COMMIT_DIFF_CHARS = 3000
MAX_PR_DIFF_CHARS = 5000

PRIORITY_LABELS = ["No priority", "Urgent", "High", "Normal", "Low"]

# Symbol constants
SYMBOL_SUCCESS = "✓"
SYMBOL_FAILURE = "✗"
SYMBOL_ORPHANED = "⚠"
