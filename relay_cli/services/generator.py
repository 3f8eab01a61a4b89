"""AI drafting of issues, commit messages and pull request text via OpenRouter."""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

import requests

from relay_cli.constants import (
    DEFAULT_MODEL,
    MAX_COMMIT_DIFF_CHARS,
    MAX_PR_DIFF_CHARS,
    OPENROUTER_API_URL,
    REQUEST_TIMEOUT,
)
from relay_cli.exceptions import GeneratorError
from relay_cli.models.issue import IssueDraft, TrackerContext
from relay_cli.utils.logging import get_logger

logger = get_logger(__name__)

_CHAT_PATH = "/chat/completions"

ISSUE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "Concise, action-oriented issue title"},
        "description": {
            "type": "string",
            "description": (
                "Comprehensive issue description with problem statement, "
                "acceptance criteria, and technical considerations"
            ),
        },
        "projectId": {"type": "string", "description": "ID of the best matching project"},
        "labelIds": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Array of 2-5 relevant label IDs",
        },
        "priority": {
            "type": "integer",
            "minimum": 0,
            "maximum": 4,
            "description": "Priority level: 0=No priority, 1=Urgent, 2=High, 3=Normal, 4=Low",
        },
    },
    "required": ["title", "description", "labelIds", "priority"],
    "additionalProperties": False,
}


def build_issue_prompt(task: str, context: TrackerContext) -> str:
    teams = "\n".join(f"- {t.name} ({t.key}, ID: {t.id})" for t in context.teams)
    projects = "\n".join(
        f"- {p.name} (ID: {p.id}): {p.description or 'No description'}" for p in context.projects
    )
    labels = "\n".join(
        f"- {l.name} (ID: {l.id}): {l.description or 'No description'}" for l in context.labels
    )
    return f"""You are an expert project manager analyzing a task to create a comprehensive Linear issue.

Task: "{task}"

Available Context:

TEAMS:
{teams}

PROJECTS:
{projects}

LABELS:
{labels}

Instructions:
1. Analyze the task and determine the best matching project based on the description
2. Select 2-5 relevant labels that best categorize this task
3. Create a concise, action-oriented title (50 chars max)
4. Write a description with a problem statement, acceptance criteria (bullet points),
   technical considerations, and any edge cases or dependencies
5. Suggest an appropriate priority level (3=Normal is default unless the task indicates urgency)

Only use project and label IDs from the lists above."""


def build_commit_prompt(files: List[str], diff: str) -> str:
    return f"""Generate a conventional commit message for these changes.

CHANGED FILES:
{chr(10).join(files)}

DIFF:
{diff[:MAX_COMMIT_DIFF_CHARS]}

Guidelines:
- Use conventional commit format: type(scope): message
- Types: feat, fix, refactor, docs, style, test, chore
- Keep the subject line under 50 characters
- Be specific and descriptive
- Focus on WHAT and WHY, not HOW

Generate ONLY the commit message, nothing else."""


def build_pr_prompt(commits: List[str], files: List[str], diff: str) -> str:
    return f"""Analyze these git changes and generate a Pull Request title and description.

COMMITS:
{chr(10).join(commits)}

CHANGED FILES:
{chr(10).join(files)}

DIFF SUMMARY:
{diff[:MAX_PR_DIFF_CHARS]}

Generate:
1. A concise PR title on the first line (following conventional commits: feat/fix/refactor/docs/etc)
2. A description with a summary, motivation, key changes as bullet points,
   testing notes and breaking changes if any

Keep it professional and focused on what reviewers need to know."""


def parse_pr_content(text: str, commits: List[str]) -> Tuple[str, str]:
    """Split generated PR text into ``(title, description)``.

    The title is the first non-empty line that is not a markdown heading;
    everything after it is the description.
    """
    lines = text.split("\n")
    title_index = next(
        (i for i, line in enumerate(lines) if line.strip() and not line.startswith("#")), None
    )
    if title_index is None:
        title = commits[0] if commits else "Update"
        description = text.strip()
    else:
        title = lines[title_index].strip()
        description = "\n".join(lines[title_index + 1 :]).strip()

    title = re.sub(r"^(Title|PR Title):\s*", "", title, flags=re.IGNORECASE).strip("*` ")
    return title or "Update", description or "See commits for details."


def _strip_code_fences(text: str) -> str:
    match = re.match(r"^```[a-zA-Z]*\n(.*)\n```$", text.strip(), flags=re.DOTALL)
    return match.group(1) if match else text


class IssueGenerator:
    """OpenRouter chat-completions client."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = OPENROUTER_API_URL,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _complete(
        self,
        operation: str,
        prompt: str,
        temperature: float = 0.7,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> str:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if response_format:
            payload["response_format"] = response_format

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        logger.debug(f"AI request: {operation} ({self.model})")
        try:
            resp = self.session.post(
                f"{self.base_url}{_CHAT_PATH}",
                json=payload,
                headers=headers,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise GeneratorError(operation, f"request failed: {e}")

        if resp.status_code == 401:
            raise GeneratorError(
                operation, "invalid API key", hint="relay config set-key openrouter <key>"
            )
        if resp.status_code != 200:
            raise GeneratorError(operation, f"HTTP {resp.status_code}: {resp.text[:500]}")

        try:
            data = resp.json()
        except ValueError:
            raise GeneratorError(operation, "response was not valid JSON")

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise GeneratorError(operation, "response contained no choices")
        content = (choices[0].get("message") or {}).get("content")
        if not content or not str(content).strip():
            raise GeneratorError(operation, "response was empty")
        return str(content).strip()

    def analyze_task(self, task: str, context: TrackerContext) -> IssueDraft:
        """Draft a structured issue for ``task`` using the workspace context."""
        content = self._complete(
            "analyze_task",
            build_issue_prompt(task, context),
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "issue", "strict": True, "schema": ISSUE_SCHEMA},
            },
        )
        try:
            data = json.loads(_strip_code_fences(content))
        except json.JSONDecodeError as e:
            raise GeneratorError("analyze_task", f"draft was not valid JSON: {e}")
        if not isinstance(data, dict):
            raise GeneratorError("analyze_task", "draft was not a JSON object")

        try:
            draft = IssueDraft.from_dict(data)
        except ValueError as e:
            raise GeneratorError("analyze_task", str(e))

        # Drop ids the model invented
        known_projects = {p.id for p in context.projects}
        known_labels = {l.id for l in context.labels}
        if draft.project_id and draft.project_id not in known_projects:
            logger.debug(f"Ignoring unknown project id {draft.project_id}")
            draft.project_id = None
        draft.label_ids = [label for label in draft.label_ids if label in known_labels]
        return draft

    def generate_text(self, prompt: str, operation: str = "generate_text") -> str:
        return self._complete(operation, prompt)

    def generate_commit_message(self, files: List[str], diff: str) -> str:
        text = self.generate_text(build_commit_prompt(files, diff), "commit_message")
        return _strip_code_fences(text).strip()

    def generate_pr_content(self, commits: List[str], diff: str, files: List[str]) -> Tuple[str, str]:
        text = self.generate_text(build_pr_prompt(commits, files, diff), "pr_content")
        return parse_pr_content(text, commits)
