"""Pytest fixtures for relay tests"""
import io
import os
import tempfile
from pathlib import Path
from unittest.mock import Mock

import git
import pytest
from rich.console import Console

from relay_cli.constants import SETTING_LINEAR_KEY, SETTING_OPENROUTER_KEY
from relay_cli.context import RelayContext
from relay_cli.exceptions import WorkflowCancelled
from relay_cli.models.issue import Issue, IssueDraft, Label, Project, Team, TrackerContext
from relay_cli.services.catalog import Catalog
from relay_cli.services.editor import EditorLauncher
from relay_cli.services.generator import IssueGenerator
from relay_cli.services.git.worktrees import WorktreeManager
from relay_cli.services.tracker import LinearTracker
from relay_cli.ui.prompts import Prompter


class ScriptedPrompter(Prompter):
    """Prompter that answers from queues instead of the terminal.

    ``selections`` holds indexes into the offered choices; an exhausted
    queue confirms, picks the first choice and accepts defaults.
    """

    def __init__(self, confirms=None, selections=None, answers=None):
        self.confirms = list(confirms or [])
        self.selections = list(selections or [])
        self.answers = list(answers or [])
        self.asked = []

    def select(self, prompt, choices):
        self.asked.append(prompt)
        if not choices:
            raise WorkflowCancelled("Nothing to choose from")
        index = self.selections.pop(0) if self.selections else 0
        return choices[index][1]

    def confirm(self, message, default=True):
        self.asked.append(message)
        return self.confirms.pop(0) if self.confirms else True

    def ask(self, message, default=None, password=False):
        self.asked.append(message)
        if self.answers:
            return self.answers.pop(0)
        return default or ""


def init_repo(path: Path, commit: bool = True) -> git.Repo:
    """Create a git repository at ``path`` with a configured user."""
    path.mkdir(parents=True, exist_ok=True)
    repo = git.Repo.init(path)
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    if commit:
        test_file = path / "README.md"
        test_file.write_text("# Test Repository\n")
        repo.index.add(["README.md"])
        repo.index.commit("Initial commit")
        repo.git.branch("-M", "main")
    return repo


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository named ``demo`` with one commit on main."""
    repo = init_repo(temp_dir / "demo")

    # Add a fake GitHub remote for testing
    repo.create_remote("origin", "git@github.com:test/demo.git")

    yield repo

    repo.close()


@pytest.fixture
def empty_git_repo(temp_dir):
    """Create a Git repository without any commits."""
    repo = init_repo(temp_dir / "empty", commit=False)
    yield repo
    repo.close()


@pytest.fixture
def catalog():
    """In-memory catalog."""
    store = Catalog(":memory:")
    yield store
    store.close()


@pytest.fixture
def demo_repo(catalog, git_repo):
    """The ``demo`` repository registered in the catalog."""
    return catalog.create_repository("demo", git_repo.working_dir)


@pytest.fixture
def tracker_context():
    return TrackerContext(
        teams=[Team(id="T1", name="Engineering", key="ENG")],
        projects=[Project(id="P1", name="Auth", description="Login and sessions", team_id="T1")],
        labels=[Label(id="L1", name="bug"), Label(id="L2", name="frontend")],
    )


@pytest.fixture
def issue():
    return Issue(
        id="issue-42",
        identifier="ENG-42",
        title="Fix login bug",
        branch_name="eng-42-fix-login-bug",
        url="https://linear.app/acme/issue/ENG-42",
    )


@pytest.fixture
def mock_tracker(tracker_context, issue):
    """Tracker stub returning team T1 and issue ENG-42."""
    tracker = Mock(spec=LinearTracker)
    tracker.get_context.return_value = tracker_context
    tracker.create_issue.return_value = issue
    tracker.get_issue.return_value = issue
    tracker.get_my_issues.return_value = [issue]
    tracker.test_connection.return_value = True
    return tracker


@pytest.fixture
def mock_generator():
    """Generator stub drafting a fixed issue."""
    generator = Mock(spec=IssueGenerator)
    generator.analyze_task.return_value = IssueDraft(
        title="Fix login bug",
        description="Users are redirected back to the login page.",
        project_id="P1",
        label_ids=["L1"],
        priority=2,
    )
    generator.generate_commit_message.return_value = "fix(auth): stop login redirect loop"
    generator.generate_pr_content.return_value = ("fix: login redirect", "Fixes the redirect loop.")
    return generator


@pytest.fixture
def mock_editor():
    return Mock(spec=EditorLauncher)


@pytest.fixture
def output():
    """Buffer capturing everything printed to the context console."""
    return io.StringIO()


@pytest.fixture
def ctx(catalog, mock_tracker, mock_generator, mock_editor, temp_dir, output):
    """RelayContext wired to stubs, with API keys stored and confirmations skipped."""
    catalog.settings.set(SETTING_LINEAR_KEY, "lin_api_test")
    catalog.settings.set(SETTING_OPENROUTER_KEY, "sk-or-test")
    return RelayContext(
        catalog=catalog,
        console=Console(file=output, width=120, force_terminal=False),
        prompter=ScriptedPrompter(),
        worktrees=WorktreeManager(),
        editor=mock_editor,
        tracker_factory=lambda key: mock_tracker,
        generator_factory=lambda key: mock_generator,
        cwd=str(temp_dir),
        assume_yes=True,
    )


@pytest.fixture
def scripted_prompter():
    """Factory for prompters with queued answers."""
    return ScriptedPrompter
