"""Tests for the open, switch and reopen workflows"""
import os
import shutil

from relay_cli.exceptions import IssueNotFoundError, NotFoundError, WorktreeNotFoundError
from relay_cli.models.issue import Issue
from relay_cli.workflows import OpenWorkflow, ReopenWorkflow, Step
from relay_cli.workflows.common import resolve_repository


class TestOpenWorkflow:
    """Test opening an issue by identifier."""

    def test_creates_worktree_when_missing(self, ctx, demo_repo, mock_tracker, mock_editor):
        workflow = OpenWorkflow(ctx, "eng-42")
        result = workflow.run()

        assert result.ok, result.error
        assert workflow.created is True
        mock_tracker.get_issue.assert_called_once_with("ENG-42")
        row = ctx.catalog.get_worktree_by_issue_identifier("ENG-42")
        assert row.path == os.path.join(demo_repo.path, "../worktrees", "eng-42-fix-login-bug")
        mock_editor.open.assert_called_once_with(row.path, "cursor")
        assert result.headline == "Worktree created!"

    def test_reuses_existing_worktree(self, ctx, demo_repo, git_repo, temp_dir, mock_editor):
        """Test an existing tree whose path contains the branch is reused, not created."""
        existing = temp_dir / "trees" / "eng-42-fix-login-bug"
        git_repo.git.worktree("add", str(existing), "-b", "eng-42-fix-login-bug", "main")
        branches_before = {head.name for head in git_repo.heads}

        workflow = OpenWorkflow(ctx, "ENG-42")
        result = workflow.run()

        assert result.ok, result.error
        assert workflow.created is False
        assert {head.name for head in git_repo.heads} == branches_before
        row = ctx.catalog.get_worktree_by_issue_identifier("ENG-42")
        assert os.path.realpath(row.path) == str(existing)
        assert result.headline == "Opened existing worktree!"

    def test_second_open_does_not_duplicate_rows(self, ctx, demo_repo):
        assert OpenWorkflow(ctx, "ENG-42").run().ok
        assert OpenWorkflow(ctx, "ENG-42").run().ok
        assert ctx.catalog.count_worktrees() == 1

    def test_issue_not_found(self, ctx, demo_repo, mock_tracker):
        mock_tracker.get_issue.side_effect = IssueNotFoundError("ENG-404")
        result = OpenWorkflow(ctx, "ENG-404").run()
        assert result.step == Step.ERROR
        assert isinstance(result.error, IssueNotFoundError)
        assert ctx.catalog.count_worktrees() == 0

    def test_switch_picks_assigned_issue(self, ctx, demo_repo, mock_tracker, issue, scripted_prompter):
        """Test switch mode offers the issues assigned to the user."""
        other = Issue(id="issue-7", identifier="ENG-7", title="Other", branch_name="eng-7-other")
        mock_tracker.get_my_issues.return_value = [issue, other]
        ctx.prompter = scripted_prompter(selections=[1])

        result = OpenWorkflow(ctx).run()

        assert result.ok, result.error
        assert ctx.catalog.get_worktree_by_issue_identifier("ENG-7").branch_name == "eng-7-other"
        mock_tracker.get_issue.assert_not_called()

    def test_switch_without_assigned_issues(self, ctx, demo_repo, mock_tracker):
        mock_tracker.get_my_issues.return_value = []
        result = OpenWorkflow(ctx).run()
        assert isinstance(result.error, NotFoundError)


class TestResolveRepository:
    """Test which repository a command uses."""

    def test_explicit_name(self, ctx, demo_repo, temp_dir):
        ctx.catalog.create_repository("other", str(temp_dir / "other"))
        assert resolve_repository(ctx, "demo") == demo_repo

    def test_current_directory(self, ctx, demo_repo, temp_dir):
        ctx.catalog.create_repository("other", str(temp_dir / "other"))
        ctx.cwd = os.path.join(demo_repo.path, "src")
        assert resolve_repository(ctx) == demo_repo

    def test_current_directory_inside_worktree(self, ctx, demo_repo, temp_dir):
        """Test a catalogued worktree resolves to its repository."""
        ctx.catalog.create_repository("other", str(temp_dir / "other"))
        ctx.catalog.create_worktree(
            demo_repo.id, "id", "ENG-1", None, "eng-1", str(temp_dir / "worktrees" / "eng-1")
        )
        ctx.cwd = str(temp_dir / "worktrees" / "eng-1" / "src")
        assert resolve_repository(ctx) == demo_repo

    def test_prompts_between_several(self, ctx, demo_repo, temp_dir, scripted_prompter):
        other = ctx.catalog.create_repository("other", str(temp_dir / "other"))
        ctx.prompter = scripted_prompter(selections=[0])
        # newest first
        assert resolve_repository(ctx) == other
        assert ctx.prompter.asked == ["Select a repository"]


class TestReopenWorkflow:
    """Test `relay open` on catalogued worktrees."""

    def test_opens_catalogued_worktree(self, ctx, demo_repo, mock_editor, mock_tracker):
        assert OpenWorkflow(ctx, "ENG-42").run().ok
        mock_editor.reset_mock()
        mock_tracker.reset_mock()

        result = ReopenWorkflow(ctx, "eng-42").run()

        assert result.ok, result.error
        row = ctx.catalog.get_worktree_by_issue_identifier("ENG-42")
        mock_editor.open.assert_called_once_with(row.path, "cursor")
        mock_tracker.get_issue.assert_not_called()

    def test_unknown_identifier(self, ctx):
        result = ReopenWorkflow(ctx, "ENG-1").run()
        assert isinstance(result.error, WorktreeNotFoundError)

    def test_missing_directory(self, ctx, demo_repo, mock_editor):
        assert OpenWorkflow(ctx, "ENG-42").run().ok
        shutil.rmtree(ctx.catalog.get_worktree_by_issue_identifier("ENG-42").path)
        mock_editor.reset_mock()

        result = ReopenWorkflow(ctx, "ENG-42").run()

        assert isinstance(result.error, NotFoundError)
        assert result.error.hint == "relay cleanup ENG-42"
        mock_editor.open.assert_not_called()
