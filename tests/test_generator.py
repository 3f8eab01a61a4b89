"""Tests for the AI generator adapter"""
import json
from unittest.mock import Mock

import pytest
import requests

from relay_cli.exceptions import GeneratorError
from relay_cli.services.generator import (
    IssueGenerator,
    build_commit_prompt,
    parse_pr_content,
)


def completion(content, status=200):
    resp = Mock()
    resp.status_code = status
    resp.text = "body"
    resp.json.return_value = {"choices": [{"message": {"content": content}}]}
    return resp


def generator_returning(*responses):
    session = Mock(spec=requests.Session)
    session.post.side_effect = list(responses)
    return IssueGenerator("sk-or-key", session=session), session


class TestAnalyzeTask:
    """Test structured issue drafting."""

    def test_draft_from_json(self, tracker_context):
        generator, session = generator_returning(completion(json.dumps({
            "title": "Fix login bug",
            "description": "Details",
            "projectId": "P1",
            "labelIds": ["L1", "L2"],
            "priority": 2,
        })))

        draft = generator.analyze_task("fix login bug", tracker_context)

        assert draft.title == "Fix login bug"
        assert draft.project_id == "P1"
        assert draft.label_ids == ["L1", "L2"]
        assert draft.priority == 2

        url = session.post.call_args[0][0]
        payload = session.post.call_args[1]["json"]
        assert url == "https://openrouter.ai/api/v1/chat/completions"
        assert payload["response_format"]["type"] == "json_schema"
        assert "fix login bug" in payload["messages"][0]["content"]
        assert session.post.call_args[1]["headers"]["Authorization"] == "Bearer sk-or-key"

    def test_unknown_ids_dropped(self, tracker_context):
        generator, _ = generator_returning(completion(json.dumps({
            "title": "Fix login bug",
            "description": "",
            "projectId": "P-invented",
            "labelIds": ["L1", "L-invented"],
            "priority": 9,
        })))

        draft = generator.analyze_task("fix", tracker_context)

        assert draft.project_id is None
        assert draft.label_ids == ["L1"]
        assert draft.priority == 4

    def test_code_fenced_json(self, tracker_context):
        content = '```json\n{"title": "T", "description": "", "labelIds": [], "priority": 3}\n```'
        generator, _ = generator_returning(completion(content))
        assert generator.analyze_task("t", tracker_context).title == "T"

    def test_invalid_json(self, tracker_context):
        generator, _ = generator_returning(completion("not json"))
        with pytest.raises(GeneratorError, match="not valid JSON"):
            generator.analyze_task("t", tracker_context)

    def test_missing_title(self, tracker_context):
        generator, _ = generator_returning(completion('{"description": "x"}'))
        with pytest.raises(GeneratorError):
            generator.analyze_task("t", tracker_context)


class TestCompletionErrors:
    """Test transport and response errors."""

    def test_unauthorized(self):
        generator, _ = generator_returning(completion("", status=401))
        with pytest.raises(GeneratorError) as exc_info:
            generator.generate_text("hi")
        assert exc_info.value.hint == "relay config set-key openrouter <key>"

    def test_empty_choices(self):
        resp = completion("x")
        resp.json.return_value = {"choices": []}
        generator, _ = generator_returning(resp)
        with pytest.raises(GeneratorError, match="no choices"):
            generator.generate_text("hi")

    def test_request_exception(self):
        session = Mock(spec=requests.Session)
        session.post.side_effect = requests.Timeout("timed out")
        generator = IssueGenerator("key", session=session)
        with pytest.raises(GeneratorError, match="timed out"):
            generator.generate_text("hi")


class TestCommitAndPullRequestText:
    """Test free-text generation helpers."""

    def test_commit_message_strips_fences(self):
        generator, _ = generator_returning(completion("```\nfix: login\n```"))
        assert generator.generate_commit_message(["a.py"], "diff") == "fix: login"

    def test_commit_prompt_truncates_diff(self):
        prompt = build_commit_prompt(["a.py"], "x" * 10000)
        assert "x" * 3000 in prompt
        assert "x" * 3001 not in prompt

    def test_pr_content(self):
        generator, _ = generator_returning(
            completion("# Pull Request\nTitle: feat: add login\n\n## Summary\nAdds login.")
        )
        title, description = generator.generate_pr_content(["feat: login"], "diff", ["a.py"])
        assert title == "feat: add login"
        assert description == "## Summary\nAdds login."

    def test_parse_pr_content_falls_back_to_commit(self):
        assert parse_pr_content("# Only a heading", ["fix: it"]) == ("fix: it", "# Only a heading")
