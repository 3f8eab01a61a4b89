"""Tests for the settings store"""
from relay_cli.constants import (
    SETTING_DEFAULT_EDITOR,
    SETTING_GITHUB_TOKEN,
    SETTING_LINEAR_KEY,
    SETTING_OPENROUTER_KEY,
)


class TestSettingsStore:
    """Test key/value settings."""

    def test_missing_key(self, catalog):
        """Test unset keys read as None."""
        assert catalog.settings.get(SETTING_LINEAR_KEY) is None
        assert catalog.settings.linear_key is None
        assert catalog.settings.all() == {}

    def test_set_is_upsert(self, catalog):
        """Test setting a key twice keeps the last value."""
        catalog.settings.set(SETTING_DEFAULT_EDITOR, "vscode")
        catalog.settings.set(SETTING_DEFAULT_EDITOR, "zed")
        assert catalog.settings.default_editor == "zed"
        assert catalog.settings.all() == {SETTING_DEFAULT_EDITOR: "zed"}

    def test_delete(self, catalog):
        """Test deleting a key."""
        catalog.settings.set(SETTING_GITHUB_TOKEN, "ghp_x")
        catalog.settings.delete(SETTING_GITHUB_TOKEN)
        assert catalog.settings.github_token is None

    def test_has_required_keys(self, catalog):
        """Test Linear and OpenRouter keys are both required."""
        assert catalog.settings.has_required_keys() is False
        catalog.settings.set(SETTING_LINEAR_KEY, "lin_api")
        assert catalog.settings.has_required_keys() is False
        catalog.settings.set(SETTING_OPENROUTER_KEY, "sk-or")
        assert catalog.settings.has_required_keys() is True
