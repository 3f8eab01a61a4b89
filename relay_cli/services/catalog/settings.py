"""Key/value settings (credentials and preferences) kept in the catalog."""

import sqlite3
from typing import Dict, Optional

from relay_cli.constants import (
    SETTING_DEFAULT_EDITOR,
    SETTING_DEFAULT_TEAM,
    SETTING_GITHUB_TOKEN,
    SETTING_LINEAR_KEY,
    SETTING_OPENROUTER_KEY,
)


class SettingsStore:
    """Process-wide settings: created on first write, never versioned."""

    def __init__(self, connection: sqlite3.Connection):
        self._conn = connection

    def get(self, key: str) -> Optional[str]:
        row = self._conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO settings (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )

    def delete(self, key: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM settings WHERE key = ?", (key,))

    def all(self) -> Dict[str, str]:
        rows = self._conn.execute("SELECT key, value FROM settings ORDER BY key").fetchall()
        return {row["key"]: row["value"] for row in rows}

    @property
    def linear_key(self) -> Optional[str]:
        return self.get(SETTING_LINEAR_KEY)

    @property
    def openrouter_key(self) -> Optional[str]:
        return self.get(SETTING_OPENROUTER_KEY)

    @property
    def github_token(self) -> Optional[str]:
        return self.get(SETTING_GITHUB_TOKEN)

    @property
    def default_editor(self) -> Optional[str]:
        return self.get(SETTING_DEFAULT_EDITOR)

    @property
    def default_team_id(self) -> Optional[str]:
        return self.get(SETTING_DEFAULT_TEAM)

    def has_required_keys(self) -> bool:
        return bool(self.linear_key and self.openrouter_key)
