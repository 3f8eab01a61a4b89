"""Persistent catalog of repositories and their issue worktrees."""

import os
import sqlite3
from pathlib import Path
from typing import List, Optional, Union

from relay_cli.constants import DEFAULT_WORKTREE_BASE, EDITOR_CHOICES
from relay_cli.exceptions import ConflictError, NotFoundError, RepositoryNotFoundError
from relay_cli.models.repository import Repository
from relay_cli.models.worktree import Worktree, WorktreeWithRepo
from relay_cli.services.catalog.database import open_database
from relay_cli.services.catalog.settings import SettingsStore
from relay_cli.utils.logging import get_logger

logger = get_logger(__name__)

_REPOSITORY_FIELDS = ("name", "path", "worktree_base", "editor")

_WORKTREE_WITH_REPO_QUERY = """
    SELECT w.*, r.name AS repo_name, r.path AS repo_path
    FROM worktrees w
    JOIN repositories r ON w.repo_id = r.id
"""


class Catalog:
    """SQLite-backed store of Repository and Worktree records.

    All reads return frozen snapshots. No method performs git or network I/O.
    The catalog does not lock across processes; concurrent invocations against
    the same repository can race.
    """

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = db_path
        self._conn = open_database(db_path)
        self.settings = SettingsStore(self._conn)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "Catalog":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # Repositories

    def create_repository(
        self,
        name: str,
        path: str,
        worktree_base: Optional[str] = None,
        editor: Optional[str] = None,
    ) -> Repository:
        """Register a repository. Raises ConflictError if name or path is taken."""
        name = name.strip()
        if not name:
            raise ValueError("repository name cannot be empty")
        path = os.path.abspath(path)
        self._validate_editor(editor)

        existing = self.get_repository_by_name(name)
        if existing is not None:
            raise ConflictError(f"Repository name already exists: {name}", hint="relay repo list")
        existing = self.get_repository_by_path(path)
        if existing is not None:
            raise ConflictError(
                f"Repository already exists: {existing.name} ({path})", hint="relay repo list"
            )

        try:
            with self._conn:
                cursor = self._conn.execute(
                    "INSERT INTO repositories (name, path, worktree_base, editor) VALUES (?, ?, ?, ?)",
                    (name, path, worktree_base or DEFAULT_WORKTREE_BASE, editor or None),
                )
        except sqlite3.IntegrityError as e:
            raise ConflictError(f"Repository {name} conflicts with an existing entry: {e}")

        logger.info(f"Registered repository {name} at {path}")
        return self.get_repository_by_id(cursor.lastrowid)

    def get_repository_by_id(self, repo_id: int) -> Optional[Repository]:
        row = self._conn.execute("SELECT * FROM repositories WHERE id = ?", (repo_id,)).fetchone()
        return Repository.from_row(row) if row else None

    def get_repository_by_name(self, name: str) -> Optional[Repository]:
        row = self._conn.execute("SELECT * FROM repositories WHERE name = ?", (name,)).fetchone()
        return Repository.from_row(row) if row else None

    def get_repository_by_path(self, path: str) -> Optional[Repository]:
        row = self._conn.execute(
            "SELECT * FROM repositories WHERE path = ?", (os.path.abspath(path),)
        ).fetchone()
        return Repository.from_row(row) if row else None

    def find_repository_containing(self, path: str) -> Optional[Repository]:
        """Return the repository whose checkout contains ``path``, if any."""
        target = os.path.abspath(path)
        best = None
        for repo in self.list_repositories():
            if target == repo.path or target.startswith(repo.path + os.sep):
                if best is None or len(repo.path) > len(best.path):
                    best = repo
        return best

    def list_repositories(self) -> List[Repository]:
        """All repositories, most recently created first."""
        rows = self._conn.execute(
            "SELECT * FROM repositories ORDER BY created_at DESC, id DESC"
        ).fetchall()
        return [Repository.from_row(row) for row in rows]

    def count_repositories(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM repositories").fetchone()[0]

    def update_repository(self, repo_id: int, **updates) -> Repository:
        """Change only the supplied fields; ``None`` values are ignored."""
        unknown = set(updates) - set(_REPOSITORY_FIELDS)
        if unknown:
            raise ValueError(f"Unknown repository fields: {sorted(unknown)}")

        current = self.get_repository_by_id(repo_id)
        if current is None:
            raise NotFoundError(f"Repository not found: {repo_id}", hint="relay repo list")

        changes = {key: value for key, value in updates.items() if value is not None}
        if not changes:
            return current

        if "path" in changes:
            changes["path"] = os.path.abspath(changes["path"])
        if "editor" in changes:
            self._validate_editor(changes["editor"])

        assignments = ", ".join(f"{key} = ?" for key in changes)
        try:
            with self._conn:
                self._conn.execute(
                    f"UPDATE repositories SET {assignments} WHERE id = ?",
                    (*changes.values(), repo_id),
                )
        except sqlite3.IntegrityError as e:
            raise ConflictError(f"Repository update conflicts with an existing entry: {e}")

        logger.info(f"Updated repository {current.name}: {', '.join(changes)}")
        return self.get_repository_by_id(repo_id)

    def delete_repository_by_name(self, name: str) -> Repository:
        """Delete a repository and, by cascade, all of its worktree rows."""
        repo = self.get_repository_by_name(name)
        if repo is None:
            raise RepositoryNotFoundError(name)
        with self._conn:
            self._conn.execute("DELETE FROM repositories WHERE id = ?", (repo.id,))
        logger.info(f"Removed repository {name}")
        return repo

    # Worktrees

    def create_worktree(
        self,
        repo_id: int,
        issue_id: str,
        issue_identifier: str,
        issue_title: Optional[str],
        branch_name: str,
        path: str,
    ) -> Worktree:
        """Persist a worktree row. Raises ConflictError for a duplicate branch."""
        if self.get_repository_by_id(repo_id) is None:
            raise NotFoundError(f"Repository not found: {repo_id}", hint="relay repo list")
        try:
            with self._conn:
                cursor = self._conn.execute(
                    """
                    INSERT INTO worktrees
                        (repo_id, issue_id, issue_identifier, issue_title, branch_name, path)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (repo_id, issue_id, issue_identifier.upper(), issue_title or None, branch_name, path),
                )
        except sqlite3.IntegrityError:
            raise ConflictError(
                f"A worktree for branch {branch_name} is already catalogued", hint="relay list"
            )

        logger.info(f"Catalogued worktree {issue_identifier} at {path}")
        return self.get_worktree_by_id(cursor.lastrowid)

    def get_worktree_by_id(self, worktree_id: int) -> Optional[Worktree]:
        row = self._conn.execute("SELECT * FROM worktrees WHERE id = ?", (worktree_id,)).fetchone()
        return Worktree.from_row(row) if row else None

    def get_worktree_by_issue_identifier(self, identifier: str) -> Optional[Worktree]:
        row = self._conn.execute(
            "SELECT * FROM worktrees WHERE issue_identifier = ? ORDER BY created_at DESC, id DESC",
            (identifier.upper(),),
        ).fetchone()
        return Worktree.from_row(row) if row else None

    def get_worktree_by_branch(self, repo_id: int, branch_name: str) -> Optional[Worktree]:
        row = self._conn.execute(
            "SELECT * FROM worktrees WHERE repo_id = ? AND branch_name = ?",
            (repo_id, branch_name),
        ).fetchone()
        return Worktree.from_row(row) if row else None

    def list_worktrees_by_repo(self, repo_id: int) -> List[Worktree]:
        rows = self._conn.execute(
            "SELECT * FROM worktrees WHERE repo_id = ? ORDER BY created_at DESC, id DESC",
            (repo_id,),
        ).fetchall()
        return [Worktree.from_row(row) for row in rows]

    def list_all_worktrees(self, repo_id: Optional[int] = None) -> List[WorktreeWithRepo]:
        """Worktrees joined with their repository's name and path, newest first."""
        if repo_id is None:
            rows = self._conn.execute(
                _WORKTREE_WITH_REPO_QUERY + " ORDER BY w.created_at DESC, w.id DESC"
            ).fetchall()
        else:
            rows = self._conn.execute(
                _WORKTREE_WITH_REPO_QUERY
                + " WHERE w.repo_id = ? ORDER BY w.created_at DESC, w.id DESC",
                (repo_id,),
            ).fetchall()
        return [WorktreeWithRepo.from_row(row) for row in rows]

    def delete_worktree(self, worktree_id: int) -> None:
        with self._conn:
            cursor = self._conn.execute("DELETE FROM worktrees WHERE id = ?", (worktree_id,))
        if cursor.rowcount == 0:
            raise NotFoundError(f"Worktree not found: {worktree_id}", hint="relay list")
        logger.info(f"Removed worktree row {worktree_id}")

    def count_worktrees(self, repo_id: Optional[int] = None) -> int:
        if repo_id is None:
            return self._conn.execute("SELECT COUNT(*) FROM worktrees").fetchone()[0]
        return self._conn.execute(
            "SELECT COUNT(*) FROM worktrees WHERE repo_id = ?", (repo_id,)
        ).fetchone()[0]

    @staticmethod
    def _validate_editor(editor: Optional[str]) -> None:
        if editor is not None and editor not in EDITOR_CHOICES:
            raise ValueError(f"editor must be one of {EDITOR_CHOICES}, got '{editor}'")
