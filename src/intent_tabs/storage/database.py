"""
SQLite database handler for saved workspaces and the API key.
"""

import sqlite3
from pathlib import Path
from typing import Optional, Union

from intent_tabs.agents.credentials import API_KEY_STORAGE_KEY, CredentialStore
from intent_tabs.agents.models import Workspace
from intent_tabs.config import get_logger
from .base import WorkspaceStore

logger = get_logger(__name__)


class WorkspaceDB(CredentialStore, WorkspaceStore):
    """SQLite-backed storage for saved workspaces and settings."""

    def __init__(self, db_path: Union[Path, str]):
        """
        Initialize the database connection.

        Args:
            db_path: Path to the SQLite database file (":memory:" for tests)
        """
        self.db_path = db_path
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        # Opened lazily inside a request; later calls and close() may come from another thread
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._initialize_schema()

    def _initialize_schema(self):
        """Create the database schema if it doesn't exist."""
        cursor = self.conn.cursor()

        # Key/value settings (API key lives here)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS storage (
                key TEXT PRIMARY KEY,
                value TEXT
            )
        """)

        # Saved workspaces, stored as JSON documents
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS saved_workspaces (
                position INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                data TEXT NOT NULL,
                saved_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.commit()

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def get_api_key(self) -> Optional[str]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM storage WHERE key = ?", (API_KEY_STORAGE_KEY,))
        row = cursor.fetchone()
        return row["value"] if row else None

    def set_api_key(self, api_key: str) -> None:
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO storage (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """,
            (API_KEY_STORAGE_KEY, api_key),
        )
        self.conn.commit()
        logger.info("Stored API key")

    # ------------------------------------------------------------------
    # Workspaces
    # ------------------------------------------------------------------

    def save_workspace(self, workspace: Workspace) -> Workspace:
        saved = workspace.model_copy(update={"is_saved": True})
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO saved_workspaces (id, name, data) VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET name = excluded.name, data = excluded.data
        """,
            (saved.id, saved.name, saved.model_dump_json(by_alias=True)),
        )
        self.conn.commit()
        logger.info(f"Saved workspace '{saved.name}' ({saved.id[:8]}) with {len(saved.tabs)} tabs")
        return saved

    def get_saved_workspaces(self) -> list[Workspace]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT data FROM saved_workspaces ORDER BY position")
        return [Workspace.model_validate_json(row["data"]) for row in cursor.fetchall()]

    def get_workspace(self, workspace_id: str) -> Optional[Workspace]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT data FROM saved_workspaces WHERE id = ?", (workspace_id,))
        row = cursor.fetchone()
        if not row:
            return None
        return Workspace.model_validate_json(row["data"])

    def delete_workspace(self, workspace_id: str) -> bool:
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM saved_workspaces WHERE id = ?", (workspace_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    def close(self):
        """Close the database connection."""
        self.conn.close()
