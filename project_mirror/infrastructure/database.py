"""SQLite storage for mirrored GitLab projects."""

import logging
import os
import sqlite3
from dataclasses import astuple, fields
from pathlib import Path
from typing import Iterable, List, Optional

from project_mirror.domain.errors import StorageError
from project_mirror.domain.project import MirrorRecord

logger = logging.getLogger(__name__)

COLUMNS = [f.name for f in fields(MirrorRecord)]


class SQLiteProjectStore:
    """Repository for storing GitLab project metadata in a SQLite file."""

    DEFAULT_PATH = "projects.db"

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize the store.

        Args:
            db_path: Path of the SQLite file. If None, uses MIRROR_DB_PATH env var.
        """
        if db_path is None:
            db_path = os.getenv("MIRROR_DB_PATH", self.DEFAULT_PATH)

        self.db_path = str(db_path)
        self.connection: Optional[sqlite3.Connection] = None

    @classmethod
    def open_or_create(cls, db_path: Optional[str] = None) -> "SQLiteProjectStore":
        """Open the database file, creating it and its schema if needed."""
        store = cls(db_path)
        store.connect()
        try:
            store.initialize_schema()
        except StorageError:
            store.close()
            raise
        return store

    def connect(self):
        """Open the connection, creating the file if it does not exist."""
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self.connection = sqlite3.connect(self.db_path)
            logger.info(f"Opened mirror database {self.db_path}")
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error opening database {self.db_path}: {e}")
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e

    def close(self):
        """Close the connection."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None
            logger.info("Mirror database closed")

    def __enter__(self) -> "SQLiteProjectStore":
        if self.connection is None:
            self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _get_connection(self) -> sqlite3.Connection:
        if self.connection is None:
            raise StorageError("Database is not connected")
        return self.connection

    def initialize_schema(self):
        """Create the projects table if it doesn't exist."""
        conn = self._get_connection()
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS projects (
                    id INTEGER PRIMARY KEY,
                    description TEXT,
                    name TEXT NOT NULL,
                    name_with_namespace TEXT NOT NULL,
                    path TEXT NOT NULL,
                    path_with_namespace TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    ssh_url_to_repo TEXT NOT NULL,
                    http_url_to_repo TEXT NOT NULL,
                    web_url TEXT NOT NULL,
                    avatar_url TEXT,
                    last_activity_at TEXT NOT NULL,
                    parent_avatar_url TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_projects_path_with_namespace
                    ON projects(path_with_namespace);
            """)
            conn.commit()
            logger.info("Database schema initialized")
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error initializing schema: {e}")
            raise StorageError(f"Cannot initialize schema: {e}") from e

    def upsert_projects(self, records: Iterable[MirrorRecord]):
        """
        Insert or replace project rows.

        A row with the same id is replaced as a whole. All records are
        written in a single transaction: either every row lands or none does.

        Args:
            records: Mirror records to store
        """
        values = [astuple(record) for record in records]
        if not values:
            return

        conn = self._get_connection()
        placeholders = ", ".join("?" for _ in COLUMNS)
        try:
            conn.executemany(
                f"INSERT OR REPLACE INTO projects ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                values,
            )
            conn.commit()
            logger.info(f"Upserted {len(values)} projects")
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error upserting projects: {e}")
            raise StorageError(f"Cannot upsert projects: {e}") from e

    def list_projects(self) -> List[MirrorRecord]:
        """Return every mirrored project ordered by ascending id."""
        conn = self._get_connection()
        try:
            rows = conn.execute(
                f"SELECT {', '.join(COLUMNS)} FROM projects ORDER BY id ASC"
            ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error listing projects: {e}")
            raise StorageError(f"Cannot list projects: {e}") from e
        return [MirrorRecord(*row) for row in rows]

    def get_project_count(self) -> int:
        """Get the total number of projects in the database."""
        conn = self._get_connection()
        try:
            return conn.execute("SELECT COUNT(*) FROM projects").fetchone()[0]
        except sqlite3.Error as e:
            logger.error(f"Error getting project count: {e}")
            raise StorageError(f"Cannot count projects: {e}") from e
