# resume_store.py
"""
sqlite backed store for resume records and the profile row, with the resume
files themselves kept in a private directory next to it
"""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_ID = "owner"


class ResumeStore:
    def __init__(self, db_path: str, storage_dir: str):
        self.db_path = db_path
        self.storage_dir = Path(storage_dir)

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS resume_store (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                file_url TEXT NOT NULL,
                active INTEGER NOT NULL DEFAULT 1,
                uploaded_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                linkedin_about TEXT NOT NULL DEFAULT '',
                github_url TEXT NOT NULL DEFAULT ''
            )
            """
        )
        return conn

    def latest_resume(self) -> Optional[Dict]:
        """most recently uploaded resume record, or None when there are none"""
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT file_url, active, uploaded_at FROM resume_store "
                "ORDER BY uploaded_at DESC, id DESC LIMIT 1"
            ).fetchone()
        finally:
            conn.close()
        return dict(row) if row else None

    def download(self, file_url: str) -> bytes:
        path = self.storage_dir / file_url
        # file_url is a bare name inside the private directory
        if path.resolve().parent != self.storage_dir.resolve():
            raise PermissionError(f"Access denied for resume path: {file_url}")
        return path.read_bytes()

    def get_profile(self, profile_id: Optional[str] = None) -> Optional[Dict]:
        """
        reads the profile row, at most one
        without an id it returns whichever profile exists
        """
        conn = self._get_conn()
        try:
            if profile_id is None:
                cur = conn.execute("SELECT linkedin_about, github_url FROM profiles LIMIT 1")
            else:
                cur = conn.execute(
                    "SELECT linkedin_about, github_url FROM profiles WHERE id = ?",
                    (profile_id,),
                )
            row = cur.fetchone()
        finally:
            conn.close()
        return dict(row) if row else None

    def save_profile(self, profile_id: str, linkedin_about: str, github_url: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO profiles (id, linkedin_about, github_url) VALUES (?, ?, ?)",
                (profile_id, linkedin_about, github_url),
            )
            conn.commit()
        finally:
            conn.close()

    def upload_resume(self, filename: str, content: bytes, now: Optional[datetime] = None) -> str:
        """
        stores the file, deactivates every active record, then inserts the
        new one as active, returns the stored file name
        """
        now = now or datetime.now(timezone.utc)
        extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        stored_name = f"resume_{now.strftime('%Y%m%dT%H%M%S%f')}.{extension}"

        self.storage_dir.mkdir(parents=True, exist_ok=True)
        (self.storage_dir / stored_name).write_bytes(content)

        conn = self._get_conn()
        try:
            conn.execute("UPDATE resume_store SET active = 0 WHERE active = 1")
            conn.execute(
                "INSERT INTO resume_store (file_url, active, uploaded_at) VALUES (?, 1, ?)",
                (stored_name, now.isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

        logger.info("stored new resume %s (%d bytes)", stored_name, len(content))
        return stored_name
