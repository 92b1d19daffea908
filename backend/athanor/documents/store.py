"""Snapshot store: persists exported documents in SQLite."""

import json
from datetime import UTC, datetime

from athanor.db.connection import Database
from athanor.documents.service import document_to_dict
from athanor.models import LoomDocument


class DocumentStore:
    """Append-only snapshots of exported documents, keyed by session."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def save(self, session_id: str, document: LoomDocument) -> int:
        """Store a snapshot and return its snapshot_id."""
        return await self._db.insert(
            """
            INSERT INTO snapshots (session_id, title, total_nodes, document, saved_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                session_id,
                document.metadata.title,
                document.metadata.total_nodes,
                json.dumps(document_to_dict(document)),
                datetime.now(UTC).isoformat(),
            ),
        )

    async def latest(self, session_id: str) -> dict | None:
        """The newest stored document for a session, as a raw dict."""
        row = await self._db.fetchone(
            "SELECT document FROM snapshots WHERE session_id = ? "
            "ORDER BY snapshot_id DESC LIMIT 1",
            (session_id,),
        )
        if row is None:
            return None
        return json.loads(row["document"])

    async def list_snapshots(self, session_id: str) -> list[dict]:
        """Snapshot summaries for a session, oldest first."""
        rows = await self._db.fetchall(
            "SELECT snapshot_id, session_id, title, total_nodes, saved_at "
            "FROM snapshots WHERE session_id = ? ORDER BY snapshot_id",
            (session_id,),
        )
        return [dict(row) for row in rows]

    async def get_snapshot(self, snapshot_id: int) -> dict | None:
        """Summary of one snapshot (without the document body)."""
        row = await self._db.fetchone(
            "SELECT snapshot_id, session_id, title, total_nodes, saved_at "
            "FROM snapshots WHERE snapshot_id = ?",
            (snapshot_id,),
        )
        return dict(row) if row is not None else None
