"""Session service: owns independent loom trees and serializes their mutations.

The tree engine is synchronous and not reentrant. Every mutating call made
through this service runs under the owning session's ``asyncio.Lock`` so an
asynchronous caller can never interleave two mutations on one tree.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from athanor.documents.service import export_document, import_document
from athanor.layout.engine import LayoutConfig, TreeLayout, layout_tree
from athanor.models import LoomDocument, LoomNode, NodeMetadata
from athanor.trees.engine import LoomTree, NodeNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class LoomSession:
    session_id: str
    tree: LoomTree
    title: str | None = None
    description: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)


class SessionService:
    """Registry of live sessions plus lock-guarded access to their trees."""

    def __init__(self, layout_config: LayoutConfig | None = None) -> None:
        self._sessions: dict[str, LoomSession] = {}
        self._layout_config = layout_config or LayoutConfig()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def create_session(
        self,
        seed_text: str = "",
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> LoomSession:
        tree = LoomTree()
        tree.initialize(seed_text)
        return self._register(tree, title, description)

    def open_document(self, data: Any) -> LoomSession:
        """Import a document into a brand-new session.

        Raises DocumentFormatError or DocumentValidationError; no session is
        created in that case.
        """
        tree = import_document(data)
        meta = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
        return self._register(tree, meta.get("title"), meta.get("description"))

    def get_session(self, session_id: str) -> LoomSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list_sessions(self) -> list[LoomSession]:
        return sorted(self._sessions.values(), key=lambda s: s.created_at)

    def close_session(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(session_id)
        logger.info("Closed session %s", session_id)

    # ------------------------------------------------------------------
    # Serialized mutations
    # ------------------------------------------------------------------

    async def add_node(
        self,
        session_id: str,
        parent_id: str,
        text: str,
        metadata: NodeMetadata | None = None,
        *,
        select: bool = False,
    ) -> LoomNode:
        """Add a child of ``parent_id``; with ``select`` the cursor moves onto it
        in the same locked step."""
        session = self.get_session(session_id)
        async with session.lock:
            node = session.tree.add_child_node(parent_id, text, metadata)
            if select:
                session.tree.select_node(node.id)
            return node

    async def add_children(
        self,
        session_id: str,
        parent_id: str,
        children: list[tuple[str, NodeMetadata | None]],
    ) -> list[LoomNode]:
        """Add several siblings as one step: all of them or none."""
        session = self.get_session(session_id)
        async with session.lock:
            if session.tree.get_node(parent_id) is None:
                raise NodeNotFoundError(parent_id)
            return [
                session.tree.add_child_node(parent_id, text, metadata)
                for text, metadata in children
            ]

    async def add_to_selected(
        self, session_id: str, text: str, metadata: NodeMetadata | None = None
    ) -> LoomNode:
        session = self.get_session(session_id)
        async with session.lock:
            return session.tree.add_child_to_selected(text, metadata)

    async def update_text(self, session_id: str, node_id: str, text: str) -> LoomNode:
        session = self.get_session(session_id)
        async with session.lock:
            return session.tree.update_node_text(node_id, text)

    async def delete_node(self, session_id: str, node_id: str) -> list[str]:
        session = self.get_session(session_id)
        async with session.lock:
            return session.tree.delete_node(node_id)

    async def select_node(self, session_id: str, node_id: str) -> LoomNode:
        session = self.get_session(session_id)
        async with session.lock:
            return session.tree.select_node(node_id)

    async def set_collapsed(
        self, session_id: str, node_id: str, collapsed: bool
    ) -> LoomNode:
        session = self.get_session(session_id)
        async with session.lock:
            return session.tree.set_collapsed(node_id, collapsed)

    async def replace_document(self, session_id: str, data: Any) -> LoomSession:
        """Load a document into an existing session. The live tree is only
        replaced once the document has passed validation."""
        session = self.get_session(session_id)
        async with session.lock:
            tree = import_document(data)
            session.tree = tree
            meta = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
            session.title = meta.get("title", session.title)
            session.description = meta.get("description", session.description)
        return session

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def export(self, session_id: str) -> LoomDocument:
        session = self.get_session(session_id)
        return export_document(
            session.tree, title=session.title, description=session.description
        )

    def layout(self, session_id: str) -> TreeLayout:
        return layout_tree(self.get_session(session_id).tree, self._layout_config)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _register(
        self, tree: LoomTree, title: str | None, description: str | None
    ) -> LoomSession:
        session = LoomSession(
            session_id=str(uuid4()), tree=tree, title=title, description=description
        )
        self._sessions[session.session_id] = session
        logger.info("Opened session %s (%d nodes)", session.session_id, len(tree))
        return session


class SessionNotFoundError(Exception):
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")
