"""Tests for the session service: independent trees, serialized mutations."""

import asyncio

import pytest

from athanor.documents.service import DocumentValidationError
from athanor.models import NodeMetadata
from athanor.sessions.service import SessionNotFoundError, SessionService
from athanor.trees.engine import NodeNotFoundError
from tests.fixtures import make_valid_document


class TestSessionLifecycle:
    def test_create_session(self, session_service):
        session = session_service.create_session("Once upon a time", title="T")
        assert session.title == "T"
        assert session.tree.get_full_path(session.tree.root_id) == "Once upon a time"

    def test_sessions_are_independent(self, session_service):
        one = session_service.create_session("One")
        two = session_service.create_session("Two")
        one.tree.add_child_to_selected(" more")
        assert len(one.tree) == 2
        assert len(two.tree) == 1
        assert one.tree.selected_node_id != two.tree.selected_node_id

    def test_get_missing_session(self, session_service):
        with pytest.raises(SessionNotFoundError):
            session_service.get_session("nope")

    def test_list_and_close(self, session_service):
        a = session_service.create_session("a")
        b = session_service.create_session("b")
        assert [s.session_id for s in session_service.list_sessions()] == [
            a.session_id, b.session_id,
        ]
        session_service.close_session(a.session_id)
        assert [s.session_id for s in session_service.list_sessions()] == [b.session_id]
        with pytest.raises(SessionNotFoundError):
            session_service.close_session(a.session_id)

    def test_open_document(self, session_service):
        doc = make_valid_document()
        doc["metadata"]["title"] = "Imported"
        session = session_service.open_document(doc)
        assert session.title == "Imported"
        assert session.tree.root_id == "r"

    def test_open_invalid_document_creates_nothing(self, session_service):
        doc = make_valid_document()
        doc["nodes"]["b"]["children"] = ["ghost"]
        with pytest.raises(DocumentValidationError):
            session_service.open_document(doc)
        assert session_service.list_sessions() == []


class TestMutations:
    async def test_add_and_update(self, session_service):
        session = session_service.create_session("Once")
        node = await session_service.add_node(session.session_id, session.tree.root_id, " upon")
        await session_service.update_text(session.session_id, node.id, " upon a time")
        assert session.tree.selected_path == "Once"
        await session_service.select_node(session.session_id, node.id)
        assert session.tree.selected_path == "Once upon a time"

    async def test_add_node_with_select(self, session_service):
        session = session_service.create_session("Once")
        node = await session_service.add_node(
            session.session_id, session.tree.root_id, " upon", select=True
        )
        assert session.tree.selected_node_id == node.id

    async def test_add_node_with_select_to_missing_parent(self, session_service):
        session = session_service.create_session("Once")
        with pytest.raises(NodeNotFoundError):
            await session_service.add_node(
                session.session_id, "ghost", " upon", select=True
            )
        assert session.tree.selected_node_id == session.tree.root_id
        assert len(session.tree) == 1

    async def test_add_children_is_all_or_nothing(self, session_service):
        session = session_service.create_session("Once")
        with pytest.raises(NodeNotFoundError):
            await session_service.add_children(
                session.session_id, "ghost", [("a", None), ("b", None)]
            )
        assert len(session.tree) == 1

        created = await session_service.add_children(
            session.session_id,
            session.tree.root_id,
            [(" a", NodeMetadata(model="m")), (" b", None)],
        )
        assert [n.text for n in created] == [" a", " b"]
        assert created[0].metadata.model == "m"

    async def test_concurrent_adds_are_serialized(self, session_service):
        session = session_service.create_session("Once")
        root_id = session.tree.root_id
        await asyncio.gather(*[
            session_service.add_node(session.session_id, root_id, str(i))
            for i in range(20)
        ])
        root = session.tree.get_node(root_id)
        assert len(root.children) == 20
        assert len(set(root.children)) == 20

    async def test_delete_moves_selection(self, session_service):
        session = session_service.create_session("Once")
        node = await session_service.add_to_selected(session.session_id, " upon")
        assert session.tree.selected_node_id == node.id
        deleted = await session_service.delete_node(session.session_id, node.id)
        assert deleted == [node.id]
        assert session.tree.selected_node_id == session.tree.root_id

    async def test_replace_document_keeps_tree_on_failure(self, session_service):
        session = session_service.create_session("Once")
        original = session.tree
        bad = make_valid_document()
        del bad["version"]
        with pytest.raises(DocumentValidationError):
            await session_service.replace_document(session.session_id, bad)
        assert session.tree is original
        assert len(session.tree) == 1

    async def test_replace_document(self, session_service):
        session = session_service.create_session("Once", title="Old")
        await session_service.replace_document(session.session_id, make_valid_document())
        assert session.tree.root_id == "r"
        assert session.title is None

    def test_export_and_layout(self, session_service):
        session = session_service.create_session("Once", title="Story")
        doc = session_service.export(session.session_id)
        assert doc.metadata.title == "Story"
        layout = session_service.layout(session.session_id)
        assert layout.level_widths == [1]
