"""Shared test helpers."""

from collections.abc import Callable
from itertools import count

from httpx import AsyncClient

from athanor.trees.engine import LoomTree


def counter_ids(prefix: str = "n") -> Callable[[], str]:
    """Deterministic id factory: n1, n2, n3, ..."""
    counter = count(1)
    return lambda: f"{prefix}{next(counter)}"


def build_branching_tree() -> tuple[LoomTree, dict[str, str]]:
    """Root with children A, B, C; B has children B1, B2.

    Returns the tree and {"root", "A", "B", "C", "B1", "B2"} -> id.
    """
    tree = LoomTree(id_factory=counter_ids())
    root = tree.initialize("Once upon a time")
    a = tree.add_child_node(root.id, " a dragon appeared.")
    b = tree.add_child_node(root.id, " a knight rode out.")
    c = tree.add_child_node(root.id, " nothing happened.")
    b1 = tree.add_child_node(b.id, " He was brave.")
    b2 = tree.add_child_node(b.id, " He was lost.")
    return tree, {
        "root": root.id, "A": a.id, "B": b.id, "C": c.id, "B1": b1.id, "B2": b2.id,
    }


def make_document(nodes: dict[str, dict], root: str = "r", **overrides) -> dict:
    """A raw camelCase document around the given node entries."""
    full_nodes = {}
    for node_id, entry in nodes.items():
        full_nodes[node_id] = {
            "id": node_id,
            "text": "",
            "parent": None,
            "children": [],
            "collapsed": False,
            "metadata": {"created": "2026-01-01T00:00:00+00:00"},
            **entry,
        }
    document = {
        "version": "1.0",
        "root": root,
        "nodes": full_nodes,
        "metadata": {
            "created": "2026-01-01T00:00:00+00:00",
            "modified": "2026-01-02T00:00:00+00:00",
            "totalNodes": len(full_nodes),
            "title": None,
            "description": None,
        },
    }
    document.update(overrides)
    return document


def make_valid_document() -> dict:
    """root r -> a -> b, root r -> c."""
    return make_document({
        "r": {"text": "Once", "children": ["a", "c"]},
        "a": {"text": " upon", "parent": "r", "children": ["b"]},
        "b": {"text": " a time", "parent": "a"},
        "c": {"text": " more", "parent": "r"},
    })


def make_legacy_document() -> dict:
    """The flat list format written by earlier releases."""
    return {
        "rootId": "node_1",
        "selectedNodeId": "node_2",
        "exportedAt": "2025-06-01T12:00:00.000Z",
        "nodes": [
            {
                "id": "node_1",
                "text": "Once upon a time",
                "parentId": None,
                "childrenIds": ["node_2"],
                "createdAt": "2025-06-01T11:00:00.000Z",
            },
            {
                "id": "node_2",
                "text": " there was a loom.",
                "parentId": "node_1",
                "childrenIds": [],
                "createdAt": "2025-06-01T11:05:00.000Z",
            },
        ],
    }


# -- API-level helpers --


async def create_test_session(
    client: AsyncClient,
    seed_text: str = "Once upon a time",
    title: str | None = "Test Loom",
) -> dict:
    """Create a session via the API and return the response JSON."""
    resp = await client.post("/api/looms", json={"seed_text": seed_text, "title": title})
    assert resp.status_code == 201
    return resp.json()
