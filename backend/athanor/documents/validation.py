"""Structural integrity checks for loom documents.

Operates on the raw (JSON-decoded) mapping so that malformed input produces
readable violations instead of parse errors. Checks run in a fixed order and
every violation is reported, not just the first.
"""

from collections import deque
from typing import Any


def validate_document(data: Any) -> list[str]:
    """Return human-readable violations. An empty list means the document is valid."""
    if not isinstance(data, dict):
        return ["Document must be a JSON object"]

    errors: list[str] = []

    if not data.get("version"):
        errors.append("Missing version field")

    nodes = data.get("nodes")
    if not isinstance(nodes, dict):
        errors.append("Missing nodes mapping")
        return errors

    root_id = data.get("root")
    root = nodes.get(root_id) if isinstance(root_id, str) else None
    if not root_id or root is None:
        errors.append("Invalid root node")

    if not isinstance(root, dict) or "parent" not in root or root["parent"] is not None:
        errors.append("Root node must have null parent")

    entries = {
        node_id: node for node_id, node in nodes.items() if isinstance(node, dict)
    }
    for node_id in nodes:
        if node_id not in entries:
            errors.append(f"Node {node_id} is not an object")

    for node_id, node in entries.items():
        for child_id in _children_of(node):
            if child_id not in nodes:
                errors.append(f"Node {node_id} references non-existent child {child_id}")

    for node_id, node in entries.items():
        parent_id = node.get("parent")
        if parent_id is None:
            continue
        parent = entries.get(parent_id) if isinstance(parent_id, str) else None
        if parent is None or _children_of(parent).count(node_id) != 1:
            errors.append(f"Parent-child mismatch for node {node_id}")

    for node_id, node in entries.items():
        declared = node.get("id")
        if declared != node_id:
            errors.append(f"Node key {node_id} does not match id {declared}")

    for node_id, node in entries.items():
        for child_id in _children_of(node):
            child = entries.get(child_id)
            if child is None:
                continue
            declared_parent = child.get("parent")
            # Non-string parents are reported by the mismatch check above
            if declared_parent != node_id and (
                declared_parent is None or isinstance(declared_parent, str)
            ):
                errors.append(
                    f"Node {child_id} is listed as a child of {node_id}"
                    f" but declares parent {declared_parent}"
                )

    if root is not None:
        reachable = _reachable_from(root_id, entries)
        for node_id in entries:
            if node_id not in reachable:
                errors.append(f"Node {node_id} is not reachable from root")

    return errors


def _children_of(node: dict) -> list[str]:
    children = node.get("children")
    if not isinstance(children, list):
        return []
    return [child_id for child_id in children if isinstance(child_id, str)]


def _reachable_from(root_id: str, entries: dict[str, dict]) -> set[str]:
    visited: set[str] = set()
    queue = deque([root_id])
    while queue:
        node_id = queue.popleft()
        if node_id in visited or node_id not in entries:
            continue
        visited.add(node_id)
        queue.extend(_children_of(entries[node_id]))
    return visited
