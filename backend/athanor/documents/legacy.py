"""Format detection and upgrade for documents written by earlier releases.

Earlier releases saved ``{rootId, selectedNodeId, nodes: [...], exportedAt}``
where each node carried ``parentId``, ``childrenIds`` and ``createdAt`` and no
generation metadata. Those files are upgraded to the canonical shape before
validation, so they go through exactly the same integrity checks.
"""

from typing import Any

from athanor.models import DOCUMENT_VERSION, utcnow


class DocumentFormatError(Exception):
    """Raised when a payload is not recognisable as a loom document."""


def detect_format(data: Any) -> str:
    """Return ``"loom"`` or ``"legacy"``.

    Raises DocumentFormatError for unrecognized structures.
    """
    if not isinstance(data, dict):
        raise DocumentFormatError("Document must be a JSON object")
    if "root" in data and isinstance(data.get("nodes"), dict):
        return "loom"
    if "rootId" in data and isinstance(data.get("nodes"), list):
        return "legacy"
    raise DocumentFormatError("Unrecognized document format")


def upgrade_legacy(data: dict[str, Any]) -> dict[str, Any]:
    """Convert a legacy document to the canonical camelCase document shape."""
    nodes: dict[str, Any] = {}
    for entry in data.get("nodes", []):
        if not isinstance(entry, dict) or "id" not in entry:
            raise DocumentFormatError("Legacy node entries must be objects with an id")
        created = entry.get("createdAt") or data.get("exportedAt")
        nodes[entry["id"]] = {
            "id": entry["id"],
            "text": entry.get("text", ""),
            "parent": entry.get("parentId"),
            "children": list(entry.get("childrenIds") or []),
            "collapsed": False,
            "metadata": {"created": created} if created else {},
        }

    root_id = data.get("rootId")
    root = nodes.get(root_id) if isinstance(root_id, str) else None
    created = (root or {}).get("metadata", {}).get("created") or utcnow().isoformat()
    upgraded: dict[str, Any] = {
        "version": DOCUMENT_VERSION,
        "root": root_id,
        "nodes": nodes,
        "metadata": {
            "created": created,
            "modified": data.get("exportedAt") or created,
            "totalNodes": len(nodes),
            "title": None,
            "description": None,
        },
    }
    if data.get("selectedNodeId"):
        upgraded["selectedNodeId"] = data["selectedNodeId"]
    return upgraded
