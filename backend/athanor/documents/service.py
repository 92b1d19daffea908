"""Document service: export a tree to a versioned document and import it back."""

import json
import logging
from typing import Any

from pydantic import ValidationError

from athanor.documents.legacy import DocumentFormatError, detect_format, upgrade_legacy
from athanor.documents.validation import validate_document
from athanor.models import DOCUMENT_VERSION, DocumentMetadata, LoomDocument, utcnow
from athanor.trees.engine import InvalidOperationError, LoomTree

logger = logging.getLogger(__name__)


def export_document(
    tree: LoomTree,
    *,
    title: str | None = None,
    description: str | None = None,
) -> LoomDocument:
    """Snapshot every node of ``tree`` into a new document."""
    root_id = tree.root_id
    root = tree.get_node(root_id) if root_id is not None else None
    if root is None:
        raise InvalidOperationError("Cannot export an uninitialized tree")

    nodes = {node_id: node.model_copy(deep=True) for node_id, node in tree.nodes.items()}
    return LoomDocument(
        version=DOCUMENT_VERSION,
        root=root.id,
        nodes=nodes,
        metadata=DocumentMetadata(
            created=root.metadata.created,
            modified=utcnow(),
            total_nodes=len(nodes),
            title=title,
            description=description,
        ),
    )


def document_to_dict(document: LoomDocument) -> dict[str, Any]:
    """JSON-ready form of a document, with camelCase keys."""
    return document.model_dump(mode="json", by_alias=True)


def import_document(data: Any, tree: LoomTree | None = None) -> LoomTree:
    """Validate ``data`` and load it into ``tree`` (or a fresh tree).

    Raises DocumentFormatError for unrecognised payloads and
    DocumentValidationError when the structure is inconsistent. In both
    cases ``tree`` is left untouched.
    """
    fmt = detect_format(data)
    if fmt == "legacy":
        data = upgrade_legacy(data)

    violations = validate_document(data)
    if violations:
        logger.warning("Refusing import: %d violation(s)", len(violations))
        raise DocumentValidationError(violations)

    try:
        document = LoomDocument.model_validate(data)
    except ValidationError as e:
        raise DocumentValidationError(
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        ) from e

    selected = data.get("selectedNodeId")
    target = tree if tree is not None else LoomTree()
    target.load_nodes(
        document.root,
        document.nodes,
        selected if isinstance(selected, str) else None,
    )
    logger.debug("Imported %s document with %d nodes", fmt, len(document.nodes))
    return target


def load_document_json(content: bytes | str) -> Any:
    """Decode raw bytes as JSON."""
    try:
        return json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DocumentFormatError(f"Invalid JSON: {e}") from e


class DocumentValidationError(Exception):
    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__("; ".join(violations))
