"""Tree engine: in-memory loom tree with CRUD, traversal, and path reconstruction.

Every operation is synchronous and runs to completion. Mutations validate
their inputs before touching state, so a failed call leaves the tree exactly
as it was.
"""

import logging
from collections import deque
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from uuid import uuid4

from athanor.models import LoomNode, NodeMetadata, TreeStats, utcnow

logger = logging.getLogger(__name__)

_MAX_ID_ATTEMPTS = 100


def _uuid_id() -> str:
    return str(uuid4())


class LoomTree:
    """A root seed and its branching continuations, plus a selection cursor.

    Each instance is owned by one session; nothing here is process-global.
    """

    def __init__(self, id_factory: Callable[[], str] | None = None) -> None:
        self._nodes: dict[str, LoomNode] = {}
        self._root_id: str | None = None
        self._selected_node_id: str | None = None
        self._id_factory = id_factory or _uuid_id
        self._retired_ids: set[str] = set()

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> Mapping[str, LoomNode]:
        return MappingProxyType(self._nodes)

    @property
    def root_id(self) -> str | None:
        return self._root_id

    @property
    def selected_node_id(self) -> str | None:
        return self._selected_node_id

    @property
    def is_empty(self) -> bool:
        return not self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, seed_text: str = "") -> LoomNode:
        """Replace any existing state with a single root node."""
        root = LoomNode(id=self._next_id(), text=seed_text, parent=None)
        self._retired_ids.update(self._nodes)
        self._nodes.clear()
        self._nodes[root.id] = root
        self._root_id = root.id
        self._selected_node_id = root.id
        logger.debug("Initialized tree with root %s", root.id)
        return root

    def load_nodes(
        self,
        root_id: str,
        nodes: Mapping[str, LoomNode],
        selected_node_id: str | None = None,
    ) -> None:
        """Replace state verbatim. Links are trusted as given, not re-derived.

        Callers are expected to have validated the structure beforehand.
        """
        if root_id not in nodes:
            raise NodeNotFoundError(root_id)
        loaded = {node_id: node.model_copy(deep=True) for node_id, node in nodes.items()}
        selected = root_id
        if isinstance(selected_node_id, str) and selected_node_id in loaded:
            selected = selected_node_id

        # All checks done; commit the new state
        self._retired_ids.update(self._nodes)
        self._retired_ids.difference_update(loaded)
        self._nodes = loaded
        self._root_id = root_id
        self._selected_node_id = selected
        logger.debug("Loaded %d nodes under root %s", len(self._nodes), root_id)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> LoomNode | None:
        return self._nodes.get(node_id)

    def get_children(self, node_id: str) -> list[LoomNode]:
        """Direct children in display order. Empty for a missing node."""
        node = self._nodes.get(node_id)
        if node is None:
            return []
        return [self._nodes[cid] for cid in node.children if cid in self._nodes]

    def get_parent(self, node_id: str) -> LoomNode | None:
        node = self._nodes.get(node_id)
        if node is None or node.parent is None:
            return None
        return self._nodes.get(node.parent)

    def get_path_nodes(self, node_id: str) -> list[LoomNode]:
        """Nodes from the root down to ``node_id``.

        A broken parent link ends the walk: the nodes collected up to that
        point are returned. A revisited id ends it the same way.
        """
        path: list[LoomNode] = []
        seen: set[str] = set()
        current = node_id
        while current is not None and current not in seen:
            node = self._nodes.get(current)
            if node is None:
                break
            seen.add(current)
            path.append(node)
            current = node.parent
        path.reverse()
        return path

    def get_full_path(self, node_id: str) -> str:
        """The passage ending at ``node_id``: ancestor texts joined root-first."""
        return "".join(node.text for node in self.get_path_nodes(node_id))

    def depth(self, node_id: str) -> int:
        return max(len(self.get_path_nodes(node_id)) - 1, 0)

    def get_stats(self) -> TreeStats:
        return TreeStats(
            total_nodes=len(self._nodes),
            root_id=self._root_id,
            selected_node_id=self._selected_node_id,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_child_node(
        self, parent_id: str, text: str, metadata: NodeMetadata | None = None
    ) -> LoomNode:
        """Create a node under ``parent_id``, appended after existing siblings."""
        parent = self._nodes.get(parent_id)
        if parent is None:
            logger.warning("add_child_node: parent %s not found", parent_id)
            raise NodeNotFoundError(parent_id)

        child = LoomNode(
            id=self._next_id(),
            text=text,
            parent=parent_id,
            metadata=metadata.model_copy() if metadata is not None else NodeMetadata(),
        )
        self._nodes[child.id] = child
        parent.children.append(child.id)
        logger.debug("Added node %s under %s", child.id, parent_id)
        return child

    def delete_node(self, node_id: str) -> list[str]:
        """Remove ``node_id`` and all of its descendants.

        Returns the removed ids in removal order (descendants before their
        ancestors). The root can never be deleted.
        """
        if node_id == self._root_id:
            logger.warning("delete_node: refusing to delete root %s", node_id)
            raise InvalidOperationError("Cannot delete root node")
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)

        # Pre-order collection with an explicit stack, removed in reverse so
        # every child goes before its parent.
        order: list[str] = []
        removed: set[str] = set()
        stack = [node_id]
        while stack:
            current = stack.pop()
            if current in removed or current == self._root_id or current not in self._nodes:
                continue
            removed.add(current)
            order.append(current)
            stack.extend(self._nodes[current].children)
        order.reverse()

        for current in order:
            del self._nodes[current]
        self._retired_ids.update(removed)

        parent = self._nodes.get(node.parent) if node.parent is not None else None
        if parent is not None:
            parent.children = [cid for cid in parent.children if cid != node_id]

        if self._selected_node_id in removed:
            self._selected_node_id = parent.id if parent is not None else self._root_id

        logger.debug("Deleted subtree %s (%d nodes)", node_id, len(order))
        return order

    def update_node_text(self, node_id: str, text: str) -> LoomNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        node.text = text
        node.metadata.edited = True
        node.metadata.edited_at = utcnow()
        logger.debug("Updated text of node %s", node_id)
        return node

    def set_collapsed(self, node_id: str, collapsed: bool) -> LoomNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        node.collapsed = collapsed
        return node

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_node(self, node_id: str) -> LoomNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        self._selected_node_id = node_id
        return node

    @property
    def selected_node(self) -> LoomNode | None:
        if self._selected_node_id is None:
            return None
        return self._nodes.get(self._selected_node_id)

    @property
    def selected_path(self) -> str:
        if self._selected_node_id is None:
            return ""
        return self.get_full_path(self._selected_node_id)

    def add_child_to_selected(
        self, text: str, metadata: NodeMetadata | None = None
    ) -> LoomNode:
        """Continue from the selection and move the cursor onto the new node."""
        if self._selected_node_id is None:
            raise InvalidOperationError("Tree is not initialized")
        child = self.add_child_node(self._selected_node_id, text, metadata)
        self._selected_node_id = child.id
        return child

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def iter_breadth_first(self) -> Iterator[LoomNode]:
        """Nodes reachable from the root, level by level, each once."""
        if self._root_id is None:
            return
        visited: set[str] = set()
        queue = deque([self._root_id])
        while queue:
            node_id = queue.popleft()
            if node_id in visited:
                continue
            node = self._nodes.get(node_id)
            if node is None:
                continue
            visited.add(node_id)
            yield node
            queue.extend(node.children)

    def search(self, term: str) -> list[str]:
        """Ids of nodes whose own text contains ``term``, ignoring case."""
        if not term:
            return []
        needle = term.casefold()
        return [node.id for node in self.iter_breadth_first() if needle in node.text.casefold()]

    def get_leaf_paths(self) -> list[list[str]]:
        """Every root-to-leaf path as a list of ids, in display order."""
        if self._root_id is None or self._root_id not in self._nodes:
            return []
        paths: list[list[str]] = []
        stack: list[list[str]] = [[self._root_id]]
        while stack:
            path = stack.pop()
            node = self._nodes[path[-1]]
            child_ids = [
                cid for cid in node.children if cid in self._nodes and cid not in path
            ]
            if not child_ids:
                paths.append(path)
                continue
            for cid in reversed(child_ids):
                stack.append(path + [cid])
        return paths

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _next_id(self) -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            node_id = self._id_factory()
            if node_id not in self._nodes and node_id not in self._retired_ids:
                return node_id
        raise InvalidOperationError(
            f"Id factory produced no unused id in {_MAX_ID_ATTEMPTS} attempts"
        )


class NodeNotFoundError(Exception):
    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class InvalidOperationError(Exception):
    pass
