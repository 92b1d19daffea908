"""Breadth-first layout: turns tree topology into drawable coordinates.

Each depth is centred on x=0 with nodes ``node_spacing`` apart in sibling
arrival order; depth d sits at y = -d * level_height, so the tree grows
upward from a root at the origin. Output depends only on the children
ordering, so identical trees always produce identical layouts.
"""

from collections import deque
from collections.abc import Iterator, Mapping, Sequence

from pydantic import BaseModel, Field

from athanor.trees.engine import LoomTree


class LayoutConfig(BaseModel):
    node_spacing: float = 80
    level_height: float = 100
    node_radius: float = 30


class Point(BaseModel):
    x: float
    y: float


class Bounds(BaseModel):
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


class TreeLayout(BaseModel):
    positions: dict[str, Point] = Field(default_factory=dict)
    depths: dict[str, int] = Field(default_factory=dict)
    level_widths: list[int] = Field(default_factory=list)
    edges: list[tuple[str, str]] = Field(default_factory=list)
    bounds: Bounds | None = None


def compute_layout(
    root_id: str | None,
    children: Mapping[str, Sequence[str]],
    config: LayoutConfig | None = None,
) -> TreeLayout:
    """Lay out every node reachable from ``root_id``.

    ``children`` must map every node id (leaves included) to its ordered
    child ids; ids without an entry are treated as dangling and skipped.
    """
    config = config or LayoutConfig()
    if root_id is None or root_id not in children:
        return TreeLayout()

    # Width pass
    level_widths: list[int] = []
    for _node_id, _parent_id, depth in _walk(root_id, children):
        if depth == len(level_widths):
            level_widths.append(0)
        level_widths[depth] += 1

    # Position pass
    positions: dict[str, Point] = {}
    depths: dict[str, int] = {}
    edges: list[tuple[str, str]] = []
    level_counters = [0] * len(level_widths)
    for node_id, parent_id, depth in _walk(root_id, children):
        index = level_counters[depth]
        level_counters[depth] += 1
        start_x = -((level_widths[depth] - 1) * config.node_spacing) / 2
        positions[node_id] = Point(
            x=start_x + index * config.node_spacing,
            y=-depth * config.level_height,
        )
        depths[node_id] = depth
        if parent_id is not None:
            edges.append((parent_id, node_id))

    return TreeLayout(
        positions=positions,
        depths=depths,
        level_widths=level_widths,
        edges=edges,
        bounds=compute_bounds(positions, config.node_radius),
    )


def layout_tree(tree: LoomTree, config: LayoutConfig | None = None) -> TreeLayout:
    """Lay out a live tree."""
    topology = {node_id: node.children for node_id, node in tree.nodes.items()}
    return compute_layout(tree.root_id, topology, config)


def compute_bounds(positions: Mapping[str, Point], node_radius: float) -> Bounds | None:
    """Extent of all positioned nodes, padded by the node radius."""
    if not positions:
        return None
    xs = [p.x for p in positions.values()]
    ys = [p.y for p in positions.values()]
    return Bounds(
        min_x=min(xs) - node_radius,
        max_x=max(xs) + node_radius,
        min_y=min(ys) - node_radius,
        max_y=max(ys) + node_radius,
    )


def _walk(
    root_id: str, children: Mapping[str, Sequence[str]]
) -> Iterator[tuple[str, str | None, int]]:
    """Breadth-first (node, parent, depth), visiting each id at most once."""
    visited: set[str] = set()
    queue: deque[tuple[str, str | None, int]] = deque([(root_id, None, 0)])
    while queue:
        node_id, parent_id, depth = queue.popleft()
        if node_id in visited or node_id not in children:
            continue
        visited.add(node_id)
        yield node_id, parent_id, depth
        for child_id in children[node_id]:
            queue.append((child_id, node_id, depth + 1))
