"""Geometry for drawing a decision tree as a perfect binary tree.

A node's position depends only on its depth and its horizontal index within
that level, so the layout can be checked without any drawing surface.
"""
from __future__ import annotations

from dataclasses import dataclass

from data_structures import InternalNode, InvalidArgumentError, TreeNode


@dataclass
class LayoutParams:
    width: float = 320.0
    height: float = 300.0
    top: float = 30.0
    level_spacing: float = 60.0
    node_radius: float = 20.0
    leaf_width: float = 60.0
    leaf_height: float = 30.0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidArgumentError("canvas size must be positive")
        if self.level_spacing <= 0:
            raise InvalidArgumentError("level_spacing must be positive")


@dataclass(frozen=True)
class NodeGeometry:
    node_id: str
    is_leaf: bool
    label: str
    x: float
    y: float
    depth: int
    index: int


@dataclass(frozen=True)
class EdgeGeometry:
    parent_id: str
    child_id: str
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass
class TreeLayout:
    nodes: list[NodeGeometry]
    edges: list[EdgeGeometry]


def node_position(depth: int, index: int, params: LayoutParams) -> tuple[float, float]:
    """Centre of the ``index``-th slot on level ``depth`` (root is depth 0, index 0).

    Each level splits the canvas into 2**depth equal slots, so the horizontal
    gap between a parent and its children halves with every level.
    """
    if depth < 0 or not (0 <= index < 2 ** depth):
        raise InvalidArgumentError(f"no slot {index} on level {depth}")
    slots = 2 ** (depth + 1)
    x = params.width * (2 * index + 1) / slots
    y = params.top + depth * params.level_spacing
    return x, y


def node_label(node: TreeNode) -> str:
    if isinstance(node, InternalNode):
        return f"{node.feature} > {node.threshold}"
    return node.prediction


def node_geometry(node: TreeNode, depth: int, index: int, params: LayoutParams) -> NodeGeometry:
    x, y = node_position(depth, index, params)
    return NodeGeometry(
        node_id=node.node_id,
        is_leaf=not isinstance(node, InternalNode),
        label=node_label(node),
        x=x,
        y=y,
        depth=depth,
        index=index,
    )


def edge_geometry(parent: NodeGeometry, child: NodeGeometry, params: LayoutParams) -> EdgeGeometry:
    # Edges run from the bottom of the parent circle to the top of the child's slot.
    return EdgeGeometry(
        parent_id=parent.node_id,
        child_id=child.node_id,
        x1=parent.x,
        y1=parent.y + params.node_radius,
        x2=child.x,
        y2=child.y - params.node_radius,
    )


def layout_tree(tree: TreeNode, params: LayoutParams | None = None) -> TreeLayout:
    params = params or LayoutParams()
    nodes: list[NodeGeometry] = []
    edges: list[EdgeGeometry] = []

    def place(node: TreeNode, depth: int, index: int) -> NodeGeometry:
        geometry = node_geometry(node, depth, index, params)
        nodes.append(geometry)
        if isinstance(node, InternalNode):
            low = place(node.low, depth + 1, 2 * index)
            edges.append(edge_geometry(geometry, low, params))
            high = place(node.high, depth + 1, 2 * index + 1)
            edges.append(edge_geometry(geometry, high, params))
        return geometry

    place(tree, 0, 0)
    return TreeLayout(nodes=nodes, edges=edges)
