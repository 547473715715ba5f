from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import graphviz

from data_structures import EvaluationResult, TreeNode
from tree_layout import EdgeGeometry, LayoutParams, NodeGeometry, TreeLayout, layout_tree

POINTS_PER_INCH = 72.0


@dataclass
class SvgStyle:
    default_fill: str = "white"
    internal_highlight_fill: str = "#ffd700"
    leaf_highlight_fill: str = "#90EE90"
    stroke: str = "black"
    path_stroke: str = "red"
    internal_font_size: int = 10
    leaf_font_size: int = 12
    font_name: str = "Helvetica"


def _fmt(value: float) -> str:
    return f"{value:g}"


def _inches(points: float) -> str:
    return f"{points / POINTS_PER_INCH:.4f}"


def path_edges(path: Iterable[str]) -> set[tuple[str, str]]:
    path = list(path)
    return set(zip(path[:-1], path[1:]))


def _point(x: float, y: float, params: LayoutParams) -> str:
    # Graphviz puts the origin at the bottom-left corner.
    return f"{_fmt(x)},{_fmt(params.height - y)}"


def _add_node(
    dot: graphviz.Digraph,
    node: NodeGeometry,
    highlighted: bool,
    params: LayoutParams,
    style: SvgStyle,
) -> None:
    if node.is_leaf:
        shape = "box"
        width, height = params.leaf_width, params.leaf_height
        fill = style.leaf_highlight_fill if highlighted else style.default_fill
        font_size = style.leaf_font_size
    else:
        shape = "circle"
        width = height = 2 * params.node_radius
        fill = style.internal_highlight_fill if highlighted else style.default_fill
        font_size = style.internal_font_size

    dot.node(
        node.node_id,
        label=node.label,
        id=node.node_id,
        shape=shape,
        width=_inches(width),
        height=_inches(height),
        pos=_point(node.x, node.y, params) + "!",
        fillcolor=fill,
        color=style.stroke,
        fontsize=str(font_size),
        **{"class": "highlighted" if highlighted else "plain"},
    )


def _add_edge(
    dot: graphviz.Digraph,
    edge: EdgeGeometry,
    on_path: bool,
    params: LayoutParams,
    style: SvgStyle,
) -> None:
    start = _point(edge.x1, edge.y1, params)
    end = _point(edge.x2, edge.y2, params)
    dot.edge(
        edge.parent_id,
        edge.child_id,
        # A straight segment written as a single cubic Bezier.
        pos=f"{start} {start} {end} {end}",
        color=style.path_stroke if on_path else style.stroke,
        **{"class": "path" if on_path else "plain"},
    )


def build_tree_graph(
    layout: TreeLayout,
    path: Iterable[str] = (),
    params: LayoutParams | None = None,
    style: SvgStyle | None = None,
) -> graphviz.Digraph:
    """Build a Graphviz digraph with every node and edge pinned to the layout.

    Nodes whose id is in ``path`` get the highlight fill and edges between
    consecutive path nodes get the path stroke. The graph is meant for the
    ``neato`` engine in no-op mode, which keeps the given positions.
    """
    params = params or LayoutParams()
    style = style or SvgStyle()
    path = list(path)
    on_path_nodes = set(path)
    on_path_edges = path_edges(path)

    dot = graphviz.Digraph(
        engine="neato",
        format="svg",
        graph_attr={
            "bb": f"0,0,{_fmt(params.width)},{_fmt(params.height)}",
            "pad": "0",
            "outputorder": "edgesfirst",
        },
        node_attr={
            "style": "filled",
            "fixedsize": "true",
            "fontname": style.font_name,
        },
        edge_attr={"arrowhead": "none"},
    )
    for edge in layout.edges:
        _add_edge(dot, edge, (edge.parent_id, edge.child_id) in on_path_edges, params, style)
    for node in layout.nodes:
        _add_node(dot, node, node.node_id in on_path_nodes, params, style)
    return dot


def render_graph_svg(dot: graphviz.Digraph) -> str:
    """Render with ``neato -n2`` and return the ``<svg>`` element only."""
    svg = dot.pipe(format="svg", neato_no_op=2, encoding="utf-8")
    return svg[svg.index("<svg"):]


def render_tree_svg(
    tree: TreeNode,
    result: EvaluationResult | None = None,
    params: LayoutParams | None = None,
    style: SvgStyle | None = None,
) -> str:
    params = params or LayoutParams()
    path = result.path if result is not None else ()
    dot = build_tree_graph(layout_tree(tree, params), path=path, params=params, style=style)
    return render_graph_svg(dot)
