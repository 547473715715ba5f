"""
Data structures for the random-forest visualization.

Trees are plain dataclasses: an internal node owns its two children and a leaf
carries a class label. Evaluation and aggregation results are frozen so that a
stored result can be compared and shared without copying.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Mapping, Union


class InvalidArgumentError(ValueError):
    """Raised for a precondition violation such as an empty feature set."""


class MissingFeatureError(KeyError):
    """Raised when a sample has no value for a feature referenced by a node."""

    def __init__(self, feature: str, node_id: str | None = None) -> None:
        super().__init__(feature)
        self.feature = feature
        self.node_id = node_id

    def __str__(self) -> str:
        if self.node_id is None:
            return f"sample has no value for feature {self.feature!r}"
        return f"sample has no value for feature {self.feature!r} (node {self.node_id})"


@dataclass
class LeafNode:
    node_id: str
    prediction: str


@dataclass
class InternalNode:
    node_id: str
    feature: str
    threshold: float
    low: TreeNode
    high: TreeNode


TreeNode = Union[InternalNode, LeafNode]

# feature name -> value in [value_min, value_max]
Sample = Mapping[str, float]


@dataclass(frozen=True)
class EvaluationResult:
    path: tuple[str, ...]
    prediction: str

    @property
    def leaf_id(self) -> str:
        return self.path[-1]


@dataclass(frozen=True)
class AggregateResult:
    counts: dict[str, int] = field(default_factory=dict)
    prediction: str = ""
    tree_count: int = 0

    def count(self, label: str) -> int:
        return self.counts.get(label, 0)


def iter_nodes(tree: TreeNode) -> Iterator[TreeNode]:
    """Yield every node of ``tree`` in pre-order (node, low subtree, high subtree)."""
    stack = [tree]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, InternalNode):
            stack.append(node.high)
            stack.append(node.low)


def tree_depth(tree: TreeNode) -> int:
    """Number of edges on the longest root-to-leaf path."""
    if isinstance(tree, LeafNode):
        return 0
    return 1 + max(tree_depth(tree.low), tree_depth(tree.high))


def referenced_features(tree: TreeNode) -> set[str]:
    return {node.feature for node in iter_nodes(tree) if isinstance(node, InternalNode)}
