from __future__ import annotations

from dataclasses import dataclass
import itertools
import logging
from typing import Sequence

import numpy as np

from data_structures import InternalNode, InvalidArgumentError, LeafNode, TreeNode

logger = logging.getLogger(__name__)

DEFAULT_FEATURES: tuple[str, ...] = ("Temperature", "Humidity", "Wind Speed")
DEFAULT_LABELS: tuple[str, str] = ("Sunny", "Rainy")

# Shared by every generator so that identifiers never collide across trees.
_node_ids = itertools.count(1)


def next_node_id() -> str:
    return f"n{next(_node_ids)}"


@dataclass
class TreeGeneratorParams:
    max_depth: int = 3
    features: tuple[str, ...] = DEFAULT_FEATURES
    labels: tuple[str, str] = DEFAULT_LABELS
    threshold_low: int = 0
    threshold_high: int = 100  # exclusive
    random_state: int | None = None

    def __post_init__(self) -> None:
        self.features = tuple(self.features)
        self.labels = tuple(self.labels)
        if self.max_depth < 0:
            raise InvalidArgumentError("max_depth must be >= 0")
        if not self.features:
            raise InvalidArgumentError("features must not be empty")
        if len(set(self.features)) != len(self.features):
            raise InvalidArgumentError("features must be unique")
        if len(self.labels) != 2 or self.labels[0] == self.labels[1]:
            raise InvalidArgumentError("labels must be two distinct values")
        if self.threshold_high <= self.threshold_low:
            raise InvalidArgumentError("threshold_high must be greater than threshold_low")


class TreeGenerator:
    """Grows random decision trees of a fixed depth over a fixed feature set."""

    def __init__(
        self,
        params: TreeGeneratorParams | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.params = params or TreeGeneratorParams()
        self.rng = rng if rng is not None else np.random.default_rng(self.params.random_state)
        self.trees_generated = 0

    def _leaf(self) -> LeafNode:
        label_idx = int(self.rng.integers(len(self.params.labels)))
        return LeafNode(node_id=next_node_id(), prediction=self.params.labels[label_idx])

    def _grow(self, depth: int) -> TreeNode:
        if depth == 0:
            return self._leaf()

        # The parent id is allocated before its subtrees so ids follow pre-order.
        node_id = next_node_id()
        feature_idx = int(self.rng.integers(len(self.params.features)))
        threshold = int(self.rng.integers(self.params.threshold_low, self.params.threshold_high))
        low = self._grow(depth - 1)
        high = self._grow(depth - 1)
        return InternalNode(
            node_id=node_id,
            feature=self.params.features[feature_idx],
            threshold=threshold,
            low=low,
            high=high,
        )

    def generate(self, depth: int | None = None) -> TreeNode:
        if depth is None:
            depth = self.params.max_depth
        if depth < 0:
            raise InvalidArgumentError("depth must be >= 0")

        tree = self._grow(depth)
        self.trees_generated += 1
        logger.debug("Generated tree %s with depth %d", tree.node_id, depth)
        return tree

    def generate_many(self, n_trees: int, depth: int | None = None) -> list[TreeNode]:
        return [self.generate(depth) for _ in range(n_trees)]


def generate(
    depth: int,
    features: Sequence[str],
    rng: np.random.Generator | None = None,
    labels: Sequence[str] = DEFAULT_LABELS,
) -> TreeNode:
    """Generate one random tree with ``depth`` levels of splits.

    Each internal node picks a feature uniformly from ``features`` and an
    integer threshold uniformly from [0, 100); each leaf picks one of the two
    ``labels``. Pass a seeded ``rng`` for reproducible structure.
    """
    if len(features) == 0:
        raise InvalidArgumentError("features must not be empty")
    if depth < 0:
        raise InvalidArgumentError("depth must be >= 0")

    params = TreeGeneratorParams(
        max_depth=depth,
        features=tuple(features),
        labels=tuple(labels),
    )
    return TreeGenerator(params, rng=rng).generate(depth)
