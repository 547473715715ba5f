from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Callable, Sequence

import numpy as np

from data_structures import (
    AggregateResult,
    EvaluationResult,
    InvalidArgumentError,
    MissingFeatureError,
    TreeNode,
)
from tree_evaluator import evaluate
from tree_generator import DEFAULT_FEATURES, TreeGenerator, TreeGeneratorParams
from voting import aggregate

logger = logging.getLogger(__name__)

RESIZE_POLICIES = {"preserve", "regenerate"}


def _default_sample() -> dict[str, float]:
    return {"Temperature": 25, "Humidity": 60, "Wind Speed": 10}


@dataclass
class ForestParams:
    features: tuple[str, ...] = DEFAULT_FEATURES
    initial_sample: dict[str, float] = field(default_factory=_default_sample)
    initial_tree_count: int = 3
    min_trees: int = 1
    max_trees: int = 5
    max_depth: int = 3

    value_min: float = 0
    value_max: float = 100

    positive_label: str = "Sunny"
    default_label: str = "Rainy"  # wins ties

    resize_policy: str = "preserve"  # one of: preserve, regenerate
    random_state: int | None = None

    def __post_init__(self) -> None:
        self.features = tuple(self.features)
        if not self.features:
            raise InvalidArgumentError("features must not be empty")
        if self.min_trees < 1 or self.max_trees < self.min_trees:
            raise InvalidArgumentError("tree bounds must satisfy 1 <= min_trees <= max_trees")
        if self.max_depth < 0:
            raise InvalidArgumentError("max_depth must be >= 0")
        if self.value_max <= self.value_min:
            raise InvalidArgumentError("value_max must be greater than value_min")
        if self.positive_label == self.default_label:
            raise InvalidArgumentError("positive_label and default_label must differ")
        if self.resize_policy not in RESIZE_POLICIES:
            raise InvalidArgumentError("resize_policy must be one of: preserve, regenerate")

    @property
    def labels(self) -> tuple[str, str]:
        return (self.positive_label, self.default_label)

    @property
    def value_midpoint(self) -> float:
        return (self.value_min + self.value_max) / 2


ForestListener = Callable[["Forest"], None]


class Forest:
    """Owns the trees and the live sample and keeps derived results current.

    Every mutation recomputes each tree's EvaluationResult and then the
    AggregateResult before any listener is notified, so observers never see a
    result computed against a stale sample or forest.
    """

    def __init__(
        self,
        params: ForestParams | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.params = params or ForestParams()
        self.rng = rng if rng is not None else np.random.default_rng(self.params.random_state)

        self.features: tuple[str, ...] = self.params.features
        self.sample: dict[str, float] = self._initial_sample(self.params.initial_sample)
        self.trees: list[TreeNode] = []
        self.results: list[EvaluationResult | None] = []
        self.errors: list[MissingFeatureError | None] = []
        self.aggregate_result: AggregateResult | None = None
        self.generation = 0
        self._listeners: list[ForestListener] = []
        self._generator = self._make_generator(self.features)

        self.trees = self._generator.generate_many(self.clamp_tree_count(self.params.initial_tree_count))
        self.generation += 1
        self._recompute()

    def _make_generator(self, features: tuple[str, ...]) -> TreeGenerator:
        gen_params = TreeGeneratorParams(
            max_depth=self.params.max_depth,
            features=features,
            labels=self.params.labels,
        )
        return TreeGenerator(gen_params, rng=self.rng)

    def _initial_sample(self, values: dict[str, float]) -> dict[str, float]:
        sample = {}
        for feature in self.features:
            value = values.get(feature, self.params.value_midpoint)
            sample[feature] = self.clamp_value(value)
        return sample

    @property
    def tree_count(self) -> int:
        return len(self.trees)

    def clamp_tree_count(self, n: int) -> int:
        return int(min(max(n, self.params.min_trees), self.params.max_trees))

    def clamp_value(self, value: float) -> float:
        if not math.isfinite(value):
            raise InvalidArgumentError(f"feature value must be finite, got {value}")
        return min(max(value, self.params.value_min), self.params.value_max)

    def subscribe(self, listener: ForestListener) -> Callable[[], None]:
        """Register ``listener`` to run after every recompute. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _recompute(self) -> None:
        self.results = [None] * len(self.trees)
        self.errors = [None] * len(self.trees)
        self.aggregate_result = None

        for idx, tree in enumerate(self.trees):
            # A failure leaves only this tree unevaluated.
            try:
                self.results[idx] = evaluate(tree, self.sample)
            except MissingFeatureError as e:
                self.errors[idx] = e
                logger.warning("Tree %d could not be evaluated: %s", idx + 1, e)

        self.aggregate_result = aggregate(
            self.results,
            positive_label=self.params.positive_label,
            default_label=self.params.default_label,
        )
        logger.debug(
            "Recomputed %d trees, aggregate=%s",
            len(self.trees),
            self.aggregate_result.prediction if self.aggregate_result else None,
        )

        for listener in list(self._listeners):
            listener(self)

    def regenerate(self) -> None:
        self.trees = self._generator.generate_many(self.tree_count)
        self.generation += 1
        logger.info("Regenerated forest with %d trees", self.tree_count)
        self._recompute()

    def set_tree_count(self, n: int) -> int:
        """Resize the forest to ``n`` trees, clamped to [min_trees, max_trees].

        With the ``preserve`` policy existing trees are kept and only the
        difference is generated or dropped from the end; with ``regenerate``
        every tree is replaced. Returns the resulting tree count.
        """
        target = self.clamp_tree_count(n)
        current = self.tree_count

        if self.params.resize_policy == "regenerate":
            self.trees = self._generator.generate_many(target)
            self.generation += 1
        elif target > current:
            self.trees.extend(self._generator.generate_many(target - current))
        elif target < current:
            del self.trees[target:]

        if target != current:
            logger.info("Resized forest from %d to %d trees", current, target)
        self._recompute()
        return self.tree_count

    def add_tree(self) -> int:
        return self.set_tree_count(self.tree_count + 1)

    def remove_tree(self) -> int:
        return self.set_tree_count(self.tree_count - 1)

    def set_feature_value(self, feature: str, value: float) -> float:
        """Replace one sample value, clamped into [value_min, value_max]."""
        if feature not in self.sample:
            raise InvalidArgumentError(f"Unknown feature: {feature}")
        clamped = self.clamp_value(value)
        self.sample[feature] = clamped
        self._recompute()
        return clamped

    def set_sample(self, values: dict[str, float]) -> None:
        """Replace several sample values at once; nothing changes if any value is rejected."""
        updates = {}
        for feature, value in values.items():
            if feature not in self.sample:
                raise InvalidArgumentError(f"Unknown feature: {feature}")
            updates[feature] = self.clamp_value(value)
        self.sample.update(updates)
        self._recompute()

    def set_resize_policy(self, policy: str) -> None:
        """Switch between ``preserve`` and ``regenerate`` without touching the trees."""
        if policy not in RESIZE_POLICIES:
            raise InvalidArgumentError("resize_policy must be one of: preserve, regenerate")
        self.params.resize_policy = policy

    def set_features(self, features: Sequence[str]) -> None:
        """Replace the feature set and regenerate every tree over it.

        Values of retained features are kept; new features start at the
        midpoint of the value range.
        """
        features = tuple(features)
        if not features:
            raise InvalidArgumentError("features must not be empty")

        # Validates the new feature set before any state is replaced.
        generator = self._make_generator(features)
        sample = {
            feature: self.sample.get(feature, self.params.value_midpoint) for feature in features
        }

        self.features = features
        self.sample = sample
        self._generator = generator
        logger.info("Feature set changed to %s", ", ".join(features))
        self.regenerate()

    def path(self, idx: int) -> tuple[str, ...]:
        """Decision path of tree ``idx``, empty while it has no result."""
        result = self.results[idx]
        return result.path if result is not None else ()

    def vote_rows(self) -> list[dict]:
        rows = []
        for idx, result in enumerate(self.results):
            rows.append(
                {
                    "tree": idx + 1,
                    "root_id": self.trees[idx].node_id,
                    "prediction": result.prediction if result is not None else None,
                    "path": " -> ".join(result.path) if result is not None else "",
                    "path_length": len(result.path) if result is not None else 0,
                    "error": str(self.errors[idx]) if self.errors[idx] is not None else "",
                }
            )
        return rows
