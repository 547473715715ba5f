from __future__ import annotations

from typing import Sequence

from data_structures import AggregateResult, EvaluationResult, InvalidArgumentError


def count_votes(predictions: Sequence[str], labels: Sequence[str]) -> dict[str, int]:
    """Count predictions per label. Every label in ``labels`` gets an entry."""
    counts = {label: 0 for label in labels}
    for prediction in predictions:
        if prediction not in counts:
            raise InvalidArgumentError(f"Unknown label: {prediction}")
        counts[prediction] += 1
    return counts


def majority_label(
    counts: dict[str, int],
    tree_count: int,
    positive_label: str,
    default_label: str,
) -> str:
    """Return ``positive_label`` only if it holds strictly more than half the votes.

    The half is real-valued, so with 4 trees a 2/2 split falls back to
    ``default_label`` while 2 of 3 is enough to win.
    """
    if tree_count <= 0:
        raise InvalidArgumentError("tree_count must be positive")
    if counts.get(positive_label, 0) > tree_count / 2:
        return positive_label
    return default_label


def aggregate(
    results: Sequence[EvaluationResult | None],
    positive_label: str,
    default_label: str,
) -> AggregateResult | None:
    """Combine per-tree results by majority vote.

    Returns None until every position holds a result.
    """
    if not results or any(result is None for result in results):
        return None

    counts = count_votes(
        [result.prediction for result in results],
        labels=(positive_label, default_label),
    )
    tree_count = len(results)
    return AggregateResult(
        counts=counts,
        prediction=majority_label(counts, tree_count, positive_label, default_label),
        tree_count=tree_count,
    )
