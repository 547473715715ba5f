from __future__ import annotations

from data_structures import (
    EvaluationResult,
    InternalNode,
    LeafNode,
    MissingFeatureError,
    Sample,
    TreeNode,
)


def goes_high(value: float, threshold: float) -> bool:
    # A value equal to the threshold routes to the low child.
    return value > threshold


def evaluate(tree: TreeNode, sample: Sample) -> EvaluationResult:
    """Walk ``tree`` from the root to a leaf using the values in ``sample``.

    Returns the ids of every visited node (root first, leaf last) together with
    the leaf's prediction. Raises MissingFeatureError if a visited node splits
    on a feature the sample does not provide.
    """
    node = tree
    path = [node.node_id]
    while isinstance(node, InternalNode):
        if node.feature not in sample:
            raise MissingFeatureError(node.feature, node.node_id)

        value = sample[node.feature]
        node = node.high if goes_high(value, node.threshold) else node.low
        path.append(node.node_id)

    assert isinstance(node, LeafNode)
    return EvaluationResult(path=tuple(path), prediction=node.prediction)

