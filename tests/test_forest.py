import numpy as np
import pytest

from data_structures import (
    InternalNode,
    InvalidArgumentError,
    LeafNode,
    MissingFeatureError,
    iter_nodes,
    referenced_features,
    tree_depth,
)
from forest import Forest, ForestParams
from tree_evaluator import evaluate


def _forest(**kwargs):
    kwargs.setdefault("random_state", 7)
    return Forest(ForestParams(**kwargs))


def test_initial_forest_matches_defaults():
    forest = _forest()

    assert forest.tree_count == 3
    assert forest.sample == {"Temperature": 25, "Humidity": 60, "Wind Speed": 10}
    assert all(tree_depth(tree) == 3 for tree in forest.trees)
    assert all(result is not None for result in forest.results)
    assert forest.aggregate_result is not None
    assert forest.aggregate_result.tree_count == 3


def test_results_match_direct_evaluation():
    forest = _forest()

    for tree, result in zip(forest.trees, forest.results):
        assert result == evaluate(tree, forest.sample)


@pytest.mark.parametrize("requested, expected", [(10, 5), (0, 1), (-3, 1), (4, 4), (1, 1), (5, 5)])
def test_set_tree_count_is_clamped(requested, expected):
    forest = _forest()

    assert forest.set_tree_count(requested) == expected
    assert forest.tree_count == expected
    assert len(forest.results) == expected
    assert forest.aggregate_result.tree_count == expected


def test_preserve_policy_keeps_existing_trees():
    forest = _forest(resize_policy="preserve")
    original = list(forest.trees)

    forest.set_tree_count(5)
    assert forest.trees[:3] == original
    assert all(forest.trees[i] is original[i] for i in range(3))

    forest.set_tree_count(2)
    assert all(forest.trees[i] is original[i] for i in range(2))


def test_regenerate_policy_replaces_every_tree():
    forest = _forest(resize_policy="regenerate")
    original_ids = {tree.node_id for tree in forest.trees}
    generation = forest.generation

    forest.set_tree_count(4)

    assert forest.tree_count == 4
    assert original_ids.isdisjoint({tree.node_id for tree in forest.trees})
    assert forest.generation == generation + 1


def test_add_and_remove_tree_respect_bounds():
    forest = _forest(initial_tree_count=1)

    assert forest.remove_tree() == 1
    for expected in (2, 3, 4, 5, 5):
        assert forest.add_tree() == expected
    assert forest.remove_tree() == 4


def test_set_feature_value_clamps_and_keeps_structure():
    forest = _forest()
    trees = list(forest.trees)

    assert forest.set_feature_value("Temperature", 150) == 100
    assert forest.sample["Temperature"] == 100
    assert forest.set_feature_value("Humidity", -5) == 0
    assert forest.sample["Humidity"] == 0
    assert all(a is b for a, b in zip(trees, forest.trees))


def test_set_feature_value_reevaluates_every_tree():
    forest = _forest(initial_tree_count=5)

    for value in (0, 37, 50, 100):
        forest.set_feature_value("Temperature", value)
        expected = [evaluate(tree, forest.sample) for tree in forest.trees]
        assert forest.results == expected
        sunny = sum(result.prediction == "Sunny" for result in expected)
        assert forest.aggregate_result.count("Sunny") == sunny
        assert forest.aggregate_result.prediction == ("Sunny" if sunny > 5 / 2 else "Rainy")


def test_unknown_or_non_finite_feature_value_is_rejected():
    forest = _forest()

    with pytest.raises(InvalidArgumentError):
        forest.set_feature_value("Pressure", 10)
    with pytest.raises(InvalidArgumentError):
        forest.set_feature_value("Temperature", float("nan"))
    assert forest.sample["Temperature"] == 25


def test_listeners_see_fully_recomputed_state():
    forest = _forest()
    seen = []

    def listener(f):
        assert all(result is not None for result in f.results)
        assert len(f.results) == f.tree_count
        assert f.aggregate_result.tree_count == f.tree_count
        seen.append((f.tree_count, f.sample["Temperature"], f.aggregate_result.prediction))

    unsubscribe = forest.subscribe(listener)
    forest.set_feature_value("Temperature", 80)
    forest.add_tree()
    forest.regenerate()
    unsubscribe()
    forest.remove_tree()

    assert [(count, temp) for count, temp, _ in seen] == [(3, 80), (4, 80), (4, 80)]


def test_regenerate_replaces_trees_and_keeps_sample():
    forest = _forest()
    forest.set_feature_value("Humidity", 12)
    old_ids = {node.node_id for tree in forest.trees for node in iter_nodes(tree)}

    forest.regenerate()

    new_ids = {node.node_id for tree in forest.trees for node in iter_nodes(tree)}
    assert forest.tree_count == 3
    assert forest.sample["Humidity"] == 12
    assert old_ids.isdisjoint(new_ids)


def test_set_features_regenerates_over_new_feature_set():
    forest = _forest()
    forest.set_feature_value("Temperature", 70)

    forest.set_features(["Temperature", "Pressure"])

    assert forest.features == ("Temperature", "Pressure")
    assert forest.sample == {"Temperature": 70, "Pressure": 50}
    for tree in forest.trees:
        assert referenced_features(tree) <= {"Temperature", "Pressure"}
    assert all(result is not None for result in forest.results)

    with pytest.raises(InvalidArgumentError):
        forest.set_features([])


def test_same_seed_builds_same_forest():
    a = _forest(random_state=123)
    b = _forest(random_state=123)

    def signature(tree):
        return [
            (getattr(n, "feature", None), getattr(n, "threshold", None), getattr(n, "prediction", None))
            for n in iter_nodes(tree)
        ]

    assert [signature(t) for t in a.trees] == [signature(t) for t in b.trees]
    assert [r.prediction for r in a.results] == [r.prediction for r in b.results]


def test_explicit_rng_is_used():
    forest = Forest(ForestParams(), rng=np.random.default_rng(5))
    again = Forest(ForestParams(), rng=np.random.default_rng(5))

    assert [r.prediction for r in forest.results] == [r.prediction for r in again.results]


def test_vote_rows_describe_each_tree():
    forest = _forest()

    rows = forest.vote_rows()
    assert [row["tree"] for row in rows] == [1, 2, 3]
    for row, tree, result in zip(rows, forest.trees, forest.results):
        assert row["root_id"] == tree.node_id
        assert row["prediction"] == result.prediction
        assert row["path_length"] == 4


def test_invalid_params_are_rejected():
    with pytest.raises(InvalidArgumentError):
        ForestParams(resize_policy="shuffle")
    with pytest.raises(InvalidArgumentError):
        ForestParams(min_trees=0)
    with pytest.raises(InvalidArgumentError):
        ForestParams(features=())
    with pytest.raises(InvalidArgumentError):
        ForestParams(positive_label="Rainy")


def test_rejected_feature_set_leaves_forest_usable():
    forest = _forest()
    trees = list(forest.trees)
    sample = dict(forest.sample)

    with pytest.raises(InvalidArgumentError):
        forest.set_features(["Pressure", "Pressure"])

    assert forest.features == ("Temperature", "Humidity", "Wind Speed")
    assert forest.sample == sample
    assert all(a is b for a, b in zip(trees, forest.trees))

    forest.set_feature_value("Temperature", 90)
    forest.add_tree()
    forest.regenerate()
    assert all(result is not None for result in forest.results)
    assert forest.aggregate_result.tree_count == 4


def test_set_sample_updates_all_values_then_recomputes():
    forest = _forest()
    calls = []
    forest.subscribe(lambda f: calls.append(dict(f.sample)))

    forest.set_sample({"Temperature": 80, "Humidity": 120})

    assert forest.sample == {"Temperature": 80, "Humidity": 100, "Wind Speed": 10}
    assert calls == [forest.sample]
    assert forest.results == [evaluate(tree, forest.sample) for tree in forest.trees]


def test_rejected_sample_update_changes_nothing():
    forest = _forest()
    results = list(forest.results)

    with pytest.raises(InvalidArgumentError):
        forest.set_sample({"Temperature": 80, "Humidity": float("nan")})
    with pytest.raises(InvalidArgumentError):
        forest.set_sample({"Temperature": 80, "Pressure": 5})

    assert forest.sample == {"Temperature": 25, "Humidity": 60, "Wind Speed": 10}
    assert forest.results == results
    assert forest.results == [evaluate(tree, forest.sample) for tree in forest.trees]


def test_missing_feature_only_affects_its_own_tree():
    forest = _forest()
    forest.trees.insert(
        1,
        InternalNode(
            node_id="pressure-root",
            feature="Pressure",
            threshold=50,
            low=LeafNode(node_id="pressure-low", prediction="Rainy"),
            high=LeafNode(node_id="pressure-high", prediction="Sunny"),
        ),
    )

    forest.set_feature_value("Temperature", 40)

    assert forest.results[1] is None
    assert isinstance(forest.errors[1], MissingFeatureError)
    assert forest.errors[1].feature == "Pressure"
    assert forest.path(1) == ()
    for idx in (0, 2, 3):
        assert forest.results[idx] == evaluate(forest.trees[idx], forest.sample)
        assert forest.errors[idx] is None
    assert forest.aggregate_result is None
    assert "Pressure" in forest.vote_rows()[1]["error"]


def test_set_resize_policy_keeps_trees():
    forest = _forest(resize_policy="preserve")
    forest.set_tree_count(4)
    trees = list(forest.trees)

    forest.set_resize_policy("regenerate")

    assert forest.params.resize_policy == "regenerate"
    assert all(a is b for a, b in zip(trees, forest.trees))
    forest.add_tree()
    assert {t.node_id for t in trees}.isdisjoint({t.node_id for t in forest.trees})

    with pytest.raises(InvalidArgumentError):
        forest.set_resize_policy("shuffle")
    assert forest.params.resize_policy == "regenerate"
