"""Interactive random-forest visualization.
Run with: streamlit run app.py
"""

from __future__ import annotations

import logging

import graphviz
import pandas as pd
import streamlit as st

from data_structures import InvalidArgumentError, MissingFeatureError
from forest import Forest, ForestParams
from svg_renderer import build_tree_graph, render_graph_svg
from tree_layout import LayoutParams, layout_tree

logger = logging.getLogger(__name__)

HOW_IT_WORKS = """
1. Each decision tree is randomly generated with different feature thresholds.
2. The sample data is run through each tree, following the path based on feature comparisons.
3. Each tree makes an individual prediction (Sunny or Rainy).
4. The final prediction is determined by majority vote among all trees.
5. You can adjust the sample data and see how it affects the predictions in real-time.
6. Try adding or removing trees to see how it impacts the forest's overall prediction!
"""


def get_forest(seed: int | None, resize_policy: str) -> Forest:
    if st.session_state.get("forest_seed") != seed or "forest" not in st.session_state:
        st.session_state["forest"] = Forest(
            ForestParams(random_state=seed, resize_policy=resize_policy)
        )
        st.session_state["forest_seed"] = seed
        logger.info("Created forest (seed=%s, resize_policy=%s)", seed, resize_policy)

    forest = st.session_state["forest"]
    if forest.params.resize_policy != resize_policy:
        forest.set_resize_policy(resize_policy)
    return forest


def tree_diagram(forest: Forest, idx: int, layout: LayoutParams) -> None:
    layout_geometry = layout_tree(forest.trees[idx], layout)
    dot = build_tree_graph(layout_geometry, path=forest.path(idx), params=layout)
    try:
        st.markdown(render_graph_svg(dot), unsafe_allow_html=True)
    except graphviz.ExecutableNotFound:
        # Without a local Graphviz install the browser renderer lays the tree out itself.
        st.graphviz_chart(dot)


def render_sidebar() -> tuple[int | None, str]:
    with st.sidebar:
        st.header("Settings")
        use_seed = st.checkbox("Fixed random seed", value=False)
        seed = None
        if use_seed:
            seed = int(st.number_input("Seed", min_value=0, value=0, step=1))
        resize_policy = st.selectbox(
            "When the tree count changes",
            options=["preserve", "regenerate"],
            format_func=lambda p: "Keep existing trees" if p == "preserve" else "Regenerate all trees",
        )
    return seed, resize_policy


def render_sample_controls(forest: Forest) -> None:
    st.subheader("Sample Data")
    for feature in forest.features:
        value = st.slider(
            feature,
            min_value=int(forest.params.value_min),
            max_value=int(forest.params.value_max),
            value=int(forest.sample[feature]),
            step=1,
            key=f"feature_{feature}",
        )
        if value != forest.sample[feature]:
            try:
                forest.set_feature_value(feature, value)
            except (InvalidArgumentError, MissingFeatureError) as e:
                st.error(f"Could not update {feature}: {e}")


def render_trees(forest: Forest, layout: LayoutParams) -> None:
    st.subheader("Decision Trees in Forest")
    columns = st.columns(forest.tree_count)
    for idx, column in enumerate(columns):
        result = forest.results[idx]
        with column:
            st.markdown(f"**Tree {idx + 1}**")
            tree_diagram(forest, idx, layout)
            if result is not None:
                st.caption(f"Prediction: {result.prediction}")
            else:
                st.error(f"This tree could not be evaluated: {forest.errors[idx]}")


def render_tree_controls(forest: Forest) -> None:
    left, middle, right = st.columns(3)
    with left:
        st.button(
            "Add Tree",
            on_click=forest.add_tree,
            disabled=forest.tree_count >= forest.params.max_trees,
        )
    with middle:
        st.button(
            "Remove Tree",
            on_click=forest.remove_tree,
            disabled=forest.tree_count <= forest.params.min_trees,
        )
    with right:
        st.button("Regenerate forest", on_click=forest.regenerate)


def render_aggregate(forest: Forest) -> None:
    result = forest.aggregate_result
    if result is None:
        return

    positive = forest.params.positive_label
    default = forest.params.default_label
    st.subheader("Final Prediction")
    st.write(f"The Random Forest predicts: **{result.prediction}**")
    st.write(
        f"({result.count(positive)} trees predict {positive}, "
        f"{result.count(default)} trees predict {default})"
    )
    st.dataframe(pd.DataFrame(forest.vote_rows()), hide_index=True)


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    st.set_page_config(page_title="Random Forest Visualization", layout="wide")
    st.title("Random Forest Visualization")

    seed, resize_policy = render_sidebar()
    forest = get_forest(seed, resize_policy)

    render_sample_controls(forest)
    render_trees(forest, LayoutParams())
    render_tree_controls(forest)
    render_aggregate(forest)

    st.subheader("How it works")
    st.markdown(HOW_IT_WORKS)


if __name__ == "__main__":
    main()
