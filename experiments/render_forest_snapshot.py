from __future__ import annotations

import argparse
import html
import logging
from pathlib import Path

import sys
import pandas as pd

# Allow running as: python experiments/render_forest_snapshot.py
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from forest import Forest, ForestParams
from svg_renderer import render_tree_svg
from tree_layout import LayoutParams


def build_html(forest: Forest, layout: LayoutParams) -> str:
    parts = [
        "<!DOCTYPE html>",
        "<html><head><meta charset=\"utf-8\"><title>Random Forest Visualization</title></head>",
        "<body>",
        "<h2>Random Forest Visualization</h2>",
        "<h3>Sample Data</h3>",
        "<ul>",
    ]
    for feature, value in forest.sample.items():
        parts.append(f"<li>{html.escape(feature)}: {value:g}</li>")
    parts.append("</ul>")

    parts.append("<h3>Decision Trees in Forest</h3>")
    parts.append("<div style=\"display:flex;flex-wrap:wrap\">")
    for idx, tree in enumerate(forest.trees):
        result = forest.results[idx]
        parts.append("<div style=\"margin:8px;text-align:center\">")
        parts.append(f"<h4>Tree {idx + 1}</h4>")
        parts.append(render_tree_svg(tree, result, params=layout))
        if result is not None:
            parts.append(f"<p>Prediction: {html.escape(result.prediction)}</p>")
        parts.append("</div>")
    parts.append("</div>")

    aggregate = forest.aggregate_result
    if aggregate is not None:
        positive = forest.params.positive_label
        default = forest.params.default_label
        parts.append("<h3>Final Prediction</h3>")
        parts.append(f"<p>The Random Forest predicts: {html.escape(aggregate.prediction)}</p>")
        parts.append(
            f"<p>({aggregate.count(positive)} trees predict {html.escape(positive)}, "
            f"{aggregate.count(default)} trees predict {html.escape(default)})</p>"
        )

    parts.append("</body></html>")
    return "\n".join(parts)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Render a random forest and its decision paths to a static HTML page"
    )
    parser.add_argument("--output", type=str, default="forest_snapshot.html")
    parser.add_argument(
        "--votes-output",
        type=str,
        default=None,
        help="Optional CSV path for the per-tree predictions and decision paths.",
    )
    parser.add_argument("--n-trees", type=int, default=3)
    parser.add_argument("--max-depth", type=int, default=3)
    parser.add_argument("--random-state", type=int, default=42)
    parser.add_argument("--temperature", type=float, default=25)
    parser.add_argument("--humidity", type=float, default=60)
    parser.add_argument("--wind-speed", type=float, default=10)
    parser.add_argument(
        "--resize-policy",
        type=str,
        default="preserve",
        choices=["preserve", "regenerate"],
    )
    parser.add_argument("--verbose", action="store_true")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    params = ForestParams(
        initial_sample={
            "Temperature": args.temperature,
            "Humidity": args.humidity,
            "Wind Speed": args.wind_speed,
        },
        initial_tree_count=args.n_trees,
        max_depth=args.max_depth,
        resize_policy=args.resize_policy,
        random_state=args.random_state,
    )
    forest = Forest(params)
    # Depth is not capped; deeper trees need a taller canvas.
    layout = LayoutParams(height=max(300.0, 30.0 + 60.0 * args.max_depth + 45.0))

    out_path = Path(args.output)
    if not out_path.is_absolute():
        out_path = ROOT / out_path
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(build_html(forest, layout), encoding="utf-8")
    print(f"Wrote forest snapshot to: {out_path}")

    if args.votes_output:
        votes_path = Path(args.votes_output)
        if not votes_path.is_absolute():
            votes_path = ROOT / votes_path
        votes_path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(forest.vote_rows()).to_csv(votes_path, index=False)
        print(f"Wrote per-tree votes to: {votes_path}")

    if forest.aggregate_result is not None:
        print(
            f"Forest prediction: {forest.aggregate_result.prediction} "
            f"{forest.aggregate_result.counts}"
        )


if __name__ == "__main__":
    main()
