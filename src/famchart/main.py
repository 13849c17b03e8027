"""
1) Load person records from a JSON or GEDCOM file.
2) Build the networkx relationship graph.
3) Validate the records for cycles, impossible ages and dangling references.
4) Lay out the cards and focus the default person.
5) Show the interactive chart, or export one fully drawn frame.
"""

from pathlib import Path
import argparse
import logging
import sys

from .config import OVERLAY_MODES, ChartConfig
from .graph import build_graph
from .parsing import filtered_out_ids, load_records
from .validation import validate_graph


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="famchart",
        description="Draw an interactive family chart with focus highlighting.",
    )
    parser.add_argument("records", type=Path, help="Person records (.json, .ged)")
    parser.add_argument("--focus", help="Entity id focused at startup")
    parser.add_argument("--name-filter", help="Only show people whose name contains this text")
    parser.add_argument("--layout", choices=["rows", "dot"], default="rows")
    parser.add_argument("--overlay", choices=OVERLAY_MODES)
    parser.add_argument("--seed", type=int, help="Seed for the branch jitter")
    parser.add_argument("--viewport-width", type=int)
    parser.add_argument("--viewport-height", type=int)
    parser.add_argument(
        "--no-reveal",
        dest="progressive_reveal",
        action="store_false",
        default=None,
        help="Draw every branch at once instead of revealing on scroll",
    )
    parser.add_argument("-o", "--output", type=Path, help="Save one frame (.png, .svg, .pdf) and exit")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ChartConfig.from_args(args)
        print(f"Loading records: {args.records}")
        entities = load_records(args.records)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(f"  Found {len(entities)} persons")

    print("Building NetworkX graph...")
    G = build_graph(entities)
    print(f"  Graph has {G.number_of_nodes()} nodes and {G.number_of_edges()} edges")

    print("Validating graph...")
    warnings = validate_graph(G)
    if warnings:
        print(f"  Found {len(warnings)} validation warnings:")
        for w in warnings[:10]:
            print(f"    - {w}")
        if len(warnings) > 10:
            print(f"    ... and {len(warnings) - 10} more")
    else:
        print("  No validation issues found")

    filtered_out = filtered_out_ids(entities, args.name_filter)

    # Imported late so --help and load errors do not pay for a GUI backend
    from .chart import FamilyChart

    if args.output:
        from matplotlib.figure import Figure

        config.progressive_reveal = False
        figure = Figure()
    else:
        import matplotlib.pyplot as plt

        figure = plt.figure()

    chart = FamilyChart(G, figure, config, filtered_out=filtered_out, layout=args.layout)
    try:
        chart.hydrate(args.focus)
    except OSError as exc:
        # The dot layout needs the Graphviz executables
        print(f"error: layout failed: {exc}", file=sys.stderr)
        return 1

    if args.output:
        chart.save(args.output)
        print(f"Chart saved to {args.output}")
        return 0

    chart.start()
    plt.show()
    chart.stop()
    print("Done!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
