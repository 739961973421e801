"""
1) Parse the family data in a GEDCOM file into a FamilyGraph.
2) Reconcile the relations and infer spouses from shared children.
3) Validate the graph invariants.
4) Build the relation matrix.
5) Compute the generation/column layout.
6) Optionally check whether a person can be removed, and write DOT output.
"""

import argparse
import logging
from pathlib import Path

from connectivity import check_deletion
from errors import FamilyTreeError
from export import layout_to_dot, write_dot
from family import FamilyGraph, infer_spouses_from_children
from layout import LayoutOptions, compute_layout
from matrix import RelationMatrix, build_relation_matrix
from models import GridCoord
from parsing import load_gedcom
from validation import check_invariants


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lay out a GEDCOM family as a generation grid.")
    parser.add_argument("input_gedcom", type=Path, help="Path to input GEDCOM file.")
    parser.add_argument(
        "--dot",
        type=Path,
        default=None,
        help="Write the layout as DOT (or any Graphviz format, by extension).",
    )
    parser.add_argument("--matrix", action="store_true", help="Print the relation matrix.")
    parser.add_argument(
        "--check-delete",
        type=int,
        default=None,
        metavar="ID",
        help="Report whether the person with this id can be removed.",
    )
    parser.add_argument(
        "--group-gap",
        type=int,
        default=1,
        help="Empty columns between sibling groups (default: 1).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def print_warnings(warnings: list[str]):
    if warnings:
        print(f"  Found {len(warnings)} validation warnings:")
        for w in warnings[:10]:  # Show first 10 warnings
            print(f"    - {w}")
        if len(warnings) > 10:
            print(f"    ... and {len(warnings) - 10} more")
    else:
        print("  No validation issues found")


def print_matrix(matrix: RelationMatrix):
    width = max((len(str(pid)) for pid in matrix.ids), default=1) + 1
    print(" " * width + "".join(f"{pid:>{width}}" for pid in matrix.ids))
    for pid, row in zip(matrix.ids, matrix.cells):
        print(f"{pid:>{width}}" + "".join(f"{cell:>{width}}" for cell in row))


def print_layout(family: FamilyGraph, layout: dict[int, GridCoord]):
    for person_id, coord in sorted(layout.items(), key=lambda item: (item[1].row, item[1].col)):
        print(f"  row {coord.row:>3}  col {coord.col:>6.1f}  {family.get(person_id).name} ({person_id})")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    options = LayoutOptions(group_gap=args.group_gap)

    print(f"Parsing GEDCOM file: {args.input_gedcom}")
    family, warnings = load_gedcom(args.input_gedcom)
    relationships = list(family.relationships())
    print(f"  Found {len(family)} persons and {len(relationships)} relationships")

    inferred = infer_spouses_from_children(family)
    if inferred:
        print(f"  Inferred {len(inferred)} spouse pairs from shared children")

    print("Validating graph...")
    print_warnings(warnings + check_invariants(family))

    print("Building relation matrix...")
    matrix = build_relation_matrix(family)
    if args.matrix:
        print_matrix(matrix)

    print("Computing layout...")
    layout = compute_layout(family, matrix, options)
    print_layout(family, layout)

    if args.check_delete is not None:
        try:
            verdict = check_deletion(family, args.check_delete)
        except FamilyTreeError as exc:
            print(f"Error: {exc}")
            return 1
        if verdict.safe:
            print(f"{family.get(args.check_delete).name} can be removed safely")
        else:
            print(verdict.reason)

    if args.dot:
        print(f"Writing layout to: {args.dot}")
        write_dot(layout_to_dot(family, layout, matrix, options), args.dot)

    print("Done!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
