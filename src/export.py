"""Hand computed layouts to Graphviz as DOT with pinned positions."""

from pathlib import Path
from typing import TYPE_CHECKING

import pydot

from layout import LayoutOptions
from matrix import RelationCode, RelationMatrix, build_relation_matrix
from models import GridCoord, Person

if TYPE_CHECKING:
    from family import FamilyGraph


EDGE_STYLES = {
    RelationCode.FATHER_OF: {"color": "darkgreen", "penwidth": "3"},
    RelationCode.MOTHER_OF: {"color": "seagreen", "penwidth": "3"},
    RelationCode.SPOUSE: {"color": "orange", "penwidth": "2", "dir": "none"},
    RelationCode.SIBLING: {"color": "gray", "penwidth": "2", "dir": "none", "style": "dashed"},
}


def person_label(person: Person) -> str:
    birth_year = str(person.birth_date.year) if person.birth_date else ""
    if person.alive:
        return f"{person.name}\n{birth_year}"
    return f"{person.name}\n{birth_year} (d.)"


def layout_to_dot(
    family: "FamilyGraph",
    layout: dict[int, GridCoord],
    matrix: RelationMatrix | None = None,
    options: LayoutOptions | None = None,
) -> pydot.Dot:
    """
    Build a DOT graph whose nodes are pinned at their grid positions.

    Parent->child relations become arrows; spouse and sibling pairs become a
    single undirected line each. Child->parent cells mirror parent->child
    ones and are not drawn twice. Render with `neato -n` to keep positions.
    """
    options = options or LayoutOptions()
    if matrix is None:
        matrix = build_relation_matrix(family)

    P = pydot.Dot(graph_type="digraph")
    P.set("layout", "neato")
    P.set("splines", "line")

    for person_id, coord in layout.items():
        person = family.get(person_id)
        x = coord.col * options.cell_width
        # DOT's y axis points up; generation 0 goes on top
        y = -coord.row * options.cell_height
        P.add_node(
            pydot.Node(
                str(person_id),
                label=person_label(person),
                shape="box",
                style="rounded",
                pos=f"{x:.1f},{y:.1f}!",
            )
        )

    for i, j, code in matrix.edges():
        if code in (RelationCode.CHILD_OF_FATHER, RelationCode.CHILD_OF_MOTHER):
            continue
        if code in (RelationCode.SPOUSE, RelationCode.SIBLING) and i > j:
            continue
        P.add_edge(pydot.Edge(str(matrix.ids[i]), str(matrix.ids[j]), **EDGE_STYLES[code]))

    return P


def write_dot(P: pydot.Dot, output_path: Path) -> Path:
    """Write DOT text, or let Graphviz render when the extension asks for it."""
    ext = output_path.suffix.lower().lstrip(".")
    if ext in ("", "dot", "gv"):
        P.write(str(output_path), format="raw")
    else:
        P.write(str(output_path), format=ext)
    return output_path
