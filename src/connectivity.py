"""Deletion safety: refuse to remove people who hold the family graph together."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import networkx as nx

from errors import DeletionRefusedError
from graph import build_kinship_graph

if TYPE_CHECKING:
    from family import FamilyGraph


@dataclass
class DeletionCheck:
    person_id: int
    safe: bool
    reason: str | None = None


def neighbours(family: "FamilyGraph", person_id: int) -> set[int]:
    """Distinct people directly related to `person_id`, in any direction."""
    return family.get(person_id).relation_ids()


def is_cut_vertex(family: "FamilyGraph", person_id: int) -> bool:
    """
    Decide whether removing a person splits their connected component.

    Father, mother, spouse, children and siblings all count as undirected
    edges. People with at most one relative can never disconnect anything.
    Otherwise a search is started from one of their relatives with the person
    hidden from the graph; if it cannot reach everyone else in the component,
    the person is a cut vertex.
    """
    adjacent = neighbours(family, person_id)
    if len(adjacent) <= 1:
        return False

    G = build_kinship_graph(family)
    component = nx.node_connected_component(G, person_id)
    if len(component) == 1:
        return False

    origin = sorted(adjacent)[0]
    without = nx.restricted_view(G, [person_id], [])
    reachable = nx.node_connected_component(without, origin)

    return len(reachable) < len(component) - 1


def check_deletion(family: "FamilyGraph", person_id: int) -> DeletionCheck:
    person = family.get(person_id)
    if is_cut_vertex(family, person_id):
        reason = (
            f"Cannot remove {person.name}: "
            "this would split the family tree into disconnected parts."
        )
        return DeletionCheck(person_id, safe=False, reason=reason)
    return DeletionCheck(person_id, safe=True)


def ensure_deletable(family: "FamilyGraph", person_id: int) -> None:
    verdict = check_deletion(family, person_id)
    if not verdict.safe:
        raise DeletionRefusedError(person_id, verdict.reason)
