"""Consistency checks for the family graph."""

from collections.abc import Iterable
from typing import TYPE_CHECKING

import networkx as nx

from graph import build_generation_graph
from models import Relationship

if TYPE_CHECKING:
    from family import FamilyGraph


def find_generation_conflict(
    family: "FamilyGraph", extra: Iterable[Relationship] = ()
) -> list[int] | None:
    """
    Check whether generation rows can still be assigned.

    A parent must sit at least one row above each child while spouses and
    siblings share a row. That fails when a parent and its child end up in the
    same spouse/sibling class, or when parent->child edges between classes
    loop back on themselves.

    Returns the person ids along the offending cycle, or None if the
    relations (plus `extra`) are consistent.
    """
    H, _ = build_generation_graph(family, extra)

    try:
        cycle = nx.find_cycle(H, orientation="original")
    except nx.NetworkXNoCycle:
        return None

    people: list[int] = []
    for u, v, _direction in cycle:
        edge = H.edges[u, v]
        for person_id in (edge["parent"], edge["child"]):
            if person_id not in people:
                people.append(person_id)
    return people


def check_invariants(family: "FamilyGraph") -> list[str]:
    """
    Validate the registry for:
    - Self relations
    - Asymmetric spouse or sibling links
    - Children lists out of step with father/mother fields
    - Generation cycles

    Returns a list of warning messages.
    """
    warnings: list[str] = []

    for person in family:
        name = person.name

        if person.id in person.relation_ids():
            warnings.append(f"{name} is related to themselves")

        for role in ("father", "mother"):
            parent_id = getattr(person, role)
            if parent_id is None:
                continue
            if parent_id not in family:
                warnings.append(f"{name} has a {role} ({parent_id}) missing from the registry")
            elif person.id not in family.get(parent_id).children:
                warnings.append(f"{name} is missing from their {role}'s children")

        if person.spouse is not None:
            if person.spouse not in family:
                warnings.append(f"{name} has a spouse ({person.spouse}) missing from the registry")
            elif family.get(person.spouse).spouse != person.id:
                warnings.append(f"Spouse link between {name} and {person.spouse} is one-sided")

        for child_id in person.children:
            if child_id not in family:
                warnings.append(f"{name} has a child ({child_id}) missing from the registry")
                continue
            child = family.get(child_id)
            if person.id not in (child.father, child.mother):
                warnings.append(f"{name} lists {child.name} as a child but is not their parent")

        if len(set(person.children)) != len(person.children):
            warnings.append(f"{name} has duplicate children")

        for sibling_id in person.siblings:
            if sibling_id not in family:
                warnings.append(f"{name} has a sibling ({sibling_id}) missing from the registry")
            elif person.id not in family.get(sibling_id).siblings:
                warnings.append(f"Sibling link between {name} and {sibling_id} is one-sided")

    cycle = find_generation_conflict(family)
    if cycle is not None:
        warnings.append(f"Generation cycle detected in relationships: {cycle}")

    return warnings
