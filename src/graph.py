"""NetworkX views over a FamilyGraph."""

from collections.abc import Iterable
from typing import TYPE_CHECKING

import networkx as nx

from models import PARENT_OF, SIBLING_OF, SPOUSE_OF, Relationship

if TYPE_CHECKING:
    from family import FamilyGraph


def build_graph(family: "FamilyGraph") -> nx.DiGraph:
    """Build a NetworkX directed graph from the registry."""
    G = nx.DiGraph()

    # Note: use 'person_name' instead of 'name' to avoid conflict with pydot
    for person in family:
        G.add_node(
            person.id,
            person_name=person.name,
            birth_date=person.birth_date,
            alive=person.alive,
        )

    for rel in family.relationships():
        G.add_edge(rel.person1_id, rel.person2_id, relationship_type=rel.relationship_type)
        if rel.relationship_type != PARENT_OF:
            G.add_edge(rel.person2_id, rel.person1_id, relationship_type=rel.relationship_type)

    return G


def build_kinship_graph(family: "FamilyGraph") -> nx.Graph:
    """Undirected view: every relation kind is a plain edge."""
    return build_graph(family).to_undirected()


def build_generation_graph(
    family: "FamilyGraph", extra: Iterable[Relationship] = ()
) -> tuple[nx.DiGraph, dict[int, int]]:
    """
    Contract people who must share a generation row into classes.

    Spouses and siblings sit on the same row, so they are merged into one
    class node. Parent->child edges then run between classes. The returned
    graph is acyclic (and free of self-loops) exactly when rows can be
    assigned.

    Args:
        family: The registry to read relations from
        extra: Prospective relationships not yet written to the registry

    Returns:
        The class-level graph and a mapping person id -> class id
    """
    relationships = list(family.relationships()) + list(extra)

    same_row = nx.Graph()
    same_row.add_nodes_from(family.ids())
    for rel in relationships:
        same_row.add_nodes_from((rel.person1_id, rel.person2_id))
        if rel.relationship_type in (SPOUSE_OF, SIBLING_OF):
            same_row.add_edge(rel.person1_id, rel.person2_id)

    class_of: dict[int, int] = {}
    for class_id, members in enumerate(nx.connected_components(same_row)):
        for person_id in members:
            class_of[person_id] = class_id

    H = nx.DiGraph()
    H.add_nodes_from(set(class_of.values()))
    for rel in relationships:
        if rel.relationship_type == PARENT_OF:
            H.add_edge(
                class_of[rel.person1_id],
                class_of[rel.person2_id],
                parent=rel.person1_id,
                child=rel.person2_id,
            )

    return H, class_of
