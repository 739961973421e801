from conftest import make_family
from graph import build_generation_graph, build_graph, build_kinship_graph
from models import PARENT_OF, SIBLING_OF, Relationship
from validation import check_invariants, find_generation_conflict


def test_consistent_family_has_no_warnings(three_generations):
    assert check_invariants(three_generations) == []
    assert find_generation_conflict(three_generations) is None


def test_prospective_parent_edge_closing_a_loop(chain):
    cycle = find_generation_conflict(chain, [Relationship(5, 1, PARENT_OF)])
    assert cycle is not None
    assert {1, 5} <= set(cycle)


def test_prospective_sibling_of_own_parent(nuclear):
    cycle = find_generation_conflict(nuclear, [Relationship(3, 1, SIBLING_OF)])
    assert cycle is not None
    assert 1 in cycle and 3 in cycle


def test_one_sided_links_are_reported(nuclear):
    nuclear.get(3).siblings.remove(4)
    nuclear.get(2).spouse = None

    warnings = check_invariants(nuclear)

    assert any("Sibling link between Juan and 3 is one-sided" in w for w in warnings)
    assert any("Spouse link between Luis and 2 is one-sided" in w for w in warnings)


def test_children_out_of_step_with_parents(nuclear):
    nuclear.get(1).children.append(3)
    nuclear.get(4).father = None

    warnings = check_invariants(nuclear)

    assert "Luis has duplicate children" in warnings
    assert "Luis lists Juan as a child but is not their parent" in warnings


def test_missing_ids_and_self_relations():
    family = make_family((1, "Luis", 1950))
    family.get(1).spouse = 1
    family.get(1).siblings.append(77)

    warnings = check_invariants(family)

    assert "Luis is related to themselves" in warnings
    assert "Luis has a sibling (77) missing from the registry" in warnings


def test_generation_cycle_is_reported(chain):
    # bypass the registry checks to corrupt the data
    chain.get(1).father = 5
    chain.get(5).children.append(1)

    warnings = check_invariants(chain)
    assert any(w.startswith("Generation cycle detected") for w in warnings)


def test_graph_views(nuclear):
    G = build_graph(nuclear)
    assert G.number_of_nodes() == 4
    assert G.nodes[1]["person_name"] == "Luis"
    assert G.edges[1, 3]["relationship_type"] == PARENT_OF
    assert not G.has_edge(3, 1)
    assert G.has_edge(3, 4) and G.has_edge(4, 3)

    K = build_kinship_graph(nuclear)
    assert K.number_of_edges() == 6


def test_generation_graph_contracts_peers(three_generations):
    H, class_of = build_generation_graph(three_generations)

    assert class_of[1] == class_of[2]
    assert class_of[3] == class_of[4] == class_of[5]
    assert class_of[6] == class_of[7]
    assert H.number_of_nodes() == 3
    assert H.has_edge(class_of[1], class_of[3])
    assert H.has_edge(class_of[3], class_of[6])
