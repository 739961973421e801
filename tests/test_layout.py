import logging

import pytest

from conftest import make_family
from layout import LayoutOptions, _resolve_overlaps, assign_columns, assign_rows, compute_layout, shifted_mean
from matrix import RelationMatrix, build_relation_matrix


def two_families():
    """Unrelated fathers 1 and 2, each with two sons (3, 4) and (5, 6)."""
    family = make_family(
        (1, "Hugo", 1950), (2, "Raul", 1951), (3, "Ivan", 1980), (4, "Ivo", 1982), (5, "Rene", 1981), (6, "Rita", 1983)
    )
    for father, child in ((1, 3), (1, 4), (2, 5), (2, 6)):
        family.assign_father(child, father)
    return family


def test_child_sits_one_row_below_father():
    family = make_family((1, "F", 1950), (2, "C", 1980))
    family.assign_father(2, 1)

    layout = compute_layout(family)

    assert layout[2].row == layout[1].row + 1
    assert layout[1].row == 0


def test_empty_family_has_empty_layout():
    assert compute_layout(make_family()) == {}


def test_isolated_people_share_the_top_row():
    family = make_family((1, "A", 1950), (2, "B", 1960), (3, "C", 1970))
    layout = compute_layout(family)

    assert {coord.row for coord in layout.values()} == {0}
    assert sorted(coord.col for coord in layout.values()) == [0, 1, 2]


def test_rows_follow_generations(three_generations):
    layout = compute_layout(three_generations)
    rows = {pid: coord.row for pid, coord in layout.items()}

    assert rows == {1: 0, 2: 0, 3: 1, 4: 1, 5: 1, 6: 2, 7: 2}


def test_parents_are_above_children_and_peers_share_rows(three_generations):
    layout = compute_layout(three_generations)

    for person in three_generations:
        for child_id in person.children:
            assert layout[child_id].row > layout[person.id].row
        if person.spouse is not None:
            assert layout[person.spouse].row == layout[person.id].row
        for sibling_id in person.siblings:
            assert layout[sibling_id].row == layout[person.id].row


def test_chain_descends_one_row_per_generation(chain):
    layout = compute_layout(chain)
    assert [layout[pid].row for pid in range(1, 6)] == [0, 1, 2, 3, 4]


def in_law_family():
    # Quique (5) is only linked through his daughter Elena (4), who married
    # into the third generation
    family = make_family((1, "Gil", 1900), (2, "Fabio", 1930), (3, "Ciro", 1960), (4, "Elena", 1962), (5, "Quique", 1935))
    family.assign_father(2, 1)
    family.assign_father(3, 2)
    family.assign_spouse(3, 4)
    family.assign_father(4, 5)
    return family


def test_in_law_parent_stays_on_top_row():
    layout = compute_layout(in_law_family())

    assert layout[4].row == layout[3].row == 2
    assert layout[5].row == 0


def test_settled_ancestor_sits_above_shallowest_child():
    layout = compute_layout(in_law_family(), options=LayoutOptions(settle_ancestors=True))

    assert layout[4].row == layout[3].row == 2
    assert layout[5].row == 1


def test_positions_are_unique_within_a_row(three_generations):
    layout = compute_layout(three_generations)
    cells = [(coord.row, coord.col) for coord in layout.values()]
    assert len(cells) == len(set(cells))


def test_spouses_are_adjacent(three_generations):
    layout = compute_layout(three_generations)

    assert abs(layout[1].col - layout[2].col) == 1
    assert abs(layout[3].col - layout[5].col) == 1


def test_siblings_are_contiguous(three_generations):
    layout = compute_layout(three_generations)
    assert abs(layout[6].col - layout[7].col) == 1


def test_parents_are_centred_over_children(three_generations):
    layout = compute_layout(three_generations)

    # Alberto and Wendy over Kiko and Kata
    assert (layout[3].col + layout[5].col) / 2 == (layout[6].col + layout[7].col) / 2
    # the grandparents over their children's span, Wendy included
    span = [layout[pid].col for pid in (3, 4, 5)]
    assert (layout[1].col + layout[2].col) / 2 == (min(span) + max(span)) / 2


def test_leftmost_column_is_zero(three_generations):
    layout = compute_layout(three_generations)
    assert min(coord.col for coord in layout.values()) == 0


def test_sibling_groups_are_separated_by_gap():
    family = two_families()
    matrix = build_relation_matrix(family)
    rows = assign_rows(matrix)

    cols = assign_columns(matrix, rows, LayoutOptions(group_gap=2))
    by_id = dict(zip(matrix.ids, cols))

    assert (by_id[1], by_id[2]) == (0, 1)
    assert (by_id[3], by_id[4]) == (0, 1)
    assert (by_id[5], by_id[6]) == (4, 5)


def test_fathers_follow_their_sibling_groups():
    layout = compute_layout(two_families())

    assert layout[1].col < layout[2].col
    assert layout[3].col <= layout[1].col <= layout[4].col
    assert layout[5].col <= layout[2].col <= layout[6].col


@pytest.mark.parametrize(
    "lo, hi, expected",
    [(0, 0, -0.5), (0, 1, 0.0), (0, 2, 0.5), (3, 4, 3.0)],
)
def test_shifted_mean(lo, hi, expected):
    assert shifted_mean(lo, hi) == expected


def test_assign_rows_stops_on_parent_cycle(caplog):
    # two people recorded as each other's father
    matrix = RelationMatrix(ids=[1, 2], index={1: 0, 2: 1}, cells=[[-1, 0], [0, -1]])

    with caplog.at_level(logging.WARNING, logger="layout"):
        rows = assign_rows(matrix)

    assert len(rows) == 2
    assert min(rows) == 0
    assert "do not converge" in caplog.text


def married_households(with_grandchild=False):
    """
    Couples (1, 2) with children 5 and 6, and (3, 4) with children 7 and 8.
    Ivan (5) married Rita (7); optionally they have Nora (9).
    """
    people = [
        (1, "Hugo", 1940),
        (2, "Hilda", 1942),
        (3, "Raul", 1941),
        (4, "Rosa", 1943),
        (5, "Ivan", 1965),
        (6, "Ines", 1967),
        (7, "Rita", 1966),
        (8, "Remo", 1968),
    ]
    if with_grandchild:
        people.append((9, "Nora", 1990))
    family = make_family(*people)
    for father, mother, child in ((1, 2, 5), (1, 2, 6), (3, 4, 7), (3, 4, 8)):
        family.assign_father(child, father)
        family.assign_mother(child, mother)
    family.assign_spouse(5, 7)
    if with_grandchild:
        family.assign_child_via_father(5, 9)
    return family


def test_spouses_from_different_households_are_adjacent():
    layout = compute_layout(married_households())

    assert layout[5].row == layout[7].row == 1
    assert abs(layout[5].col - layout[7].col) == 1
    # both sibling pairs stay together around the couple
    assert abs(layout[5].col - layout[6].col) == 1
    assert abs(layout[7].col - layout[8].col) == 1


def test_married_groups_are_chained_without_gap():
    family = married_households()
    matrix = build_relation_matrix(family)
    cols = assign_columns(matrix, assign_rows(matrix), LayoutOptions(group_gap=3))
    by_id = dict(zip(matrix.ids, cols))

    assert [by_id[pid] for pid in (6, 5, 7, 8)] == [0, 1, 2, 3]


def test_layout_invariants_across_several_households():
    family = married_households(with_grandchild=True)
    layout = compute_layout(family)

    assert family.get(9).mother == 7
    for person in family:
        for child_id in person.children:
            assert layout[child_id].row == layout[person.id].row + 1
        if person.spouse is not None:
            assert layout[person.spouse].row == layout[person.id].row
            assert abs(layout[person.spouse].col - layout[person.id].col) == 1

    cells = [(coord.row, coord.col) for coord in layout.values()]
    assert len(cells) == len(set(cells))
    # Ivan and Rita over their only child
    assert (layout[5].col + layout[7].col) / 2 == layout[9].col


def test_childless_follow_rightmost_parent_with_spouse():
    family = make_family(
        (1, "Gonzalo", 1930), (2, "Gloria", 1932), (3, "Alberto", 1955), (4, "Ursula", 1958), (5, "Kiko", 1985), (6, "Xavi", 1956)
    )
    for child in (3, 4):
        family.assign_father(child, 1)
        family.assign_mother(child, 2)
    family.assign_father(5, 3)
    family.assign_spouse(4, 6)

    layout = compute_layout(family)

    assert {layout[pid].row for pid in (3, 4, 6)} == {1}
    assert layout[4].col == layout[3].col + 1
    assert layout[6].col == layout[4].col + 1


@pytest.mark.parametrize(
    "cols, expected",
    [
        ([2.0, 2.0, 1.0], [2.0, 3.0, 1.0]),
        ([0.0, 0.5, 0.5], [0.0, 0.5, 1.5]),
        ([0.0, 1.0, 2.0], [0.0, 1.0, 2.0]),
    ],
)
def test_overlaps_are_pushed_right(cols, expected):
    _resolve_overlaps([0, 1, 2], cols)
    assert cols == expected
