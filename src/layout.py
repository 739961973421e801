"""Generation/column grid layout for a family graph."""

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

import networkx as nx

from matrix import CHILD_CODES, PARENT_CODES, PEER_CODES, RelationCode, RelationMatrix, build_relation_matrix
from models import GridCoord

if TYPE_CHECKING:
    from family import FamilyGraph

logger = logging.getLogger(__name__)


@dataclass
class LayoutOptions:
    group_gap: int = 1  # empty columns between sibling groups
    spouse_offset: float = 1.0
    settle_ancestors: bool = False  # pull parents down to sit right above their shallowest child
    cell_width: float = 180.0  # used when handing coordinates to a renderer
    cell_height: float = 160.0


def _adjacency(matrix: RelationMatrix) -> list[list[tuple[int, RelationCode]]]:
    return [matrix.neighbours(i) for i in range(len(matrix))]


def _spouses(adjacency) -> dict[int, int]:
    return {i: j for i, row in enumerate(adjacency) for j, code in row if code == RelationCode.SPOUSE}


def _members_by_row(rows: list[int]) -> dict[int, list[int]]:
    by_row: dict[int, list[int]] = {}
    for i, row in enumerate(rows):
        by_row.setdefault(row, []).append(i)
    return by_row


# ============================================================================
# Phase A: generation rows
# ============================================================================


def assign_rows(matrix: RelationMatrix, settle_ancestors: bool = False) -> list[int]:
    """
    Assign a generation row to every matrix index.

    Work-queue relaxation: everyone starts on row 0 and is queued once.
    Dequeuing a person pushes each child to at least one row below it and
    raises each spouse or sibling to its own row; a person whose row changes
    is queued again. Rows only ever grow, so on consistent data the queue
    drains after at most one pass per generation. Rows are then shifted so
    the top row is 0.

    With `settle_ancestors`, each spouse/sibling class is first lowered to
    sit right above its shallowest child, so the parent of an in-law lands on
    the in-law's parent row instead of the top row.
    """
    n = len(matrix)
    adjacency = _adjacency(matrix)
    rows = [0] * n

    queue = deque(range(n))
    queued = [True] * n
    while queue:
        i = queue.popleft()
        queued[i] = False

        for j, code in adjacency[i]:
            if code in PARENT_CODES:
                target = rows[i] + 1
            elif code in PEER_CODES:
                target = rows[i]
            else:
                # i is the child here; the parent raises i when it is dequeued
                continue

            if rows[j] >= target:
                continue
            if target >= n:
                logger.warning("Generation rows do not converge; parent links contain a cycle")
                return _normalise(rows)

            rows[j] = target
            if not queued[j]:
                queue.append(j)
                queued[j] = True

    if settle_ancestors:
        _settle_ancestors(adjacency, rows)
    return _normalise(rows)


def _settle_ancestors(adjacency, rows: list[int]) -> None:
    """Move each spouse/sibling class down to one row above its shallowest child."""
    peers = nx.Graph()
    peers.add_nodes_from(range(len(rows)))
    peers.add_edges_from((i, j) for i, row in enumerate(adjacency) for j, code in row if code in PEER_CODES)

    classes = [sorted(c) for c in nx.connected_components(peers)]
    class_of = {i: k for k, members in enumerate(classes) for i in members}

    children: dict[int, set[int]] = {k: set() for k in range(len(classes))}
    parent_classes: dict[int, set[int]] = {k: set() for k in range(len(classes))}
    for i, row in enumerate(adjacency):
        for j, code in row:
            if code in PARENT_CODES:
                children[class_of[i]].add(j)
                parent_classes[class_of[j]].add(class_of[i])

    queue = deque(k for k in range(len(classes)) if children[k])
    while queue:
        k = queue.popleft()
        target = min(rows[c] for c in children[k]) - 1
        if target <= max(rows[i] for i in classes[k]):
            continue
        for i in classes[k]:
            rows[i] = target
        queue.extend(parent_classes[k])


def _normalise(rows: list[int]) -> list[int]:
    if not rows:
        return rows
    lowest = min(rows)
    return [row - lowest for row in rows]


# ============================================================================
# Phase B: initial columns
# ============================================================================


def _sibling_groups(members: list[int], adjacency) -> list[list[int]]:
    """Connected components of the same-row sibling relation, in index order."""
    in_row = set(members)
    seen: set[int] = set()
    groups: list[list[int]] = []

    for start in members:
        if start in seen:
            continue
        seen.add(start)
        group = []
        queue = deque([start])
        while queue:
            i = queue.popleft()
            group.append(i)
            for j, code in adjacency[i]:
                if code == RelationCode.SIBLING and j in in_row and j not in seen:
                    seen.add(j)
                    queue.append(j)
        groups.append(sorted(group))

    return groups


def assign_columns(
    matrix: RelationMatrix, rows: list[int], options: LayoutOptions | None = None
) -> list[float]:
    """
    Give every person an integer column, row by row from the top.

    Sibling groups are laid out one after another with `group_gap` empty
    columns between them, ordered by where their parents were placed. A
    married member is followed directly by their spouse when the spouse is in
    the same group or belongs to no group. When the spouse belongs to another
    group, the member goes last in its group and the spouse's group follows
    without a gap, spouse first. People without same-row siblings are
    appended at the end, spouses side by side.
    """
    options = options or LayoutOptions()
    adjacency = _adjacency(matrix)
    spouse_of = _spouses(adjacency)
    parents_of = {i: [j for j, code in row if code in CHILD_CODES] for i, row in enumerate(adjacency)}
    cols = [0.0] * len(matrix)

    by_row = _members_by_row(rows)
    for row in sorted(by_row):
        groups = _sibling_groups(by_row[row], adjacency)
        grouped = [g for g in groups if len(g) > 1]
        loners = [g[0] for g in groups if len(g) == 1]
        loner_set = set(loners)

        def parent_anchor(group: list[int]) -> tuple[float, int]:
            placed = [cols[p] for i in group for p in parents_of[i] if rows[p] < row]
            if not placed:
                return float("inf"), group[0]
            return sum(placed) / len(placed), group[0]

        grouped.sort(key=parent_anchor)
        group_of = {i: k for k, group in enumerate(grouped) for i in group}

        sequence: list[int | None] = []
        placed: set[int] = set()
        emitted: set[int] = set()

        def married_out(i: int, k: int) -> bool:
            """i's spouse belongs to another group that has not been laid out yet."""
            partner = spouse_of.get(i)
            if partner is None or rows[partner] != row:
                return False
            other = group_of.get(partner)
            return other is not None and other != k and other not in emitted

        for k in range(len(grouped)):
            if k in emitted:
                continue

            # follow the chain of groups joined by marriages
            current, lead = k, None
            while current is not None:
                emitted.add(current)
                group = grouped[current]
                bridge = next((i for i in group if i != lead and married_out(i, current)), None)
                order = [i for i in group if i not in (lead, bridge)]
                if lead is not None:
                    order.insert(0, lead)
                if bridge is not None:
                    order.append(bridge)

                for i in order:
                    if i in placed:
                        continue
                    sequence.append(i)
                    placed.add(i)
                    partner = spouse_of.get(i)
                    if (
                        partner is not None
                        and rows[partner] == row
                        and partner not in placed
                        and (partner in group or partner in loner_set)
                    ):
                        sequence.append(partner)
                        placed.add(partner)

                if bridge is None:
                    current = None
                else:
                    lead = spouse_of[bridge]
                    current = group_of[lead]

            sequence.extend([None] * options.group_gap)

        for i in loners:
            if i in placed:
                continue
            sequence.append(i)
            placed.add(i)
            partner = spouse_of.get(i)
            if partner is not None and partner in loner_set and partner not in placed:
                sequence.append(partner)
                placed.add(partner)

        for position, i in enumerate(sequence):
            if i is not None:
                cols[i] = float(position)

    return cols


# ============================================================================
# Phase C: centre parents over children
# ============================================================================


def shifted_mean(lo: float, hi: float) -> float:
    """Mean of lo, lo+1, ... up to hi, minus half a column."""
    steps = int(hi - lo) + 1
    total = sum(lo + k for k in range(steps))
    return total / steps - 0.5


def _resolve_overlaps(members: list[int], cols: list[float]) -> None:
    previous = None
    for i in sorted(members, key=lambda m: (cols[m], m)):
        if previous is not None and cols[i] <= cols[previous]:
            cols[i] = cols[previous] + 1
        previous = i


def center_rows(
    matrix: RelationMatrix,
    rows: list[int],
    cols: list[float],
    options: LayoutOptions | None = None,
) -> list[float]:
    """
    Re-place every row from the bottom up so parents sit over their children.

    The deepest row keeps its Phase B columns. In each row above, a person
    with children moves to the shifted mean of the span covered by those
    children and their same-row spouses, and their spouse takes the next
    column. Parents are placed in order of that target, never left of the
    previous couple. Childless people follow the rightmost placed person.
    Any remaining overlap is pushed right.
    """
    options = options or LayoutOptions()
    adjacency = _adjacency(matrix)
    spouse_of = _spouses(adjacency)
    children_of = {i: [j for j, code in row if code in PARENT_CODES] for i, row in enumerate(adjacency)}
    cols = list(cols)

    by_row = _members_by_row(rows)
    for row in sorted(by_row, reverse=True)[1:]:
        members = sorted(by_row[row], key=lambda m: (cols[m], m))
        placed: set[int] = set()
        waiting: list[int] = []
        units: list[tuple[float, int, list[int]]] = []

        for position, i in enumerate(members):
            if i in placed:
                continue
            if not children_of[i]:
                waiting.append(i)
                continue

            span = []
            for child in children_of[i]:
                span.append(cols[child])
                partner = spouse_of.get(child)
                if partner is not None and rows[partner] == rows[child]:
                    span.append(cols[partner])

            unit = [i]
            placed.add(i)
            partner = spouse_of.get(i)
            if partner is not None and rows[partner] == row and partner not in placed:
                unit.append(partner)
                placed.add(partner)
            units.append((shifted_mean(min(span), max(span)), position, unit))

        rightmost = None
        for target, _, unit in sorted(units, key=lambda u: (u[0], u[1])):
            start = target if rightmost is None else max(target, rightmost + 1)
            cols[unit[0]] = start
            if len(unit) > 1:
                cols[unit[1]] = start + options.spouse_offset
            rightmost = cols[unit[-1]]

        if rightmost is None:
            rightmost = -1.0
        for i in waiting:
            if i in placed:
                continue
            rightmost += 1
            cols[i] = rightmost
            placed.add(i)

            partner = spouse_of.get(i)
            if partner is not None and rows[partner] == row and partner not in placed:
                rightmost += options.spouse_offset
                cols[partner] = rightmost
                placed.add(partner)

        _resolve_overlaps(by_row[row], cols)

    return cols


def compute_layout(
    family: "FamilyGraph",
    matrix: RelationMatrix | None = None,
    options: LayoutOptions | None = None,
) -> dict[int, GridCoord]:
    """
    Compute a (row, column) grid position for every person.

    Args:
        family: The registry to lay out
        matrix: A relation matrix built from the current state of `family`;
            built here when omitted
        options: Layout tunables

    Returns:
        A mapping person id -> GridCoord. Columns are shifted so the leftmost
        person sits at column 0.
    """
    options = options or LayoutOptions()
    if matrix is None:
        matrix = build_relation_matrix(family)
    if not len(matrix):
        return {}

    rows = assign_rows(matrix, settle_ancestors=options.settle_ancestors)
    cols = assign_columns(matrix, rows, options)
    cols = center_rows(matrix, rows, cols, options)

    leftmost = min(cols)
    layout = {
        person_id: GridCoord(row=rows[i], col=cols[i] - leftmost)
        for i, person_id in enumerate(matrix.ids)
    }
    logger.debug("Laid out %d people over %d generations", len(layout), max(rows) + 1)
    return layout
