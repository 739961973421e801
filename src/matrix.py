"""Weight-coded adjacency matrix derived from a FamilyGraph."""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from family import FamilyGraph


class RelationCode(IntEnum):
    """Cell values of the relation matrix, read as 'row person ... column person'."""

    NONE = -1
    FATHER_OF = 0  # i is the father of j
    MOTHER_OF = 1  # i is the mother of j
    CHILD_OF_FATHER = 2  # j is the father of i
    CHILD_OF_MOTHER = 3  # j is the mother of i
    SPOUSE = 4
    SIBLING = 5


PARENT_CODES = (RelationCode.FATHER_OF, RelationCode.MOTHER_OF)
CHILD_CODES = (RelationCode.CHILD_OF_FATHER, RelationCode.CHILD_OF_MOTHER)
PEER_CODES = (RelationCode.SPOUSE, RelationCode.SIBLING)


@dataclass
class RelationMatrix:
    ids: list[int]
    index: dict[int, int]
    cells: list[list[int]]

    def __len__(self) -> int:
        return len(self.ids)

    def code(self, a_id: int, b_id: int) -> RelationCode:
        return RelationCode(self.cells[self.index[a_id]][self.index[b_id]])

    def neighbours(self, i: int) -> list[tuple[int, RelationCode]]:
        return [(j, RelationCode(c)) for j, c in enumerate(self.cells[i]) if c != RelationCode.NONE]

    def edges(self) -> Iterator[tuple[int, int, RelationCode]]:
        for i, row in enumerate(self.cells):
            for j, c in enumerate(row):
                if c != RelationCode.NONE:
                    yield i, j, RelationCode(c)


def build_relation_matrix(family: "FamilyGraph") -> RelationMatrix:
    """
    Snapshot the registry into an n x n matrix of RelationCode values.

    Only direct relations are encoded. Parent/child cells are written first,
    then spouses, then siblings, each pair in both directions so mirrored
    cells always agree. The matrix goes stale on any graph mutation and must
    be rebuilt.
    """
    ids = family.ids()
    index = {person_id: i for i, person_id in enumerate(ids)}
    n = len(ids)
    cells = [[int(RelationCode.NONE)] * n for _ in range(n)]

    # 1. Parent -> child
    for person in family:
        i = index[person.id]
        for child_id in person.children:
            j = index[child_id]
            child = family.get(child_id)
            if child.father == person.id:
                cells[i][j] = int(RelationCode.FATHER_OF)
                cells[j][i] = int(RelationCode.CHILD_OF_FATHER)
            elif child.mother == person.id:
                cells[i][j] = int(RelationCode.MOTHER_OF)
                cells[j][i] = int(RelationCode.CHILD_OF_MOTHER)

    # 2. Spouses
    for person in family:
        if person.spouse is None:
            continue
        a, b = index[person.id], index[person.spouse]
        cells[a][b] = cells[b][a] = int(RelationCode.SPOUSE)

    # 3. Siblings
    for person in family:
        a = index[person.id]
        for sibling_id in person.siblings:
            b = index[sibling_id]
            cells[a][b] = cells[b][a] = int(RelationCode.SIBLING)

    return RelationMatrix(ids=ids, index=index, cells=cells)
