"""Data classes for family graph entities."""

from dataclasses import dataclass, field
from datetime import date


def years_between(start: date, end: date) -> int:
    """Completed years from `start` to `end`, never negative."""
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return max(0, years)


@dataclass
class Person:
    id: int
    name: str
    birth_date: date | None
    alive: bool = True
    age: int | None = None  # only kept as given for deceased persons
    photo_path: str | None = None
    latitude: float = 0.0
    longitude: float = 0.0

    # Relation fields hold ids and are only written by FamilyGraph
    father: int | None = field(default=None, init=False)
    mother: int | None = field(default=None, init=False)
    spouse: int | None = field(default=None, init=False)
    children: list[int] = field(default_factory=list, init=False)
    siblings: list[int] = field(default_factory=list, init=False)

    def __post_init__(self):
        if self.alive and self.birth_date is not None:
            self.age = self.age_on(date.today())

    def age_on(self, day: date) -> int | None:
        if self.birth_date is None:
            return None
        return years_between(self.birth_date, day)

    def has_relations(self) -> bool:
        return bool(
            self.father is not None
            or self.mother is not None
            or self.spouse is not None
            or self.children
            or self.siblings
        )

    def relation_ids(self) -> set[int]:
        """Undirected neighbours: parents, spouse, children and siblings."""
        ids = set(self.children) | set(self.siblings)
        for other in (self.father, self.mother, self.spouse):
            if other is not None:
                ids.add(other)
        return ids


@dataclass
class Relationship:
    person1_id: int
    person2_id: int
    relationship_type: str  # PARENT_OF, SPOUSE_OF, SIBLING_OF


PARENT_OF = "PARENT_OF"
SPOUSE_OF = "SPOUSE_OF"
SIBLING_OF = "SIBLING_OF"


@dataclass(frozen=True)
class GridCoord:
    row: int
    col: float
