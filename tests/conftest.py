from datetime import date
from pathlib import Path

import pytest

from family import FamilyGraph
from models import Person

DATA_DIR = Path(__file__).parent / "data"


def make_person(person_id: int, name: str | None = None, year: int = 1980, alive: bool = True) -> Person:
    return Person(person_id, name or f"Person {person_id}", date(year, 1, 1), alive=alive)


def make_family(*people: tuple[int, str, int]) -> FamilyGraph:
    return FamilyGraph(make_person(pid, name, year) for pid, name, year in people)


@pytest.fixture
def sample_gedcom() -> Path:
    return DATA_DIR / "sample.ged"


@pytest.fixture
def nuclear() -> FamilyGraph:
    """Luis (1) and Ana (2) with their sons Pedro (3) and Juan (4)."""
    family = make_family((1, "Luis", 1950), (2, "Ana", 1952), (3, "Pedro", 1980), (4, "Juan", 1982))
    for child in (3, 4):
        family.assign_father(child, 1)
        family.assign_mother(child, 2)
    return family


@pytest.fixture
def chain() -> FamilyGraph:
    """Five generations A(1) -> B(2) -> C(3) -> D(4) -> E(5), father to son."""
    family = make_family(*((pid, name, 1900 + 25 * pid) for pid, name in enumerate("ABCDE", start=1)))
    for parent, child in ((1, 2), (2, 3), (3, 4), (4, 5)):
        family.assign_father(child, parent)
    return family


@pytest.fixture
def three_generations() -> FamilyGraph:
    """
    Grandparents (1, 2) with children Alberto (3) and Ursula (4).
    Alberto married Wendy (5); they have Kiko (6) and Kata (7).
    """
    family = make_family(
        (1, "Gonzalo", 1930),
        (2, "Gloria", 1932),
        (3, "Alberto", 1955),
        (4, "Ursula", 1958),
        (5, "Wendy", 1957),
        (6, "Kiko", 1985),
        (7, "Kata", 1987),
    )
    for child in (3, 4):
        family.assign_father(child, 1)
        family.assign_mother(child, 2)
    family.assign_spouse(3, 5)
    for child in (6, 7):
        family.assign_child_via_father(3, child)
        family.assign_child_via_mother(5, child)
    return family
