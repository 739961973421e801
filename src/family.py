"""The family registry: owns every Person and the links between them."""

import logging
from collections.abc import Iterable, Iterator

from connectivity import ensure_deletable
from errors import ConflictError, FamilyTreeError, GenerationCycleError, ValidationError
from models import PARENT_OF, SIBLING_OF, SPOUSE_OF, Person, Relationship
from validation import find_generation_conflict

logger = logging.getLogger(__name__)

FATHER = "father"
MOTHER = "mother"
OTHER_ROLE = {FATHER: MOTHER, MOTHER: FATHER}


class FamilyGraph:
    """
    Registry of persons keyed by id.

    Relation fields on each Person are id references and are only written
    here, through the assign_* operations, reconciliation and removal. Every
    assignment checks all of its preconditions before touching any record,
    so a failed call leaves the graph unchanged.

    Callers must serialise mutating calls; the registry does no locking.
    """

    def __init__(self, persons: Iterable[Person] | None = None):
        self.people: dict[int, Person] = {}
        for person in persons or ():
            self.add_person(person)

    # ------------------------------------------------------------------
    # Registry access
    # ------------------------------------------------------------------

    def __contains__(self, person_id) -> bool:
        return person_id in self.people

    def __iter__(self) -> Iterator[Person]:
        return iter(self.people.values())

    def __len__(self) -> int:
        return len(self.people)

    def ids(self) -> list[int]:
        return list(self.people)

    def get(self, person_id: int) -> Person:
        return self._require(person_id)

    def add_person(self, person: Person) -> Person:
        if person is None:
            raise ValidationError("Person must not be None")
        if person.id in self.people:
            raise ConflictError(f"A person with id {person.id} already exists")
        if person.has_relations():
            raise ValidationError(f"{person.name} already carries relations; add them through the graph")
        self.people[person.id] = person
        return person

    def relationships(self) -> Iterator[Relationship]:
        """Yield one record per parent->child link and per spouse/sibling pair."""
        seen: set[tuple[str, frozenset]] = set()
        for person in self:
            for child_id in person.children:
                yield Relationship(person.id, child_id, PARENT_OF)
            if person.spouse is not None:
                pair = (SPOUSE_OF, frozenset((person.id, person.spouse)))
                if pair not in seen:
                    seen.add(pair)
                    yield Relationship(person.id, person.spouse, SPOUSE_OF)
            for sibling_id in person.siblings:
                pair = (SIBLING_OF, frozenset((person.id, sibling_id)))
                if pair not in seen:
                    seen.add(pair)
                    yield Relationship(person.id, sibling_id, SIBLING_OF)

    def snapshot(self) -> dict[int, tuple]:
        """Comparable copy of every relation field."""
        return {
            p.id: (p.father, p.mother, p.spouse, tuple(p.children), tuple(sorted(p.siblings)))
            for p in self
        }

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def assign_father(self, child_id: int, father_id: int, reconcile: bool = True) -> None:
        child, father = self._pair(child_id, father_id, "child", FATHER)
        self._set_parent(child, father, FATHER, reconcile)

    def assign_mother(self, child_id: int, mother_id: int, reconcile: bool = True) -> None:
        child, mother = self._pair(child_id, mother_id, "child", MOTHER)
        self._set_parent(child, mother, MOTHER, reconcile)

    def assign_child_via_father(self, father_id: int, child_id: int, reconcile: bool = True) -> None:
        child, father = self._pair(child_id, father_id, "child", FATHER)
        self._set_parent(child, father, FATHER, reconcile)

    def assign_child_via_mother(self, mother_id: int, child_id: int, reconcile: bool = True) -> None:
        child, mother = self._pair(child_id, mother_id, "child", MOTHER)
        self._set_parent(child, mother, MOTHER, reconcile)

    def assign_spouse(self, person_id: int, spouse_id: int, reconcile: bool = True) -> None:
        person, spouse = self._pair(person_id, spouse_id, "person", "spouse")

        if person.spouse != spouse.id:
            if person.spouse is not None:
                raise ConflictError(f"{person.name} already has a spouse assigned")
            if spouse.spouse is not None:
                raise ConflictError(f"{spouse.name} already has another spouse assigned")
            self._check_generations(Relationship(person.id, spouse.id, SPOUSE_OF))

            person.spouse = spouse.id
            spouse.spouse = person.id
            logger.debug("Linked %s and %s as spouses", person.name, spouse.name)

        if reconcile:
            self._reconcile(person.id, spouse.id)

    def assign_sibling(self, person_id: int, sibling_id: int, reconcile: bool = True) -> None:
        person, sibling = self._pair(person_id, sibling_id, "person", "sibling")

        if sibling.id not in person.siblings:
            self._check_generations(Relationship(person.id, sibling.id, SIBLING_OF))
            self._bind_siblings(person, sibling)
            logger.debug("Linked %s and %s as siblings", person.name, sibling.name)

        if reconcile:
            self._reconcile(person.id, sibling.id)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def link_all(self, person_id: int) -> bool:
        """
        Propagate the inferences implied by one person's relations.

        1. Both parents known: mark them as spouses.
        2. Merge the siblings recorded by the parents' children (or, without
           parents, by the first known sibling) into this person's siblings.
        3. Give siblings that lack a father or mother this person's.
        4. Share this person's children with their spouse.

        Inferences that would break an invariant are skipped. Running it a
        second time on the same person changes nothing.

        Returns True if any relation was added.
        """
        person = self._require(person_id)

        changed = self._link_parents_as_spouses(person)
        changed |= self._link_siblings(person)
        changed |= self._link_siblings_to_parents(person)
        changed |= self._link_children_to_spouse(person)
        return changed

    def reconcile_all(self, max_rounds: int | None = None) -> int:
        """Run link_all over everyone until a full round changes nothing."""
        limit = max_rounds or len(self.people) + 1
        for rounds in range(1, limit + 1):
            changed = False
            for person_id in list(self.people):
                changed |= self.link_all(person_id)
            if not changed:
                return rounds

        logger.warning("Reconciliation still changing after %d rounds", limit)
        return limit

    def _link_parents_as_spouses(self, person: Person) -> bool:
        if person.father is None or person.mother is None:
            return False

        father = self.people[person.father]
        mother = self.people[person.mother]
        if father.spouse == mother.id:
            return False
        if father.spouse is not None or mother.spouse is not None:
            logger.debug(
                "Not marking %s and %s as spouses: one is married to someone else",
                father.name,
                mother.name,
            )
            return False
        if not self._consistent(Relationship(father.id, mother.id, SPOUSE_OF)):
            return False

        father.spouse = mother.id
        mother.spouse = father.id
        return True

    def _link_siblings(self, person: Person) -> bool:
        source: list[int] = []
        for parent_id in (person.father, person.mother):
            if parent_id is not None:
                source.extend(self.people[parent_id].children)

        if not source and person.siblings:
            source = list(self.people[person.siblings[0]].siblings)

        changed = False
        for other_id in source:
            if other_id == person.id:
                continue
            other = self.people[other_id]
            if other_id not in person.siblings and not self._consistent(
                Relationship(person.id, other_id, SIBLING_OF)
            ):
                continue
            changed |= self._bind_siblings(person, other)
        return changed

    def _link_siblings_to_parents(self, person: Person) -> bool:
        changed = False
        for role in (FATHER, MOTHER):
            parent_id = getattr(person, role)
            if parent_id is None:
                continue
            parent = self.people[parent_id]

            for sibling_id in list(person.siblings):
                sibling = self.people[sibling_id]
                if getattr(sibling, role) is not None:
                    continue
                if getattr(sibling, OTHER_ROLE[role]) == parent_id:
                    continue
                if not self._consistent(Relationship(parent_id, sibling_id, PARENT_OF)):
                    continue
                changed |= self._bind_parent(sibling, parent, role)
        return changed

    def _link_children_to_spouse(self, person: Person) -> bool:
        if person.spouse is None or not person.children:
            return False

        spouse = self.people[person.spouse]
        changed = False
        for child_id in list(person.children):
            child = self.people[child_id]
            if child.father == person.id:
                missing = MOTHER
            elif child.mother == person.id:
                missing = FATHER
            else:
                continue

            current = getattr(child, missing)
            if current is not None and current != spouse.id:
                # child of an earlier partner
                continue
            if current is None:
                if self._acts_as(spouse, OTHER_ROLE[missing]):
                    logger.debug("%s cannot also act as a %s", spouse.name, missing)
                    continue
                if not self._consistent(Relationship(spouse.id, child.id, PARENT_OF)):
                    continue
            changed |= self._bind_parent(child, spouse, missing)
        return changed

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def remove_person(self, person_id: int) -> Person:
        """
        Sever every link to a person and evict it from the registry.

        Raises DeletionRefusedError if the person holds the family together.
        """
        person = self._require(person_id)
        ensure_deletable(self, person.id)

        for parent_id in (person.father, person.mother):
            if parent_id is not None:
                self.people[parent_id].children.remove(person.id)

        if person.spouse is not None:
            self.people[person.spouse].spouse = None

        for child_id in person.children:
            child = self.people[child_id]
            if child.father == person.id:
                child.father = None
            if child.mother == person.id:
                child.mother = None

        for sibling_id in person.siblings:
            self.people[sibling_id].siblings.remove(person.id)

        person.father = person.mother = person.spouse = None
        person.children = []
        person.siblings = []
        del self.people[person.id]

        logger.info("Removed %s (%s) from the family graph", person.name, person.id)
        return person

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, person_id, role: str = "person") -> Person:
        if person_id is None:
            raise ValidationError(f"The {role} must not be None")
        try:
            return self.people[person_id]
        except KeyError:
            raise ValidationError(f"Person ID {person_id} not found in graph") from None

    def _pair(self, first_id, second_id, first_role: str, second_role: str) -> tuple[Person, Person]:
        first = self._require(first_id, first_role)
        second = self._require(second_id, second_role)
        if first.id == second.id:
            raise ValidationError(f"{first.name} cannot be their own {second_role}")
        return first, second

    def _acts_as(self, person: Person, role: str) -> bool:
        return any(getattr(self.people[c], role) == person.id for c in person.children)

    def _set_parent(self, child: Person, parent: Person, role: str, reconcile: bool) -> None:
        current = getattr(child, role)
        if current != parent.id:
            other = OTHER_ROLE[role]
            if current is not None:
                raise ConflictError(f"{child.name} already has a {role} assigned")
            if getattr(child, other) == parent.id:
                raise ConflictError(f"{parent.name} is already the {other} of {child.name}")
            if self._acts_as(parent, other):
                raise ConflictError(
                    f"{parent.name} is already a {other} in another relation and cannot be a {role}"
                )
            self._check_generations(Relationship(parent.id, child.id, PARENT_OF))

            self._bind_parent(child, parent, role)
            logger.debug("Assigned %s as %s of %s", parent.name, role, child.name)

        if reconcile:
            self._reconcile(child.id, parent.id)

    def _bind_parent(self, child: Person, parent: Person, role: str) -> bool:
        changed = getattr(child, role) != parent.id
        setattr(child, role, parent.id)
        if child.id not in parent.children:
            parent.children.append(child.id)
            changed = True
        return changed

    def _bind_siblings(self, person: Person, sibling: Person) -> bool:
        changed = False
        if sibling.id not in person.siblings:
            person.siblings.append(sibling.id)
            changed = True
        if person.id not in sibling.siblings:
            sibling.siblings.append(person.id)
            changed = True
        return changed

    def _check_generations(self, relationship: Relationship) -> None:
        cycle = find_generation_conflict(self, [relationship])
        if cycle is not None:
            names = " -> ".join(self.people[pid].name for pid in cycle)
            raise GenerationCycleError(
                f"Linking {relationship.person1_id} and {relationship.person2_id} "
                f"would put a parent and child on the same generation: {names}",
                cycle,
            )

    def _consistent(self, relationship: Relationship) -> bool:
        if find_generation_conflict(self, [relationship]) is None:
            return True
        logger.debug(
            "Skipping inferred %s between %s and %s: generations would conflict",
            relationship.relationship_type,
            relationship.person1_id,
            relationship.person2_id,
        )
        return False

    def _reconcile(self, *person_ids: int) -> None:
        for person_id in person_ids:
            self.link_all(person_id)


def infer_spouses_from_children(family: FamilyGraph) -> list[tuple[int, int]]:
    """
    Mark pairs of people with identical, non-empty children lists as spouses.

    Pairs where either side is already married to someone else are skipped.
    Returns the pairs that were linked.
    """
    parents = [p for p in family if p.children]
    inferred: list[tuple[int, int]] = []

    for i, a in enumerate(parents):
        for b in parents[i + 1 :]:
            if a.spouse == b.id or set(a.children) != set(b.children):
                continue
            try:
                family.assign_spouse(a.id, b.id)
            except FamilyTreeError as exc:
                logger.debug("Not inferring %s and %s as spouses: %s", a.name, b.name, exc)
                continue
            inferred.append((a.id, b.id))

    return inferred
