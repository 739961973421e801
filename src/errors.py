"""Exception types raised by family graph operations."""


class FamilyTreeError(Exception):
    """Base class for every recoverable family graph error."""


class ValidationError(FamilyTreeError, ValueError):
    """A missing, unknown or self-referential argument."""


class ConflictError(FamilyTreeError):
    """The relation is already bound to a different person."""


class GenerationCycleError(ConflictError):
    """The relation would make generation rows impossible to assign."""

    def __init__(self, message: str, cycle: list[int]):
        super().__init__(message)
        self.cycle = cycle


class DeletionRefusedError(FamilyTreeError):
    """Removing the person would split the family graph."""

    def __init__(self, person_id: int, reason: str):
        super().__init__(reason)
        self.person_id = person_id
        self.reason = reason
