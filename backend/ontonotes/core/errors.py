"""Error kinds raised by the ontology engine.

Validation errors (`InvalidConceptError`, `NotFoundError`, `UnknownParentError`,
`CycleError`, `ImportFormatError`) are raised before any state change. `PersistenceError`
is the only one that can surface after a new tree value was computed; the
canonical tree is left as it was.
"""

from __future__ import annotations


class OntologyError(Exception):
    """Base class for every failure surfaced by the ontology core."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidConceptError(OntologyError, ValueError):
    """A label or id that can never belong to a concept."""


class NotFoundError(OntologyError):
    """Referenced concept id does not exist in the tree."""

    def __init__(self, node_id: str, message: str | None = None) -> None:
        super().__init__(message or f"Concept {node_id!r} not found")
        self.node_id = node_id


class UnknownParentError(OntologyError):
    """The parent id given for a new concept does not resolve."""

    def __init__(self, parent_id: str) -> None:
        super().__init__(f"Parent concept {parent_id!r} does not exist")
        self.parent_id = parent_id


class CycleError(OntologyError):
    """A move would make a concept its own ancestor."""

    def __init__(self, node_id: str, new_parent_id: str) -> None:
        super().__init__(
            f"Cannot move {node_id!r} under {new_parent_id!r}: "
            f"{new_parent_id!r} is {node_id!r} or one of its descendants"
        )
        self.node_id = node_id
        self.new_parent_id = new_parent_id


class ImportFormatError(OntologyError):
    """Serialized tree is malformed or structurally invalid."""


class PersistenceError(OntologyError):
    """Durable storage failed to read or write a tree snapshot."""
