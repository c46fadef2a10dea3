"""Errors raised by the relationship engine.

Every error is local to a single operation. The HTTP layer maps them onto
``HTTPException`` status codes (see ``kinship.routes.relationships``).
"""

from __future__ import annotations

from typing import Optional


class RelationshipError(Exception):
    """Base class for relationship write/read failures."""


class SelfRelationError(RelationshipError):
    def __init__(self, person_id: str) -> None:
        super().__init__(f"a person cannot be related to themselves: {person_id}")
        self.person_id = person_id


class UnknownKindError(RelationshipError):
    def __init__(self, kind: object) -> None:
        super().__init__(f"unknown relationship kind: {kind!r}")
        self.kind = kind


class PersonNotFoundError(RelationshipError):
    def __init__(self, person_id: str) -> None:
        super().__init__(f"person not found: {person_id}")
        self.person_id = person_id


class RelationshipNotFoundError(RelationshipError):
    def __init__(self, edge_id: str) -> None:
        super().__init__(f"relationship not found: {edge_id}")
        self.edge_id = edge_id


class TemporalValidationError(RelationshipError):
    """A parent/child edge that contradicts the birth dates."""

    def __init__(self, reason: str, suggestion: Optional[str] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.suggestion = suggestion


class ConflictingEdgeError(RelationshipError):
    """A different relationship already links the two people."""

    def __init__(self, existing_edge_id: str, existing_kind: str, message: str) -> None:
        super().__init__(message)
        self.existing_edge_id = existing_edge_id
        self.existing_kind = existing_kind


class UniquenessConflict(Exception):
    """Raised by a store when an identical (from_id, to_id, kind) row already exists."""

    def __init__(self, from_id: str, to_id: str, kind: str) -> None:
        super().__init__(f"relation already stored: {from_id} -> {to_id} ({kind})")
        self.from_id = from_id
        self.to_id = to_id
        self.kind = kind
