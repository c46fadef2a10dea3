"""Create and remove relationships.

``RelationshipWriter`` is the only code path that writes relation rows. It runs
every parent/child request through ``temporal.check_parent_child``; the two
modes differ only in what happens after an invalid verdict:

- ``strict``: the request fails with ``TemporalValidationError``;
- ``smart``: the birth dates pick the direction, and if that direction passes
  the same check the edge is stored with it (``corrected=True``).

A relationship that already exists in the requested form is a no-op success;
a different relationship between the same two people is never overwritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

try:
    from .errors import (
        ConflictingEdgeError,
        PersonNotFoundError,
        RelationshipError,
        RelationshipNotFoundError,
        SelfRelationError,
        TemporalValidationError,
        UniquenessConflict,
        UnknownKindError,
    )
    from .models import Person, RelationEdge, RelationKind
    from .relations import canonical_relation
    from .store import RelationStore
    from .temporal import (
        TemporalResult,
        Verdict,
        check_parent_child,
        infer_direction,
        relationship_warnings,
    )
except ImportError:  # pragma: no cover
    from errors import (
        ConflictingEdgeError,
        PersonNotFoundError,
        RelationshipError,
        RelationshipNotFoundError,
        SelfRelationError,
        TemporalValidationError,
        UniquenessConflict,
        UnknownKindError,
    )
    from models import Person, RelationEdge, RelationKind
    from relations import canonical_relation
    from store import RelationStore
    from temporal import (
        TemporalResult,
        Verdict,
        check_parent_child,
        infer_direction,
        relationship_warnings,
    )

log = logging.getLogger(__name__)


class WriteMode(str, Enum):
    SMART = "smart"
    STRICT = "strict"

    @classmethod
    def parse(cls, value: Any, default: "WriteMode | None" = None) -> "WriteMode":
        if isinstance(value, cls):
            return value
        if value is None or (isinstance(value, str) and not value.strip()):
            return default or cls.STRICT
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"unknown write mode: {value!r}") from None


@dataclass
class CreateResult:
    edge_id: str
    from_id: str
    to_id: str
    requested_kind: RelationKind
    kind: RelationKind
    corrected: bool = False
    # False when an equivalent relationship was already stored.
    created: bool = True
    warnings: list[str] = field(default_factory=list)

    @property
    def actual_kind(self) -> Optional[RelationKind]:
        return self.kind if self.corrected else None

    def to_public(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "success": True,
            "relationship_id": self.edge_id,
            "from_id": self.from_id,
            "to_id": self.to_id,
            "kind": self.kind.value,
            "created": self.created,
            "corrected": self.corrected,
            "warnings": list(self.warnings),
        }
        if self.corrected:
            out["actual_kind"] = self.kind.value
        return out


@dataclass
class RelationshipCheck:
    """Outcome of validating a relationship without writing it."""

    kind: RelationKind
    verdict: Optional[Verdict]
    reason: Optional[str] = None
    suggestion: Optional[str] = None
    inferred_kind: Optional[RelationKind] = None
    warnings: list[str] = field(default_factory=list)
    existing: Optional[RelationEdge] = None

    def to_public(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "verdict": self.verdict.value if self.verdict else None,
            "reason": self.reason,
            "suggestion": self.suggestion,
            "inferred_kind": self.inferred_kind.value if self.inferred_kind else None,
            "warnings": list(self.warnings),
            "existing": (
                {
                    "id": self.existing.id,
                    "from_id": self.existing.from_id,
                    "to_id": self.existing.to_id,
                    "kind": self.existing.kind,
                }
                if self.existing
                else None
            ),
        }


def _parse_kind(kind: Any) -> RelationKind:
    parsed = RelationKind.parse(kind)
    if parsed is None:
        raise UnknownKindError(kind)
    return parsed


class RelationshipWriter:
    def __init__(self, store: RelationStore) -> None:
        self.store = store

    def _load_pair(self, from_id: str, to_id: str) -> tuple[Person, Person]:
        people = self.store.fetch_people([from_id, to_id])
        for pid in (from_id, to_id):
            if pid not in people:
                raise PersonNotFoundError(pid)
        return people[from_id], people[to_id]

    def _existing_between(self, from_id: str, to_id: str) -> list[tuple[RelationEdge, RelationKind]]:
        out: list[tuple[RelationEdge, RelationKind]] = []
        for edge in self.store.fetch_edges_between(from_id, to_id):
            kind = RelationKind.parse(edge.kind)
            if kind is None or edge.from_id == edge.to_id:
                continue
            out.append((edge, kind))
        return out

    def _match_existing(self, from_id: str, to_id: str, kind: RelationKind) -> RelationEdge | None:
        """Return the stored edge equivalent to the request, if any.

        Raises ``ConflictingEdgeError`` if only a different relationship links
        the pair.
        """

        wanted = canonical_relation(from_id, to_id, kind)
        existing = self._existing_between(from_id, to_id)
        for edge, edge_kind in existing:
            if canonical_relation(edge.from_id, edge.to_id, edge_kind) == wanted:
                return edge
        if existing:
            edge, edge_kind = existing[0]
            log.info(
                "Refusing %s -> %s (%s): relation %s already stores %s -> %s (%s)",
                from_id,
                to_id,
                kind.value,
                edge.id,
                edge.from_id,
                edge.to_id,
                edge_kind.value,
            )
            raise ConflictingEdgeError(
                existing_edge_id=edge.id,
                existing_kind=edge_kind.value,
                message=(
                    f"A different relationship already exists: {edge.from_id} is {edge_kind.value} "
                    f"of {edge.to_id}. Remove it before adding a new one."
                ),
            )
        return None

    def _resolve_invalid(
        self,
        subject: Person,
        other: Person,
        requested: RelationKind,
        result: TemporalResult,
        mode: WriteMode,
    ) -> RelationKind:
        error = TemporalValidationError(result.reason or "Invalid parent-child relationship", result.suggestion)
        if mode is not WriteMode.SMART:
            raise error

        inferred = infer_direction(subject, other)
        if inferred is None or inferred is requested:
            raise error
        if check_parent_child(subject, other, inferred).verdict is not Verdict.VALID:
            raise error

        log.info(
            "Corrected %s -> %s from %s to %s based on birth dates",
            subject.id,
            other.id,
            requested.value,
            inferred.value,
        )
        return inferred

    def _store_edge(self, from_id: str, to_id: str, kind: RelationKind) -> tuple[str, bool]:
        existing = self._match_existing(from_id, to_id, kind)
        if existing is not None:
            log.info("Relation %s -> %s (%s) already stored as %s", from_id, to_id, kind.value, existing.id)
            return existing.id, False

        try:
            return self.store.insert_edge(from_id, to_id, kind.value), True
        except UniquenessConflict:
            # Another request stored the same row between our read and insert.
            existing = self._match_existing(from_id, to_id, kind)
            if existing is None:
                raise RelationshipError(
                    f"relation {from_id} -> {to_id} ({kind.value}) changed concurrently; retry"
                ) from None
            log.info("Relation %s -> %s (%s) stored concurrently as %s", from_id, to_id, kind.value, existing.id)
            return existing.id, False

    def create_relationship(
        self,
        from_id: str,
        to_id: str,
        kind: RelationKind | str,
        mode: WriteMode | str = WriteMode.STRICT,
    ) -> CreateResult:
        """Store ``from_id <kind> of to_id``.

        Raises a ``RelationshipError`` subclass on failure; see module docs for
        how *mode* changes the handling of chronologically impossible requests.
        """

        requested = _parse_kind(kind)
        write_mode = WriteMode.parse(mode)
        if from_id == to_id:
            raise SelfRelationError(from_id)

        subject, other = self._load_pair(from_id, to_id)

        actual = requested
        if requested.is_lineal:
            result = check_parent_child(subject, other, requested)
            if result.is_invalid:
                actual = self._resolve_invalid(subject, other, requested, result, write_mode)

        warnings = relationship_warnings(subject, other, actual)
        edge_id, created = self._store_edge(from_id, to_id, actual)
        if created:
            log.info("Created relation %s: %s -> %s (%s)", edge_id, from_id, to_id, actual.value)

        return CreateResult(
            edge_id=edge_id,
            from_id=from_id,
            to_id=to_id,
            requested_kind=requested,
            kind=actual,
            corrected=actual is not requested,
            created=created,
            warnings=warnings,
        )

    def remove_relationship(self, edge_id: str) -> RelationEdge:
        """Delete one stored edge. Reciprocal duplicates are left alone."""

        edge = self.store.fetch_edge(edge_id)
        if edge is None:
            raise RelationshipNotFoundError(edge_id)
        if not self.store.delete_edge(edge_id):
            raise RelationshipNotFoundError(edge_id)
        log.info("Deleted relation %s: %s -> %s (%s)", edge.id, edge.from_id, edge.to_id, edge.kind)
        return edge

    def check_relationship(self, from_id: str, to_id: str, kind: RelationKind | str) -> RelationshipCheck:
        """Run the create-time checks without writing anything."""

        requested = _parse_kind(kind)
        if from_id == to_id:
            raise SelfRelationError(from_id)
        subject, other = self._load_pair(from_id, to_id)

        check = RelationshipCheck(kind=requested, verdict=None)
        if requested.is_lineal:
            result = check_parent_child(subject, other, requested)
            check.verdict = result.verdict
            check.reason = result.reason
            check.suggestion = result.suggestion
            check.inferred_kind = infer_direction(subject, other)
        check.warnings = relationship_warnings(subject, other, requested)

        wanted = canonical_relation(from_id, to_id, requested)
        existing = self._existing_between(from_id, to_id)
        for edge, edge_kind in existing:
            if canonical_relation(edge.from_id, edge.to_id, edge_kind) == wanted:
                check.existing = edge
                break
        else:
            if existing:
                check.existing = existing[0][0]
        return check
