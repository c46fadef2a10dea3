from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Optional


class RelationKind(str, Enum):
    PARENT = "parent"
    CHILD = "child"
    SPOUSE = "spouse"
    SIBLING = "sibling"

    @classmethod
    def parse(cls, value: Any) -> Optional["RelationKind"]:
        """Return the kind for a raw store value, or None if it is not one we know."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @property
    def is_symmetric(self) -> bool:
        return self in (RelationKind.SPOUSE, RelationKind.SIBLING)

    @property
    def is_lineal(self) -> bool:
        return self in (RelationKind.PARENT, RelationKind.CHILD)

    def inverse(self) -> "RelationKind":
        return _INVERSE[self]


# The one place that knows how a kind reads from the other endpoint.
_INVERSE: dict[RelationKind, RelationKind] = {
    RelationKind.PARENT: RelationKind.CHILD,
    RelationKind.CHILD: RelationKind.PARENT,
    RelationKind.SPOUSE: RelationKind.SPOUSE,
    RelationKind.SIBLING: RelationKind.SIBLING,
}


@dataclass(frozen=True)
class Person:
    id: str
    birth_date: Optional[date] = None
    death_date: Optional[date] = None
    display_name: Optional[str] = None

    @property
    def label(self) -> str:
        name = (self.display_name or "").strip()
        return name or self.id


@dataclass(frozen=True)
class RelationEdge:
    """A stored directed edge.

    ``kind`` is kept as the raw store value so that unknown kinds can reach the
    normalizer and be dropped there instead of failing the whole fetch.
    """

    id: str
    from_id: str
    to_id: str
    kind: str

    def touches(self, person_id: str) -> bool:
        return self.from_id == person_id or self.to_id == person_id

    def other_end(self, person_id: str) -> str:
        return self.to_id if self.from_id == person_id else self.from_id


@dataclass(frozen=True)
class PerspectiveEntry:
    edge_id: str
    related_person_id: str
    kind: RelationKind
    # True when the viewing person is the edge's from_id.
    owned: bool = False

    def to_public(self) -> dict[str, Any]:
        return {
            "edge_id": self.edge_id,
            "person_id": self.related_person_id,
            "kind": self.kind.value,
        }


@dataclass(frozen=True)
class DisplayEdge:
    id: str
    source_id: str
    target_id: str
    kind: RelationKind
    source_anchor: str
    target_anchor: str

    def to_public(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source_id,
            "target": self.target_id,
            "type": self.kind.value,
            "source_anchor": self.source_anchor,
            "target_anchor": self.target_anchor,
        }
