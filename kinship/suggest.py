from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

try:
    from .models import Person, RelationKind
except ImportError:  # pragma: no cover
    from models import Person, RelationKind

_PARENT_GAP_YEARS = (15, 50)
_SIBLING_GAP_MAX_YEARS = 10
_PARENT_CONFIDENCE = 0.8
_SIBLING_CONFIDENCE = 0.6


@dataclass(frozen=True)
class Suggestion:
    person: Person
    # Kind for create_relationship(member, person, kind).
    kind: RelationKind
    confidence: float
    reason: str

    def to_public(self) -> dict[str, Any]:
        return {
            "person_id": self.person.id,
            "display_name": self.person.display_name,
            "kind": self.kind.value,
            "confidence": self.confidence,
            "reason": self.reason,
        }


def suggest_relationships(
    member: Person,
    candidates: Iterable[Person],
    related_ids: Iterable[str] = (),
) -> list[Suggestion]:
    """Guess likely relationships for *member* from birth years alone.

    Candidates already related to *member*, or without a birth date, are
    skipped. Highest confidence first.
    """

    if member.birth_date is None:
        return []

    skip = set(related_ids)
    skip.add(member.id)
    out: list[Suggestion] = []

    for other in candidates:
        if other.id in skip or other.birth_date is None:
            continue
        gap = abs(member.birth_date.year - other.birth_date.year)
        lo, hi = _PARENT_GAP_YEARS
        if lo <= gap <= hi:
            member_is_older = member.birth_date.year < other.birth_date.year
            out.append(
                Suggestion(
                    person=other,
                    kind=RelationKind.PARENT if member_is_older else RelationKind.CHILD,
                    confidence=_PARENT_CONFIDENCE,
                    reason=f"Age difference of {gap} years suggests parent-child relationship",
                )
            )
        elif gap <= _SIBLING_GAP_MAX_YEARS:
            out.append(
                Suggestion(
                    person=other,
                    kind=RelationKind.SIBLING,
                    confidence=_SIBLING_CONFIDENCE,
                    reason=f"Similar age ({gap} years difference) suggests sibling relationship",
                )
            )

    out.sort(key=lambda s: s.confidence, reverse=True)
    return out
