"""Chronological checks for parent/child relationships.

``check_parent_child`` is the only date comparison the engine uses; both write
modes go through it. Comparison is strict at day granularity: a parent must be
born before the child, so equal birth dates are never a valid parent/child
pair in either direction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

try:
    from .models import Person, RelationKind
except ImportError:  # pragma: no cover
    from models import Person, RelationKind

# Plausibility thresholds (years). Crossing them warns but never blocks.
_PARENT_GAP_MIN_YEARS = 12
_PARENT_GAP_MAX_YEARS = 80
_SPOUSE_GAP_MAX_YEARS = 30
_SIBLING_GAP_MAX_YEARS = 20
_POSTHUMOUS_BIRTH_GRACE_YEARS = 1


class Verdict(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True)
class TemporalResult:
    verdict: Verdict
    reason: Optional[str] = None
    suggestion: Optional[str] = None

    @property
    def is_invalid(self) -> bool:
        return self.verdict is Verdict.INVALID


_VALID = TemporalResult(Verdict.VALID)
_INDETERMINATE = TemporalResult(Verdict.INDETERMINATE)


def _add_years(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        # Handle Feb 29 -> Feb 28 in non-leap years.
        return d.replace(month=2, day=28, year=d.year + years)


def _year_gap(a: date, b: date) -> int:
    return abs(a.year - b.year)


def _born(p: Person) -> str:
    return f"{p.label} (born {p.birth_date.year})" if p.birth_date else p.label


def check_parent_child(subject: Person, other: Person, kind: RelationKind) -> TemporalResult:
    """Decide whether ``subject <kind> of other`` fits the birth dates.

    ``kind`` must be ``parent`` (subject is the parent of other) or ``child``
    (subject is the child of other).
    """

    if not kind.is_lineal:
        raise ValueError(f"not a parent/child kind: {kind.value}")

    if subject.birth_date is None or other.birth_date is None:
        return _INDETERMINATE

    if subject.birth_date == other.birth_date:
        return TemporalResult(
            Verdict.INVALID,
            reason=(
                f"{_born(subject)} and {_born(other)} share a birth date "
                "and cannot be parent and child."
            ),
        )

    if kind is RelationKind.PARENT:
        if subject.birth_date < other.birth_date:
            return _VALID
        return TemporalResult(
            Verdict.INVALID,
            reason=(
                f"{_born(subject)} cannot be the parent of {_born(other)}. "
                "Parents must be born before their children."
            ),
            suggestion=(
                "Try creating the relationship in the opposite direction: "
                f"{other.label} as parent of {subject.label}"
            ),
        )

    if subject.birth_date > other.birth_date:
        return _VALID
    return TemporalResult(
        Verdict.INVALID,
        reason=(
            f"{_born(subject)} cannot be the child of {_born(other)}. "
            "Children must be born after their parents."
        ),
        suggestion=(
            "Try creating the relationship in the opposite direction: "
            f"{other.label} as child of {subject.label}"
        ),
    )


def infer_direction(subject: Person, other: Person) -> Optional[RelationKind]:
    """The earlier-born person is the parent.

    Returns the kind for ``subject <kind> of other``, or None when either birth
    date is missing or the dates are equal.
    """

    if subject.birth_date is None or other.birth_date is None:
        return None
    if subject.birth_date < other.birth_date:
        return RelationKind.PARENT
    if subject.birth_date > other.birth_date:
        return RelationKind.CHILD
    return None


def relationship_warnings(subject: Person, other: Person, kind: RelationKind) -> list[str]:
    """Non-blocking plausibility notes for ``subject <kind> of other``."""

    warnings: list[str] = []

    if kind.is_lineal:
        if subject.birth_date is None or other.birth_date is None:
            warnings.append("Birth dates are recommended for parent-child relationships to ensure accuracy")
            return warnings

        gap = _year_gap(subject.birth_date, other.birth_date)
        if gap < _PARENT_GAP_MIN_YEARS:
            warnings.append(
                f"Age difference of {gap} years is quite small for a parent-child relationship. "
                "Please verify this is correct."
            )
        elif gap > _PARENT_GAP_MAX_YEARS:
            warnings.append(
                f"Age difference of {gap} years is quite large for a parent-child relationship. "
                "Please verify this is correct."
            )

        parent, child = (subject, other) if kind is RelationKind.PARENT else (other, subject)
        if parent.death_date is not None and child.birth_date is not None:
            if child.birth_date > _add_years(parent.death_date, _POSTHUMOUS_BIRTH_GRACE_YEARS):
                warnings.append(
                    f"{child.label} was born more than {_POSTHUMOUS_BIRTH_GRACE_YEARS} year after "
                    f"the death of {parent.label}."
                )
        return warnings

    if subject.birth_date is None or other.birth_date is None:
        warnings.append(f"Birth dates are recommended for {kind.value} relationships")
        return warnings

    gap = _year_gap(subject.birth_date, other.birth_date)
    if kind is RelationKind.SPOUSE and gap > _SPOUSE_GAP_MAX_YEARS:
        warnings.append(f"Age difference of {gap} years is quite large for a spouse relationship")
    elif kind is RelationKind.SIBLING and gap > _SIBLING_GAP_MAX_YEARS:
        warnings.append(f"Age difference of {gap} years is quite large for a sibling relationship")
    return warnings
