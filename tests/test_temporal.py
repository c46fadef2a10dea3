from __future__ import annotations

from datetime import date

import pytest

from kinship.models import Person, RelationKind
from kinship.temporal import Verdict, check_parent_child, infer_direction, relationship_warnings


def _p(pid: str, born: date | None = None, died: date | None = None) -> Person:
    return Person(pid, birth_date=born, death_date=died, display_name=pid.title())


OLD = _p("old", date(1950, 4, 2))
YOUNG = _p("young", date(1980, 8, 9))
UNDATED = _p("undated")


def test_parent_must_be_born_first() -> None:
    assert check_parent_child(OLD, YOUNG, RelationKind.PARENT).verdict is Verdict.VALID

    result = check_parent_child(YOUNG, OLD, RelationKind.PARENT)
    assert result.verdict is Verdict.INVALID
    assert "Young (born 1980) cannot be the parent of Old (born 1950)" in (result.reason or "")
    assert result.suggestion == "Try creating the relationship in the opposite direction: Old as parent of Young"


def test_child_must_be_born_after() -> None:
    assert check_parent_child(YOUNG, OLD, RelationKind.CHILD).verdict is Verdict.VALID

    result = check_parent_child(OLD, YOUNG, RelationKind.CHILD)
    assert result.verdict is Verdict.INVALID
    assert "cannot be the child of" in (result.reason or "")
    assert result.suggestion is not None


def test_one_day_apart_is_enough() -> None:
    a = _p("a", date(2000, 1, 1))
    b = _p("b", date(2000, 1, 2))
    assert check_parent_child(a, b, RelationKind.PARENT).verdict is Verdict.VALID
    assert check_parent_child(b, a, RelationKind.CHILD).verdict is Verdict.VALID


@pytest.mark.parametrize("kind", [RelationKind.PARENT, RelationKind.CHILD])
def test_same_birth_date_is_invalid_both_ways_without_a_suggestion(kind: RelationKind) -> None:
    twin_a = _p("twin_a", date(2000, 1, 1))
    twin_b = _p("twin_b", date(2000, 1, 1))

    result = check_parent_child(twin_a, twin_b, kind)
    assert result.verdict is Verdict.INVALID
    assert result.suggestion is None
    assert "share a birth date" in (result.reason or "")


@pytest.mark.parametrize(
    "subject,other",
    [(UNDATED, OLD), (OLD, UNDATED), (UNDATED, UNDATED)],
)
def test_missing_birth_date_is_indeterminate(subject: Person, other: Person) -> None:
    for kind in (RelationKind.PARENT, RelationKind.CHILD):
        assert check_parent_child(subject, other, kind).verdict is Verdict.INDETERMINATE


def test_only_parent_and_child_are_checked() -> None:
    with pytest.raises(ValueError):
        check_parent_child(OLD, YOUNG, RelationKind.SPOUSE)


def test_infer_direction_earlier_born_is_parent() -> None:
    assert infer_direction(OLD, YOUNG) is RelationKind.PARENT
    assert infer_direction(YOUNG, OLD) is RelationKind.CHILD
    assert infer_direction(OLD, _p("twin", OLD.birth_date)) is None
    assert infer_direction(OLD, UNDATED) is None


def test_inferred_direction_always_passes_the_check() -> None:
    for subject, other in [(OLD, YOUNG), (YOUNG, OLD)]:
        kind = infer_direction(subject, other)
        assert kind is not None
        assert check_parent_child(subject, other, kind).verdict is Verdict.VALID


def test_parent_child_gap_warnings() -> None:
    teen = _p("teen", date(1960, 1, 1))
    kid = _p("kid", date(1968, 1, 1))
    ancient = _p("ancient", date(1850, 1, 1))

    small = relationship_warnings(teen, kid, RelationKind.PARENT)
    assert len(small) == 1 and "quite small" in small[0]

    large = relationship_warnings(ancient, kid, RelationKind.PARENT)
    assert len(large) == 1 and "quite large" in large[0]

    assert relationship_warnings(OLD, YOUNG, RelationKind.PARENT) == []


def test_birth_long_after_parent_death_warns() -> None:
    father = _p("father", date(1900, 1, 1), died=date(1940, 3, 1))
    late = _p("late", date(1945, 1, 1))
    posthumous = _p("posthumous", date(1940, 10, 1))

    warnings = relationship_warnings(late, father, RelationKind.CHILD)
    assert any("after the death of Father" in w for w in warnings)
    assert relationship_warnings(father, posthumous, RelationKind.PARENT) == []


def test_missing_dates_warn_for_every_kind() -> None:
    assert relationship_warnings(UNDATED, OLD, RelationKind.PARENT) == [
        "Birth dates are recommended for parent-child relationships to ensure accuracy"
    ]
    assert relationship_warnings(OLD, UNDATED, RelationKind.SPOUSE) == [
        "Birth dates are recommended for spouse relationships"
    ]
    assert relationship_warnings(UNDATED, YOUNG, RelationKind.SIBLING) == [
        "Birth dates are recommended for sibling relationships"
    ]


def test_spouse_and_sibling_gap_warnings() -> None:
    assert relationship_warnings(OLD, YOUNG, RelationKind.SIBLING)  # 30 years > 20
    assert relationship_warnings(OLD, YOUNG, RelationKind.SPOUSE) == []  # 30 is not > 30
    assert relationship_warnings(OLD, _p("much_younger", date(1990, 1, 1)), RelationKind.SPOUSE)
