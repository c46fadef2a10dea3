from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterator

import pytest
from psycopg.errors import UniqueViolation

from kinship.errors import UniquenessConflict
from kinship.models import Person, RelationEdge
from kinship.store import PgRelationStore


@dataclass
class _FakeResult:
    rows: list[tuple[Any, ...]] = field(default_factory=list)
    rowcount: int = 0

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self.rows)

    def fetchone(self) -> tuple[Any, ...] | None:
        return self.rows[0] if self.rows else None


class _FakeConn:
    def __init__(
        self,
        *,
        people: list[tuple[Any, ...]] | None = None,
        relations: list[tuple[str, str, str, str]] | None = None,
    ) -> None:
        # people rows are (id, display_name, birth_date, death_date)
        self._people = list(people or [])
        # relation rows are (id, from_id, to_id, kind)
        self._relations = list(relations or [])
        self.savepoints = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self.savepoints += 1
        yield

    def execute(self, query: str, params: tuple = ()) -> _FakeResult:
        q = " ".join((query or "").split()).lower()

        if q.startswith("select id, display_name, birth_date, death_date from person where id = any("):
            ids = set(params[0] or [])
            return _FakeResult([r for r in self._people if r[0] in ids])

        if q.startswith("select id, display_name, birth_date, death_date from person where id = %s"):
            return _FakeResult([r for r in self._people if r[0] == params[0]])

        if q.startswith("select id, display_name, birth_date, death_date from person order by"):
            return _FakeResult(list(self._people))

        if q.startswith("select id, from_id, to_id, kind from relation where from_id = %s or to_id = %s"):
            pid = params[0]
            return _FakeResult([r for r in self._relations if pid in (r[1], r[2])])

        if q.startswith("select id, from_id, to_id, kind from relation where (from_id = %s and to_id = %s)"):
            a, b = params[0], params[1]
            return _FakeResult([r for r in self._relations if {r[1], r[2]} == {a, b}])

        if q.startswith("select id, from_id, to_id, kind from relation where id = %s"):
            return _FakeResult([r for r in self._relations if r[0] == params[0]])

        if q.startswith("insert into relation (from_id, to_id, kind)"):
            if any(tuple(r[1:]) == tuple(params) for r in self._relations):
                raise UniqueViolation("duplicate key value violates unique constraint \"relation_unique\"")
            new_id = f"rel-{len(self._relations) + 1}"
            self._relations.append((new_id, *params))
            return _FakeResult([(new_id,)], rowcount=1)

        if q.startswith("delete from relation where id = %s"):
            before = len(self._relations)
            self._relations = [r for r in self._relations if r[0] != params[0]]
            return _FakeResult(rowcount=before - len(self._relations))

        raise AssertionError(f"Unexpected query: {query}")


def test_fetch_person_parses_dates() -> None:
    conn = _FakeConn(
        people=[
            ("p1", "Anna", date(1901, 2, 3), datetime(1970, 1, 1, 12, 0)),
            ("p2", None, "1950-06-07", ""),
        ]
    )
    store = PgRelationStore(conn)

    assert store.fetch_person("p1") == Person(
        "p1", birth_date=date(1901, 2, 3), death_date=date(1970, 1, 1), display_name="Anna"
    )
    assert store.fetch_person("p2") == Person("p2", birth_date=date(1950, 6, 7))
    assert store.fetch_person("missing") is None


def test_unparseable_date_is_treated_as_missing() -> None:
    conn = _FakeConn(people=[("p1", "Anna", "about 1900", None)])
    assert PgRelationStore(conn).fetch_person("p1").birth_date is None


def test_fetch_people_by_id() -> None:
    conn = _FakeConn(people=[("p1", "A", None, None), ("p2", "B", None, None), ("p3", "C", None, None)])

    out = PgRelationStore(conn).fetch_people(["p1", "p3", "zz"])

    assert sorted(out) == ["p1", "p3"]
    assert PgRelationStore(conn).fetch_people([]) == {}


def test_fetch_edges_keep_raw_kind() -> None:
    conn = _FakeConn(
        relations=[
            ("r1", "a", "b", "parent"),
            ("r2", "c", "a", "godparent"),
            ("r3", "x", "y", "spouse"),
        ]
    )
    store = PgRelationStore(conn)

    assert store.fetch_edges_touching("a") == [
        RelationEdge("r1", "a", "b", "parent"),
        RelationEdge("r2", "c", "a", "godparent"),
    ]
    assert store.fetch_edges_between("b", "a") == [RelationEdge("r1", "a", "b", "parent")]
    assert store.fetch_edge("r3") == RelationEdge("r3", "x", "y", "spouse")
    assert store.fetch_edge("nope") is None


def test_insert_returns_new_id_inside_a_savepoint() -> None:
    conn = _FakeConn()
    store = PgRelationStore(conn)

    edge_id = store.insert_edge("a", "b", "sibling")

    assert edge_id == "rel-1"
    assert conn.savepoints == 1
    assert store.fetch_edge(edge_id) == RelationEdge("rel-1", "a", "b", "sibling")


def test_insert_duplicate_raises_uniqueness_conflict() -> None:
    conn = _FakeConn(relations=[("r1", "a", "b", "spouse")])

    with pytest.raises(UniquenessConflict) as exc_info:
        PgRelationStore(conn).insert_edge("a", "b", "spouse")

    assert (exc_info.value.from_id, exc_info.value.to_id, exc_info.value.kind) == ("a", "b", "spouse")
    assert isinstance(exc_info.value.__cause__, UniqueViolation)


def test_delete_reports_whether_a_row_went_away() -> None:
    conn = _FakeConn(relations=[("r1", "a", "b", "spouse")])
    store = PgRelationStore(conn)

    assert store.delete_edge("r1") is True
    assert store.delete_edge("r1") is False
