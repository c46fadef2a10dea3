"""Postgres-backed person and relation records.

Rows are parsed into ``Person`` / ``RelationEdge`` here so the engine never
sees raw tuples. The relation table carries ``UNIQUE (from_id, to_id, kind)``;
a violation is reported as ``UniquenessConflict``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Protocol

import psycopg
from psycopg.errors import UniqueViolation

try:
    from .errors import UniquenessConflict
    from .models import Person, RelationEdge
except ImportError:  # pragma: no cover
    from errors import UniquenessConflict
    from models import Person, RelationEdge

log = logging.getLogger(__name__)


class RelationStore(Protocol):
    def fetch_person(self, person_id: str) -> Person | None: ...

    def fetch_people(self, person_ids: list[str]) -> dict[str, Person]: ...

    def fetch_edges_touching(self, person_id: str) -> list[RelationEdge]: ...

    def fetch_edges_between(self, a: str, b: str) -> list[RelationEdge]: ...

    def fetch_edge(self, edge_id: str) -> RelationEdge | None: ...

    def insert_edge(self, from_id: str, to_id: str, kind: str) -> str: ...

    def delete_edge(self, edge_id: str) -> bool: ...


def _as_date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        log.warning("Ignoring unparseable date %r", value)
        return None


def _person_row_to_person(r: tuple[Any, ...]) -> Person:
    # r = (id, display_name, birth_date, death_date)
    pid, display_name, birth_date, death_date = r
    return Person(
        id=str(pid),
        display_name=display_name,
        birth_date=_as_date(birth_date),
        death_date=_as_date(death_date),
    )


def _edge_row_to_edge(r: tuple[Any, ...]) -> RelationEdge:
    # r = (id, from_id, to_id, kind)
    rid, from_id, to_id, kind = r
    return RelationEdge(id=str(rid), from_id=str(from_id), to_id=str(to_id), kind=str(kind or ""))


def _edges(rows: Iterable[tuple[Any, ...]]) -> list[RelationEdge]:
    return [_edge_row_to_edge(tuple(r)) for r in rows]


class PgRelationStore:
    def __init__(self, conn: psycopg.Connection) -> None:
        self.conn = conn

    def fetch_person(self, person_id: str) -> Person | None:
        row = self.conn.execute(
            """
            SELECT id, display_name, birth_date, death_date
            FROM person
            WHERE id = %s
            """.strip(),
            (person_id,),
        ).fetchone()
        if not row:
            return None
        return _person_row_to_person(tuple(row))

    def fetch_people(self, person_ids: list[str]) -> dict[str, Person]:
        if not person_ids:
            return {}
        rows = self.conn.execute(
            """
            SELECT id, display_name, birth_date, death_date
            FROM person
            WHERE id = ANY(%s)
            """.strip(),
            (list(person_ids),),
        ).fetchall()
        people = [_person_row_to_person(tuple(r)) for r in rows]
        return {p.id: p for p in people}

    def fetch_all_people(self) -> list[Person]:
        rows = self.conn.execute(
            """
            SELECT id, display_name, birth_date, death_date
            FROM person
            ORDER BY display_name NULLS LAST, id
            """.strip(),
        ).fetchall()
        return [_person_row_to_person(tuple(r)) for r in rows]

    def fetch_edges_touching(self, person_id: str) -> list[RelationEdge]:
        rows = self.conn.execute(
            """
            SELECT id, from_id, to_id, kind
            FROM relation
            WHERE from_id = %s OR to_id = %s
            ORDER BY created_at, id
            """.strip(),
            (person_id, person_id),
        ).fetchall()
        return _edges(rows)

    def fetch_edges_between(self, a: str, b: str) -> list[RelationEdge]:
        rows = self.conn.execute(
            """
            SELECT id, from_id, to_id, kind
            FROM relation
            WHERE (from_id = %s AND to_id = %s) OR (from_id = %s AND to_id = %s)
            ORDER BY created_at, id
            """.strip(),
            (a, b, b, a),
        ).fetchall()
        return _edges(rows)

    def fetch_edge(self, edge_id: str) -> RelationEdge | None:
        row = self.conn.execute(
            "SELECT id, from_id, to_id, kind FROM relation WHERE id = %s",
            (edge_id,),
        ).fetchone()
        if not row:
            return None
        return _edge_row_to_edge(tuple(row))

    def insert_edge(self, from_id: str, to_id: str, kind: str) -> str:
        try:
            # Savepoint, so a duplicate does not poison the caller's transaction.
            with self.conn.transaction():
                row = self.conn.execute(
                    """
                    INSERT INTO relation (from_id, to_id, kind)
                    VALUES (%s, %s, %s)
                    RETURNING id
                    """.strip(),
                    (from_id, to_id, kind),
                ).fetchone()
        except UniqueViolation as e:
            raise UniquenessConflict(from_id, to_id, kind) from e
        return str(row[0])

    def delete_edge(self, edge_id: str) -> bool:
        cur = self.conn.execute("DELETE FROM relation WHERE id = %s", (edge_id,))
        return bool(cur.rowcount)
