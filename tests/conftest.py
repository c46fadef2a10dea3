from __future__ import annotations

from datetime import date
from typing import Iterable

import pytest

from kinship.errors import UniquenessConflict
from kinship.models import Person, RelationEdge


class MemoryStore:
    """In-memory stand-in for PgRelationStore.

    ``add_edge`` writes a row unconditionally (the way bad legacy data got in);
    ``insert_edge`` enforces the (from_id, to_id, kind) uniqueness constraint.
    """

    def __init__(self, people: Iterable[Person] = ()) -> None:
        self.people: dict[str, Person] = {p.id: p for p in people}
        self.edges: dict[str, RelationEdge] = {}
        self._seq = 0

    def add_person(self, person: Person) -> Person:
        self.people[person.id] = person
        return person

    def add_edge(self, from_id: str, to_id: str, kind: str) -> RelationEdge:
        self._seq += 1
        edge = RelationEdge(id=f"r{self._seq}", from_id=from_id, to_id=to_id, kind=kind)
        self.edges[edge.id] = edge
        return edge

    def fetch_person(self, person_id: str) -> Person | None:
        return self.people.get(person_id)

    def fetch_people(self, person_ids: list[str]) -> dict[str, Person]:
        return {pid: self.people[pid] for pid in person_ids if pid in self.people}

    def fetch_all_people(self) -> list[Person]:
        return sorted(self.people.values(), key=lambda p: (p.display_name or "", p.id))

    def fetch_edges_touching(self, person_id: str) -> list[RelationEdge]:
        return [e for e in self.edges.values() if e.from_id == person_id or e.to_id == person_id]

    def fetch_edges_between(self, a: str, b: str) -> list[RelationEdge]:
        return [e for e in self.edges.values() if {e.from_id, e.to_id} == {a, b}]

    def fetch_edge(self, edge_id: str) -> RelationEdge | None:
        return self.edges.get(edge_id)

    def insert_edge(self, from_id: str, to_id: str, kind: str) -> str:
        for e in self.edges.values():
            if (e.from_id, e.to_id, e.kind) == (from_id, to_id, kind):
                raise UniquenessConflict(from_id, to_id, kind)
        return self.add_edge(from_id, to_id, kind).id

    def delete_edge(self, edge_id: str) -> bool:
        return self.edges.pop(edge_id, None) is not None


@pytest.fixture()
def family() -> dict[str, Person]:
    """Three generations plus a pair of twins and an undated cousin.

    grandpa (1930) -> mum (1960) -> alice (1990), ben (1990, twin of alice), cara (1995)
    """
    people = [
        Person("grandpa", birth_date=date(1930, 3, 1), death_date=date(1989, 6, 1), display_name="Grandpa Jones"),
        Person("mum", birth_date=date(1960, 5, 12), display_name="Mary Jones"),
        Person("dad", birth_date=date(1958, 9, 30), display_name="Tom Smith"),
        Person("alice", birth_date=date(1990, 1, 1), display_name="Alice Smith"),
        Person("ben", birth_date=date(1990, 1, 1), display_name="Ben Smith"),
        Person("cara", birth_date=date(1995, 7, 4), display_name="Cara Smith"),
        Person("cousin", display_name="Cousin Sam"),
    ]
    return {p.id: p for p in people}


@pytest.fixture()
def store(family: dict[str, Person]) -> MemoryStore:
    return MemoryStore(family.values())
