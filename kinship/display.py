from __future__ import annotations

from collections import deque
from typing import Mapping, Sequence

try:
    from .models import DisplayEdge, PerspectiveEntry, RelationKind
except ImportError:  # pragma: no cover
    from models import DisplayEdge, PerspectiveEntry, RelationKind

# (source anchor, target anchor) per kind. Parent/child edges always run from
# the parent's bottom socket to the child's top socket.
ANCHORS: dict[RelationKind, tuple[str, str]] = {
    RelationKind.PARENT: ("child-source", "parent-target"),
    RelationKind.CHILD: ("child-source", "parent-target"),
    RelationKind.SPOUSE: ("spouse", "spouse-target"),
    RelationKind.SIBLING: ("sibling", "sibling-target"),
}

# Generation offset of the related person, seen from the current one.
_GENERATION_STEP: dict[RelationKind, int] = {
    RelationKind.PARENT: -1,
    RelationKind.CHILD: 1,
    RelationKind.SPOUSE: 0,
    RelationKind.SIBLING: 0,
}


def pair_key(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a < b else (b, a)


def _escape_id(person_id: str) -> str:
    return person_id.replace("%", "%25").replace("-", "%2D")


def edge_id(a: str, b: str) -> str:
    """Display edge id for the unordered pair (a, b).

    Hyphens inside person ids are escaped so distinct pairs never share an id.
    """
    lo, hi = pair_key(a, b)
    return f"e-{_escape_id(lo)}-{_escape_id(hi)}"


def _display_edge(person_id: str, entry: PerspectiveEntry) -> DisplayEdge:
    source_anchor, target_anchor = ANCHORS[entry.kind]

    if entry.kind.is_lineal:
        # entry.kind is what the related person is to person_id.
        if entry.kind is RelationKind.PARENT:
            parent_id, child_id = entry.related_person_id, person_id
        else:
            parent_id, child_id = person_id, entry.related_person_id
        return DisplayEdge(
            id=edge_id(person_id, entry.related_person_id),
            source_id=parent_id,
            target_id=child_id,
            kind=RelationKind.PARENT,
            source_anchor=source_anchor,
            target_anchor=target_anchor,
        )

    return DisplayEdge(
        id=edge_id(person_id, entry.related_person_id),
        source_id=person_id,
        target_id=entry.related_person_id,
        kind=entry.kind,
        source_anchor=source_anchor,
        target_anchor=target_anchor,
    )


def build_display_edges(perspectives: Mapping[str, Sequence[PerspectiveEntry]]) -> list[DisplayEdge]:
    """Return at most one display edge per unordered pair of people.

    *perspectives* maps each person in view to their deduplicated perspective
    list. Entries pointing outside the mapping are skipped. The first entry
    seen for a pair produces the edge; the reciprocal entry from the other
    endpoint is skipped.
    """

    seen: set[tuple[str, str]] = set()
    edges: list[DisplayEdge] = []

    for person_id, entries in perspectives.items():
        for entry in entries:
            if entry.related_person_id not in perspectives:
                continue
            key = pair_key(person_id, entry.related_person_id)
            if key in seen:
                continue
            seen.add(key)
            edges.append(_display_edge(person_id, entry))

    return edges


def assign_generations(
    root_id: str,
    perspectives: Mapping[str, Sequence[PerspectiveEntry]],
    *,
    max_nodes: int = 5000,
) -> dict[str, int]:
    """Return person->generation relative to *root_id* (0).

    Parents sit one generation up (-1), children one down (+1), spouses and
    siblings alongside. Breadth-first; the first generation assigned to a
    person sticks.
    """

    if root_id not in perspectives:
        return {}

    generations: dict[str, int] = {root_id: 0}
    queue: deque[str] = deque([root_id])

    while queue:
        node = queue.popleft()
        for entry in perspectives.get(node, ()):
            nb = entry.related_person_id
            if nb in generations or nb not in perspectives:
                continue
            generations[nb] = generations[node] + _GENERATION_STEP[entry.kind]
            if len(generations) >= max_nodes:
                return generations
            queue.append(nb)

    return generations


def group_by_generation(generations: Mapping[str, int]) -> dict[int, list[str]]:
    out: dict[int, list[str]] = {}
    for pid, gen in generations.items():
        out.setdefault(gen, []).append(pid)
    for ids in out.values():
        ids.sort()
    return dict(sorted(out.items()))
