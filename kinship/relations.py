"""Per-person view of stored relationship edges.

Edges are stored once, directed. ``perspective_for`` turns the edges touching a
person into one entry per related person, with the kind read from that
person's side:

- person is ``from_id``: the related person's kind is the stored kind inverted
  (``parent`` edge -> the other person is my child);
- person is ``to_id``: the stored kind applies as-is (``parent`` edge -> the
  other person is my parent).
"""

from __future__ import annotations

import logging
from typing import Iterable

try:
    from .models import PerspectiveEntry, RelationEdge, RelationKind
except ImportError:  # pragma: no cover
    from models import PerspectiveEntry, RelationEdge, RelationKind

log = logging.getLogger(__name__)


def _entry_for(person_id: str, edge: RelationEdge) -> PerspectiveEntry | None:
    kind = RelationKind.parse(edge.kind)
    if kind is None:
        log.warning("Dropping relation %s with unknown kind %r", edge.id, edge.kind)
        return None
    if edge.from_id == edge.to_id:
        log.warning("Dropping self-referencing relation %s on %s", edge.id, edge.from_id)
        return None
    if edge.from_id == person_id:
        return PerspectiveEntry(
            edge_id=edge.id,
            related_person_id=edge.to_id,
            kind=kind.inverse(),
            owned=True,
        )
    if edge.to_id == person_id:
        return PerspectiveEntry(
            edge_id=edge.id,
            related_person_id=edge.from_id,
            kind=kind,
            owned=False,
        )
    log.warning("Dropping relation %s: does not touch %s", edge.id, person_id)
    return None


def perspective_for(person_id: str, edges: Iterable[RelationEdge]) -> list[PerspectiveEntry]:
    """Return one entry per person related to *person_id*.

    When two edges point at the same related person (a reciprocal pair entered
    from both sides), a spouse/sibling entry is never replaced, and between two
    parent/child entries the one from an edge this person owns wins.
    """

    out: list[PerspectiveEntry] = []
    index_by_related: dict[str, int] = {}

    for edge in edges:
        entry = _entry_for(person_id, edge)
        if entry is None:
            continue

        idx = index_by_related.get(entry.related_person_id)
        if idx is None:
            index_by_related[entry.related_person_id] = len(out)
            out.append(entry)
            continue

        existing = out[idx]
        if existing.kind.is_symmetric or entry.kind.is_symmetric:
            log.debug(
                "Duplicate relation %s for %s -> %s ignored (keeping %s)",
                entry.edge_id,
                person_id,
                entry.related_person_id,
                existing.edge_id,
            )
            continue
        if entry.owned and not existing.owned:
            log.debug(
                "Duplicate relation for %s -> %s: %s replaces %s",
                person_id,
                entry.related_person_id,
                entry.edge_id,
                existing.edge_id,
            )
            out[idx] = entry

    return out


def canonical_relation(from_id: str, to_id: str, kind: RelationKind) -> tuple[str, str, str]:
    """Key that is equal for an edge and its reciprocal.

    ``(a, b, parent)`` and ``(b, a, child)`` both become ``("parent", a, b)``;
    symmetric kinds are keyed on the sorted pair.
    """

    if kind is RelationKind.PARENT:
        return (RelationKind.PARENT.value, from_id, to_id)
    if kind is RelationKind.CHILD:
        return (RelationKind.PARENT.value, to_id, from_id)
    lo, hi = sorted((from_id, to_id))
    return (kind.value, lo, hi)


def direction_for_selection(
    current_id: str,
    selected_id: str,
    kind: RelationKind,
) -> tuple[str, str, RelationKind]:
    """Map "*selected* is my <kind>" onto the edge to store.

    Returns ``(from_id, to_id, kind)``. For parent/child the selected person is
    the edge's source, so the stored kind describes them directly.
    """

    if kind.is_lineal:
        return selected_id, current_id, kind
    return current_id, selected_id, kind
