from __future__ import annotations

from typing import Iterable

try:
    from .display import build_display_edges
    from .models import DisplayEdge, PerspectiveEntry
    from .relations import perspective_for
    from .store import RelationStore
except ImportError:  # pragma: no cover
    from display import build_display_edges
    from models import DisplayEdge, PerspectiveEntry
    from relations import perspective_for
    from store import RelationStore


def get_perspective(store: RelationStore, person_id: str) -> list[PerspectiveEntry]:
    return perspective_for(person_id, store.fetch_edges_touching(person_id))


def get_perspectives(store: RelationStore, person_ids: Iterable[str]) -> dict[str, list[PerspectiveEntry]]:
    out: dict[str, list[PerspectiveEntry]] = {}
    for pid in person_ids:
        if pid in out:
            continue
        out[pid] = get_perspective(store, pid)
    return out


def build_display_graph(store: RelationStore, person_ids: Iterable[str]) -> list[DisplayEdge]:
    """Display edges among *person_ids*, one per related pair."""

    return build_display_edges(get_perspectives(store, person_ids))


def collect_neighborhood(
    store: RelationStore,
    root_id: str,
    *,
    depth: int,
    max_nodes: int,
) -> dict[str, list[PerspectiveEntry]]:
    """Return perspectives for everyone within *depth* relationship hops of *root_id*."""

    perspectives: dict[str, list[PerspectiveEntry]] = {root_id: get_perspective(store, root_id)}
    if depth <= 0:
        return perspectives

    frontier = [root_id]
    for _ in range(depth):
        next_frontier: list[str] = []
        for node in frontier:
            for entry in perspectives[node]:
                nb = entry.related_person_id
                if nb in perspectives:
                    continue
                perspectives[nb] = get_perspective(store, nb)
                next_frontier.append(nb)
                if len(perspectives) >= max_nodes:
                    return perspectives
        frontier = next_frontier
        if not frontier:
            break

    return perspectives
