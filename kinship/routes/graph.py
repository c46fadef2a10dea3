from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request

try:
    from ..auth import get_current_user, get_instance_slug
    from ..db import db_conn
    from ..display import assign_generations, build_display_edges, group_by_generation
    from ..service import collect_neighborhood, get_perspectives
    from ..store import PgRelationStore
except ImportError:  # pragma: no cover
    # Support running with CWD=kinship (e.g., `python -m uvicorn main:app`).
    from auth import get_current_user, get_instance_slug
    from db import db_conn
    from display import assign_generations, build_display_edges, group_by_generation
    from service import collect_neighborhood, get_perspectives
    from store import PgRelationStore

router = APIRouter(tags=["graph"])


@router.get("/graph/display")
def display_graph(
    request: Request,
    ids: Optional[list[str]] = Query(default=None),
    root: Optional[str] = Query(default=None, min_length=1),
    depth: int = Query(default=3, ge=0, le=12),
    max_nodes: int = Query(default=1000, ge=1, le=5000),
) -> dict[str, Any]:
    """Nodes and de-duplicated edges for the tree view.

    - ids=...: exactly these people
    - root=...: everyone within *depth* relationship hops of root

    With a root, each node also carries its generation relative to the root and
    ``generations`` lists the ids per generation, oldest first.
    """
    get_current_user(request)

    if not ids and not root:
        raise HTTPException(status_code=400, detail="either ids or root is required")

    with db_conn(get_instance_slug(request)) as conn:
        store = PgRelationStore(conn)
        if ids:
            person_ids = list(dict.fromkeys(ids))[:max_nodes]
            if root and root not in person_ids:
                person_ids.insert(0, root)
            perspectives = get_perspectives(store, person_ids)
        else:
            if store.fetch_person(root) is None:
                raise HTTPException(status_code=404, detail=f"person not found: {root}")
            perspectives = collect_neighborhood(store, root, depth=depth, max_nodes=max_nodes)
        people = store.fetch_people(list(perspectives.keys()))

    # Ids that do not exist are not drawn.
    perspectives = {pid: entries for pid, entries in perspectives.items() if pid in people}
    generations = assign_generations(root, perspectives, max_nodes=max_nodes) if root else {}

    nodes: list[dict[str, Any]] = []
    for pid in perspectives:
        p = people[pid]
        nodes.append(
            {
                "id": p.id,
                "type": "person",
                "display_name": p.display_name,
                "birth": p.birth_date.isoformat() if p.birth_date else None,
                "death": p.death_date.isoformat() if p.death_date else None,
                "generation": generations.get(pid),
            }
        )

    edges = [e.to_public() for e in build_display_edges(perspectives)]
    return {
        "root": root,
        "nodes": nodes,
        "edges": edges,
        "generations": group_by_generation(generations),
    }
