"""Relationship read/write routes.

Writes go through ``RelationshipWriter``; the request may name a mode
(``smart`` or ``strict``), otherwise ``KINSHIP_WRITE_MODE`` decides.
"""

from __future__ import annotations

import os
from typing import Any, NoReturn, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

try:
    from ..auth import get_current_user, get_instance_slug, require_editor
    from ..db import db_conn
    from ..errors import (
        ConflictingEdgeError,
        PersonNotFoundError,
        RelationshipError,
        RelationshipNotFoundError,
        SelfRelationError,
        TemporalValidationError,
        UnknownKindError,
    )
    from ..models import RelationKind
    from ..relations import direction_for_selection
    from ..service import get_perspective
    from ..store import PgRelationStore
    from ..suggest import suggest_relationships
    from ..writer import RelationshipWriter, WriteMode
except ImportError:  # pragma: no cover
    # Support running with CWD=kinship (e.g., `python -m uvicorn main:app`).
    from auth import get_current_user, get_instance_slug, require_editor
    from db import db_conn
    from errors import (
        ConflictingEdgeError,
        PersonNotFoundError,
        RelationshipError,
        RelationshipNotFoundError,
        SelfRelationError,
        TemporalValidationError,
        UnknownKindError,
    )
    from models import RelationKind
    from relations import direction_for_selection
    from service import get_perspective
    from store import PgRelationStore
    from suggest import suggest_relationships
    from writer import RelationshipWriter, WriteMode

router = APIRouter(tags=["relationships"])

_WRITE_MODE_ENV = "KINSHIP_WRITE_MODE"


class RelationshipCreate(BaseModel):
    from_id: str
    to_id: str
    kind: str
    mode: Optional[str] = None


class RelativeCreate(BaseModel):
    related_id: str
    kind: str
    mode: Optional[str] = None


def _default_write_mode() -> WriteMode:
    try:
        return WriteMode.parse(os.environ.get(_WRITE_MODE_ENV), default=WriteMode.STRICT)
    except ValueError:
        return WriteMode.STRICT


def _write_mode(requested: str | None) -> WriteMode:
    try:
        return WriteMode.parse(requested, default=_default_write_mode())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


def _raise_http(e: RelationshipError) -> NoReturn:
    if isinstance(e, TemporalValidationError):
        raise HTTPException(
            status_code=422,
            detail={"success": False, "error": e.reason, "suggestion": e.suggestion},
        ) from e
    if isinstance(e, ConflictingEdgeError):
        raise HTTPException(
            status_code=409,
            detail={
                "success": False,
                "error": str(e),
                "existing_relationship_id": e.existing_edge_id,
                "existing_kind": e.existing_kind,
            },
        ) from e
    if isinstance(e, (PersonNotFoundError, RelationshipNotFoundError)):
        raise HTTPException(status_code=404, detail=str(e)) from e
    if isinstance(e, (SelfRelationError, UnknownKindError)):
        raise HTTPException(status_code=400, detail=str(e)) from e
    raise HTTPException(status_code=409, detail=str(e)) from e


def _kind_or_400(kind: str) -> RelationKind:
    parsed = RelationKind.parse(kind)
    if parsed is None:
        _raise_http(UnknownKindError(kind))
    return parsed


@router.get("/people/{person_id}/relations")
def person_relations(person_id: str, request: Request) -> dict[str, Any]:
    """The person's relatives, each with the kind they are to this person."""
    get_current_user(request)

    with db_conn(get_instance_slug(request)) as conn:
        store = PgRelationStore(conn)
        if store.fetch_person(person_id) is None:
            raise HTTPException(status_code=404, detail=f"person not found: {person_id}")
        entries = get_perspective(store, person_id)
        people = store.fetch_people([e.related_person_id for e in entries])

    relations: list[dict[str, Any]] = []
    for entry in entries:
        item = entry.to_public()
        related = people.get(entry.related_person_id)
        item["display_name"] = related.display_name if related else None
        relations.append(item)

    return {"person_id": person_id, "relations": relations}


@router.get("/people/{person_id}/relationship-suggestions")
def relationship_suggestions(
    person_id: str,
    request: Request,
    limit: int = Query(default=20, ge=1, le=200),
) -> dict[str, Any]:
    get_current_user(request)

    with db_conn(get_instance_slug(request)) as conn:
        store = PgRelationStore(conn)
        member = store.fetch_person(person_id)
        if member is None:
            raise HTTPException(status_code=404, detail=f"person not found: {person_id}")
        related_ids = [e.related_person_id for e in get_perspective(store, person_id)]
        candidates = store.fetch_all_people()

    suggestions = suggest_relationships(member, candidates, related_ids)
    return {
        "person_id": person_id,
        "results": [s.to_public() for s in suggestions[:limit]],
    }


@router.post("/relationships")
def create_relationship(body: RelationshipCreate, request: Request) -> dict[str, Any]:
    """Create ``from_id <kind> of to_id``."""
    require_editor(request)
    mode = _write_mode(body.mode)

    with db_conn(get_instance_slug(request)) as conn:
        writer = RelationshipWriter(PgRelationStore(conn))
        try:
            result = writer.create_relationship(body.from_id, body.to_id, body.kind, mode)
        except RelationshipError as e:
            _raise_http(e)
        conn.commit()

    return result.to_public()


@router.post("/people/{person_id}/relatives")
def add_relative(person_id: str, body: RelativeCreate, request: Request) -> dict[str, Any]:
    """Record that ``related_id`` is this person's <kind>."""
    require_editor(request)
    mode = _write_mode(body.mode)
    kind = _kind_or_400(body.kind)
    from_id, to_id, edge_kind = direction_for_selection(person_id, body.related_id, kind)

    with db_conn(get_instance_slug(request)) as conn:
        writer = RelationshipWriter(PgRelationStore(conn))
        try:
            result = writer.create_relationship(from_id, to_id, edge_kind, mode)
        except RelationshipError as e:
            _raise_http(e)
        conn.commit()

    return result.to_public()


@router.get("/relationships/check")
def check_relationship(
    request: Request,
    from_id: str = Query(min_length=1),
    to_id: str = Query(min_length=1),
    kind: str = Query(min_length=1, max_length=16),
) -> dict[str, Any]:
    """Validate a relationship without storing it."""
    get_current_user(request)

    with db_conn(get_instance_slug(request)) as conn:
        writer = RelationshipWriter(PgRelationStore(conn))
        try:
            check = writer.check_relationship(from_id, to_id, kind)
        except RelationshipError as e:
            _raise_http(e)

    return {"from_id": from_id, "to_id": to_id, **check.to_public()}


@router.delete("/relationships/{edge_id}")
def delete_relationship(edge_id: str, request: Request) -> dict[str, Any]:
    require_editor(request)

    with db_conn(get_instance_slug(request)) as conn:
        writer = RelationshipWriter(PgRelationStore(conn))
        try:
            edge = writer.remove_relationship(edge_id)
        except RelationshipError as e:
            _raise_http(e)
        conn.commit()

    return {
        "success": True,
        "relationship_id": edge.id,
        "from_id": edge.from_id,
        "to_id": edge.to_id,
    }
