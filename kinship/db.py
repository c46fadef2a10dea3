from __future__ import annotations

import os
import re
from contextlib import contextmanager
from typing import Iterator

import psycopg

# Family tree slugs end up inside SET search_path, so keep them to plain identifiers.
_SLUG_RE = re.compile(r"^[a-z0-9_]{1,32}$")


def get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    return url


def tree_schema(instance_slug: str) -> str:
    """Schema holding one family tree's ``person`` and ``relation`` tables."""
    if not _SLUG_RE.match(instance_slug):
        raise ValueError(f"invalid family tree slug: {instance_slug!r}")
    return f"tree_{instance_slug}"


def search_path_sql(instance_slug: str | None) -> str:
    if instance_slug:
        return f"SET search_path TO {tree_schema(instance_slug)}, public"
    return "SET search_path TO public"


@contextmanager
def db_conn(instance_slug: str | None = None) -> Iterator[psycopg.Connection]:
    """Yield a connection scoped to one family tree, or to ``public`` without a slug.

    The slug is checked before connecting.
    """
    statement = search_path_sql(instance_slug)
    with psycopg.connect(get_database_url()) as conn:
        conn.execute(statement)
        yield conn
