from __future__ import annotations

import logging
import os

from fastapi import FastAPI

try:
    from .routes import graph as graph_routes
    from .routes import relationships as relationship_routes
except ImportError:  # pragma: no cover
    # Support running with CWD=kinship (e.g., `python -m uvicorn main:app`).
    from routes import graph as graph_routes
    from routes import relationships as relationship_routes

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Kinship API", version="0.1.0")
app.include_router(relationship_routes.router)
app.include_router(graph_routes.router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"ok": "true"}
