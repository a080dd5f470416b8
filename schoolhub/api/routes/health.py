"""Liveness and readiness probes (no envelope; probes read plain JSON)."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from schoolhub.core.db import get_engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _database_reachable() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error(f"Readiness check could not reach the database: {exc}")
        return False
    return True


@router.get("/health")
def health() -> dict:
    """The process is up."""
    return {"ok": True}


@router.get("/readyz")
def readyz() -> JSONResponse:
    """200 when the database answers, 503 otherwise (driver errors are not exposed)."""
    if _database_reachable():
        return JSONResponse(status_code=200, content={"ok": True, "db": "ok"})
    return JSONResponse(status_code=503, content={"ok": False, "db": "unavailable"})
