"""
Console entry points for local development.

Usage:
    schoolhub-dev [uvicorn args]     # Reloading API server on 127.0.0.1:8000
    schoolhub-test [pytest args]     # Test suite
    schoolhub-lint [ruff args]       # ruff check
    schoolhub-format [ruff args]     # ruff format
    schoolhub-db-init                # Create missing tables in DATABASE_URL

Extra command-line arguments are passed through to the wrapped tool.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from collections.abc import Sequence

from schoolhub.core.db import get_engine, init_schema, reset_engine

logger = logging.getLogger(__name__)

SOURCE_DIRS = ("schoolhub", "cli", "tests")


def _run_module(module: str, *args: str) -> None:
    """Run `python -m module args...` and exit with its return code."""
    cmd: Sequence[str] = [sys.executable, "-m", module, *args, *sys.argv[1:]]
    raise SystemExit(subprocess.run(cmd).returncode)


def dev() -> None:
    _run_module(
        "uvicorn", "schoolhub.main:app", "--reload", "--host", "127.0.0.1", "--port", "8000"
    )


def run_tests() -> None:
    _run_module("pytest", "-q")


def lint() -> None:
    _run_module("ruff", "check", *SOURCE_DIRS)


def format_code() -> None:
    _run_module("ruff", "format", *SOURCE_DIRS)


def db_init() -> None:
    """Create every table that does not exist yet."""
    logging.basicConfig(level=logging.INFO)
    engine = get_engine()
    try:
        init_schema(engine)
        logger.info(f"Schema ready on {engine.url.render_as_string(hide_password=True)}")
    finally:
        reset_engine()
