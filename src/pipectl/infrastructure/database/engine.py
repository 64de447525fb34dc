"""Database engine setup for the run-history SQLite file.

The DB is stored at {workspace_root}/.pipectl/pipectl.db.

Uses SQLAlchemy Core rather than the ORM; each CLI process opens one
short-lived connection per operation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from pipectl.infrastructure.database.schema import metadata

STATE_DIRNAME = ".pipectl"
DB_FILENAME = "pipectl.db"


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(workspace_root: Path) -> Engine:
    """Initialize the pipectl database at ``{workspace_root}/.pipectl/pipectl.db``.

    Creates the ``.pipectl/`` directory structure and all tables from
    :data:`schema.metadata`.

    Idempotent: safe to call on an existing workspace.
    """
    state_dir = workspace_root / STATE_DIRNAME
    state_dir.mkdir(parents=True, exist_ok=True)
    (state_dir / "runs").mkdir(exist_ok=True)
    (state_dir / "plugins").mkdir(exist_ok=True)

    engine = create_db_engine(state_dir / DB_FILENAME)
    metadata.create_all(engine)
    return engine
