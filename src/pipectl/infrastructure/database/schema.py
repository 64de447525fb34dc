"""SQLAlchemy Core table definitions for the pipectl run history."""

from __future__ import annotations

from sqlalchemy import (
    REAL,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

runs = Table(
    "runs",
    metadata,
    Column("number", Integer, primary_key=True),  # BUILD_NUMBER
    Column("status", Text, nullable=False),
    Column("started", Text, nullable=False),
    Column("finished", Text),
    Column("duration_ms", REAL),
    Column("commit_sha", Text),
    Column("options", Text),  # JSON object
    Column("error", Text),
)

stage_results = Table(
    "stage_results",
    metadata,
    Column("run_number", Integer, ForeignKey("runs.number"), nullable=False),
    Column("position", Integer, nullable=False),
    Column("name", Text, nullable=False),
    Column("status", Text, nullable=False),
    Column("policy", Text, nullable=False),
    Column("duration_ms", REAL, default=0.0, server_default="0.0"),
    Column("message", Text),
    Column("log_path", Text),
    UniqueConstraint("run_number", "name"),
)

Index("ix_stage_results_run", stage_results.c.run_number)
