"""Artifact archiving with SHA-256 fingerprints.

Archived files are copied (never moved) under ``<artifacts_dir>/<number>/``
and listed in a ``manifest.json`` next to them.
"""

from __future__ import annotations

import hashlib
import json
import shutil
from dataclasses import asdict, dataclass
from pathlib import Path

MANIFEST_NAME = "manifest.json"

_CHUNK = 1024 * 1024


@dataclass(frozen=True)
class ArchivedFile:
    """One file in an artifact manifest."""

    path: str  # relative to the run's artifact directory, POSIX separators
    size: int
    sha256: str


def fingerprint(path: Path) -> str:
    """Hex SHA-256 digest of a file, read in chunks."""
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        while chunk := fh.read(_CHUNK):
            digest.update(chunk)
    return digest.hexdigest()


def collect_files(base: Path, patterns: list[str]) -> list[Path]:
    """Files under *base* matching any glob in *patterns*, sorted, unique."""
    if not base.is_dir():
        return []
    found: set[Path] = set()
    for pattern in patterns:
        found.update(p for p in base.glob(pattern) if p.is_file())
    return sorted(found)


def copy_files(files: list[Path], *, source_root: Path, dest_root: Path) -> list[Path]:
    """Copy *files* into *dest_root*, keeping their path relative to *source_root*."""
    copied: list[Path] = []
    for src in files:
        target = dest_root / src.relative_to(source_root)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, target)
        copied.append(target)
    return copied


def copy_tree(source: Path, dest: Path) -> list[Path]:
    """Copy a directory tree to *dest* and return every copied file."""
    shutil.copytree(source, dest, dirs_exist_ok=True)
    return sorted(p for p in dest.rglob("*") if p.is_file())


def write_manifest(run_dir: Path, files: list[Path]) -> list[ArchivedFile]:
    """Fingerprint *files* (all under *run_dir*) and write ``manifest.json``."""
    entries = [
        ArchivedFile(
            path=f.relative_to(run_dir).as_posix(),
            size=f.stat().st_size,
            sha256=fingerprint(f),
        )
        for f in sorted(files)
    ]
    payload = {"files": [asdict(e) for e in entries]}
    (run_dir / MANIFEST_NAME).write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    return entries


def read_manifest(run_dir: Path) -> list[ArchivedFile]:
    """Load a previously written manifest (empty list when absent)."""
    path = run_dir / MANIFEST_NAME
    if not path.is_file():
        return []
    payload = json.loads(path.read_text(encoding="utf-8"))
    return [ArchivedFile(**entry) for entry in payload.get("files", [])]
