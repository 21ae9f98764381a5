"""Revision marker: decides whether integration caches must be rebuilt."""

from __future__ import annotations

import enum
import logging
import os
import uuid
from pathlib import Path
from typing import Dict, Optional

log = logging.getLogger(__name__)

MARKER_KEY = "SNAP_DESKTOP_LAST_REVISION"


class Freshness(enum.Enum):
    FRESH = "fresh"
    STALE = "stale"


def _parse_marker(text: str) -> Dict[str, str]:
    data: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        data[key.strip()] = value
    return data


def read_last_revision(marker: Path) -> Optional[str]:
    try:
        text = marker.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return None
    except OSError:
        log.debug("Failed to read revision marker %s", marker, exc_info=True)
        return None
    return _parse_marker(text).get(MARKER_KEY)


def check_freshness(marker: Path, version: str) -> Freshness:
    if read_last_revision(marker) == version:
        return Freshness.FRESH
    return Freshness.STALE


def atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp.{uuid.uuid4().hex}")
    fd = os.open(str(tmp), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
    try:
        os.write(fd, content.encode("utf-8"))
        os.fsync(fd)
    finally:
        os.close(fd)
    os.replace(str(tmp), str(path))


def write_revision(marker: Path, version: str) -> None:
    atomic_write_text(marker, f"{MARKER_KEY}={version}\n")
    log.debug("Recorded revision %s in %s", version, marker)
