"""Child process environment assembled by the launcher.

Steps mutate a ``LaunchEnvironment`` instead of ``os.environ``; the final
mapping is handed to ``os.execve`` (and to background jobs) as-is.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, MutableMapping, Optional, Union

log = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Variables rewritten by the launcher whose host values are kept for children
# that need to undo the sandbox overrides (e.g. terminals spawned by the app).
SAVED_VARIABLES = (
    "XDG_CONFIG_DIRS",
    "XDG_DATA_DIRS",
    "LOCPATH",
    "GIO_MODULE_DIR",
    "GSETTINGS_SCHEMA_DIR",
    "GDK_PIXBUF_MODULE_FILE",
    "GDK_PIXBUF_MODULEDIR",
    "GDK_BACKEND",
    "GTK_PATH",
    "GTK_EXE_PREFIX",
    "GTK_IM_MODULE_FILE",
)

SAVED_SUFFIX = "_SNAP_ORIG"


def saved_name(var: str) -> str:
    return f"{var}{SAVED_SUFFIX}"


def _should_add(path: str) -> bool:
    # Unexpanded references are resolved later by the consumer.
    if "$" in path:
        return True
    return os.path.isdir(path)


class LaunchEnvironment(MutableMapping[str, str]):
    """Mutable name -> value mapping with search-path helpers."""

    def __init__(self, base: Optional[Mapping[str, str]] = None):
        self._vars: Dict[str, str] = dict(base or {})

    def __getitem__(self, key: str) -> str:
        return self._vars[key]

    def __setitem__(self, key: str, value: PathLike) -> None:
        self._vars[key] = str(value)

    def __delitem__(self, key: str) -> None:
        del self._vars[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._vars)

    def __len__(self) -> int:
        return len(self._vars)

    def entries(self, var: str) -> List[str]:
        """Return the non-empty entries of a colon-delimited variable."""
        return [p for p in self._vars.get(var, "").split(":") if p]

    def prepend_dir(self, var: str, path: PathLike) -> bool:
        path = str(path)
        if not _should_add(path):
            log.debug("Not prepending missing %s to %s", path, var)
            return False
        current = self._vars.get(var, "")
        self._vars[var] = f"{path}:{current}" if current else path
        return True

    def append_dir(self, var: str, path: PathLike) -> bool:
        path = str(path)
        if not _should_add(path):
            log.debug("Not appending missing %s to %s", path, var)
            return False
        current = self._vars.get(var, "")
        self._vars[var] = f"{current}:{path}" if current else path
        return True

    def save_originals(self, names: Iterable[str] = SAVED_VARIABLES) -> None:
        """Record current values under their backup names before rewriting."""
        for name in names:
            self._vars[saved_name(name)] = self._vars.get(name, "")

    def as_dict(self) -> Dict[str, str]:
        return dict(self._vars)
