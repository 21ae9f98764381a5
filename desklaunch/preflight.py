"""Target binary checks.

Failing to find or execute the wrapped binary is the one fatal condition
of a launch; everything else degrades gracefully.
"""

from __future__ import annotations

import os
import shutil
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

from desklaunch.errors import BinaryNotExecutableError, BinaryNotFoundError, LaunchError


@dataclass(frozen=True)
class PreflightResult:
    ok: bool
    message: str
    binary: Optional[str] = None
    exit_code: int = 0


def resolve_binary(binary: str, env: Mapping[str, str]) -> str:
    """Resolve ``binary`` the way exec would, using the child's PATH."""
    if os.sep in binary:
        if not os.path.exists(binary):
            raise BinaryNotFoundError(f"{binary}: No such file or directory")
        if os.path.isdir(binary) or not os.access(binary, os.X_OK):
            raise BinaryNotExecutableError(f"{binary}: Permission denied")
        return binary

    found = shutil.which(binary, path=env.get("PATH", os.defpath))
    if found is None:
        raise BinaryNotFoundError(f"{binary}: command not found")
    return found


def run_preflight(binary: str, env: Mapping[str, str]) -> PreflightResult:
    try:
        resolved = resolve_binary(binary, env)
    except LaunchError as exc:
        return PreflightResult(False, str(exc), exit_code=exc.exit_code)
    return PreflightResult(True, "Preflight OK", binary=resolved)


def run_preflight_or_die(binary: str, env: Mapping[str, str]) -> str:
    result = run_preflight(binary, env)
    if result.ok:
        return result.binary

    sys.stderr.write(f"desklaunch: {result.message}\n")
    raise SystemExit(result.exit_code)
