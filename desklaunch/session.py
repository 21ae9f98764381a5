"""Host session sockets visible from the sandbox runtime directory.

Inside the sandbox ``XDG_RUNTIME_DIR`` is ``/run/user/<uid>/snap.<name>``, so
host sockets are looked up in its parent directory.
"""

from __future__ import annotations

import logging
import stat
from pathlib import Path
from typing import List

from desklaunch.config import LaunchConfig
from desklaunch.environment import LaunchEnvironment

log = logging.getLogger(__name__)

WAYLAND_LAUNCH_ARGS = (
    "--enable-features=UseOzonePlatform,WaylandWindowDecorations",
    "--ozone-platform=wayland",
)

WAYLAND_BACKEND_VARS = {
    "GDK_BACKEND": "wayland",
    "CLUTTER_BACKEND": "wayland",
    "QT_QPA_PLATFORM": "wayland-egl",
}


def is_socket(path: Path) -> bool:
    try:
        return stat.S_ISSOCK(path.stat().st_mode)
    except OSError:
        return False


def detect_wayland(config: LaunchConfig) -> bool:
    """Return True when a wayland compositor socket is reachable.

    Also creates the compat symlink inside the sandbox runtime dir so
    clients using the default socket lookup find it.
    """
    if config.runtime_dir is None or config.disable_wayland:
        return False
    host_socket = config.runtime_dir.parent / config.wayland_display
    if not is_socket(host_socket):
        log.debug("No wayland socket at %s", host_socket)
        return False
    compat = config.runtime_dir / config.wayland_display
    if not compat.exists() and not compat.is_symlink():
        try:
            compat.symlink_to(host_socket)
        except OSError:
            log.warning("Could not link %s to %s", compat, host_socket, exc_info=True)
    return True


def apply_wayland(env: LaunchEnvironment) -> List[str]:
    """Prefer the wayland backend; returns the extra launch arguments."""
    env.update(WAYLAND_BACKEND_VARS)
    return list(WAYLAND_LAUNCH_ARGS)


def export_pulseaudio(config: LaunchConfig, env: LaunchEnvironment) -> None:
    if config.runtime_dir is None:
        return
    socket = config.runtime_dir.parent / "pulse" / "native"
    if is_socket(socket):
        env["PULSE_SERVER"] = f"unix:{socket}"
