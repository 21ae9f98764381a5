"""Sandbox description read from the inherited environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from desklaunch.errors import ConfigError


# Snaps mounted on distributions without /snap show up under this prefix.
ALT_MOUNT_PREFIX = "/var/lib/snapd"

ARCH_TRIPLETS = {
    "amd64": "x86_64-linux-gnu",
    "armhf": "arm-linux-gnueabihf",
    "arm64": "aarch64-linux-gnu",
}


def normalize_install_root(path: str) -> str:
    """Strip the alternate mount prefix from the install root."""
    return path.replace(ALT_MOUNT_PREFIX, "")


def arch_triplet(arch: str) -> str:
    return ARCH_TRIPLETS.get(arch, f"{arch}-linux-gnu")


@dataclass(frozen=True)
class LaunchConfig:
    install_root: Path
    user_data: Path
    user_common: Path
    runtime_dir: Optional[Path] = None
    arch: str = "amd64"
    arch_triplet: str = "x86_64-linux-gnu"
    version: str = ""
    disable_wayland: bool = False
    wayland_display: str = "wayland-0"

    @property
    def lib_dir(self) -> Path:
        """Arch-specific library directory inside the install root."""
        return self.install_root / "usr" / "lib" / self.arch_triplet

    @property
    def marker_path(self) -> Path:
        return self.user_data / ".last_revision"


def _required(environ: Mapping[str, str], key: str) -> str:
    val = str(environ.get(key, "")).strip()
    if not val:
        raise ConfigError(f"Missing required environment variable: {key}")
    return val


def load_launch_config(environ: Optional[Mapping[str, str]] = None) -> LaunchConfig:
    """Build a LaunchConfig from ``environ`` (defaults to ``os.environ``)."""
    if environ is None:
        environ = os.environ

    arch = str(environ.get("SNAP_ARCH", "")).strip() or "amd64"
    runtime = str(environ.get("XDG_RUNTIME_DIR", "")).strip()

    return LaunchConfig(
        install_root=Path(normalize_install_root(_required(environ, "SNAP"))),
        user_data=Path(_required(environ, "SNAP_USER_DATA")),
        user_common=Path(_required(environ, "SNAP_USER_COMMON")),
        runtime_dir=Path(runtime) if runtime else None,
        arch=arch,
        arch_triplet=arch_triplet(arch),
        version=str(environ.get("SNAP_VERSION", "")),
        disable_wayland=bool(environ.get("DISABLE_WAYLAND")),
        wayland_display=environ.get("WAYLAND_DISPLAY") or "wayland-0",
    )
