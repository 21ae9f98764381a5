"""desklaunch launcher.

Prepares the desktop integration environment of a sandboxed application and
then replaces the current process with it:

    desklaunch <binary> [args...]

Integration caches are rebuilt only when the sandbox version differs from the
one recorded in ``$SNAP_USER_DATA/.last_revision``.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from desklaunch import caches, session
from desklaunch.config import LaunchConfig, load_launch_config
from desklaunch.environment import LaunchEnvironment
from desklaunch.errors import LaunchError, UsageError
from desklaunch.jobs import JobGroup
from desklaunch.preflight import run_preflight_or_die
from desklaunch.revision import Freshness, check_freshness, write_revision

log = logging.getLogger(__name__)


@dataclass
class LaunchPlan:
    binary: str
    argv: List[str]
    env: Dict[str, str]
    needs_update: bool = False
    failures: List[str] = field(default_factory=list)


def setup_search_paths(config: LaunchConfig, env: LaunchEnvironment) -> None:
    root = config.install_root
    lib = config.lib_dir

    if not env.get("XDG_CONFIG_DIRS"):
        env["XDG_CONFIG_DIRS"] = "/etc/xdg"
    env.prepend_dir("XDG_CONFIG_DIRS", root / "etc" / "xdg")
    env.prepend_dir("XDG_DATA_DIRS", root / "usr" / "share")

    env.append_dir("LOCPATH", root / "usr" / "lib" / "locale")

    # Mesa libraries and drivers for OpenGL
    env.append_dir("LD_LIBRARY_PATH", lib / "mesa")
    env.append_dir("LD_LIBRARY_PATH", lib / "mesa-egl")
    env["LIBGL_DRIVERS_PATH"] = lib / "dri"
    env.append_dir("LD_LIBRARY_PATH", lib / "dri")

    env.append_dir("GI_TYPELIB_PATH", lib / "girepository-1.0")
    env.append_dir("GI_TYPELIB_PATH", root / "usr" / "lib" / "girepository-1.0")
    env.append_dir("GI_TYPELIB_PATH", root / "usr" / "lib" / "gjs" / "girepository-1.0")

    env.append_dir("GTK_PATH", lib / "gtk-3.0")
    env.append_dir("GTK_PATH", root / "usr" / "lib" / "gtk-3.0")

    env["FONTCONFIG_PATH"] = "/etc/fonts"


def ensure_dir_exists(path: Path, mode: Optional[int] = None) -> None:
    """Create ``path`` if missing; ``mode`` applies only to a newly created dir."""
    if path.is_dir():
        return
    path.mkdir(parents=True, exist_ok=True)
    if mode is not None:
        path.chmod(mode)


def migrate_legacy_cache(config: LaunchConfig) -> bool:
    """Move the cache that used to live under SNAP_USER_DATA to SNAP_USER_COMMON."""
    legacy = config.user_data / ".cache"
    target = config.user_common / ".cache"
    if not legacy.is_dir() or target.exists():
        return False
    config.user_common.mkdir(parents=True, exist_ok=True)
    shutil.move(str(legacy), str(target))
    log.info("Moved legacy cache %s to %s", legacy, target)
    return True


def setup_user_dirs(config: LaunchConfig, env: LaunchEnvironment) -> None:
    config_home = config.user_data / ".config"
    ensure_dir_exists(config_home, 0o700)
    env["XDG_CONFIG_HOME"] = config_home

    data_home = config.user_data / ".local" / "share"
    ensure_dir_exists(data_home)
    env["XDG_DATA_HOME"] = data_home

    migrate_legacy_cache(config)
    cache_home = config.user_common / ".cache"
    ensure_dir_exists(cache_home)
    env["XDG_CACHE_HOME"] = cache_home

    if config.runtime_dir is not None:
        ensure_dir_exists(config.runtime_dir, 0o700)


def prepare_launch(command: Sequence[str], environ: Optional[Mapping[str, str]] = None) -> LaunchPlan:
    """Compute the child environment and arguments, rebuilding caches if stale."""
    if not command:
        raise UsageError("usage: desklaunch <binary> [args...]")
    if environ is None:
        environ = os.environ

    config = load_launch_config(environ)
    env = LaunchEnvironment(environ)
    needs_update = check_freshness(config.marker_path, config.version) is Freshness.STALE
    log.debug("Sandbox version %r, needs_update=%s", config.version, needs_update)

    env["SNAP"] = config.install_root
    env["SNAP_LAUNCHER_ARCH_TRIPLET"] = config.arch_triplet
    env.save_originals()

    setup_search_paths(config, env)
    setup_user_dirs(config, env)

    launch_args: List[str] = []
    if session.detect_wayland(config):
        launch_args += session.apply_wayland(env)
    session.export_pulseaudio(config, env)

    caches.export_cache_locations(config, env)
    jobs = JobGroup(env=env)
    if needs_update:
        caches.rebuild_all(config, env, jobs)
    elif caches.pixbuf_cache_missing(env):
        caches.rebuild_pixbuf_loaders(config, env, jobs)
    failures = jobs.wait()

    env.prepend_dir("GSETTINGS_SCHEMA_DIR", Path(env["XDG_DATA_HOME"]) / "glib-2.0" / "schemas")

    if needs_update and not failures:
        write_revision(config.marker_path, config.version)
    elif needs_update:
        log.warning("Integration caches incomplete; they will be rebuilt on next launch")

    return LaunchPlan(
        binary=command[0],
        argv=[command[0], *launch_args, *command[1:]],
        env=env.as_dict(),
        needs_update=needs_update,
        failures=failures,
    )


def _configure_logging(environ: Mapping[str, str]) -> None:
    level = logging.DEBUG if environ.get("DESKLAUNCH_DEBUG") == "1" else logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="desklaunch: %(levelname)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    _configure_logging(os.environ)

    try:
        plan = prepare_launch(argv)
    except LaunchError as exc:
        sys.stderr.write(f"desklaunch: {exc}\n")
        return exc.exit_code

    binary = run_preflight_or_die(plan.binary, plan.env)
    try:
        os.execve(binary, plan.argv, plan.env)
    except OSError as exc:
        sys.stderr.write(f"desklaunch: {plan.binary}: {exc.strerror}\n")
        return 126
    return 0  # not reached


if __name__ == "__main__":
    raise SystemExit(main())
