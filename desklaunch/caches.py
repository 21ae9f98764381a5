"""Platform-integration caches rebuilt after a sandbox upgrade.

Every ``rebuild_*`` function does its filesystem preparation synchronously
and hands the expensive tool run to the shared ``JobGroup``. A step whose
tool is missing, or whose artifact is already shipped precompiled, is skipped.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, List, Optional

from desklaunch.config import LaunchConfig
from desklaunch.environment import LaunchEnvironment
from desklaunch.jobs import JobGroup

log = logging.getLogger(__name__)

PIXBUF_CACHE_NAME = ".snapcraft-gdk-pixbuf-loaders.cache"
ICON_CACHE_TOOLS = ("update-icon-caches", "update-icon-cache.gtk2")


def remove_path(path: Path) -> None:
    """Remove ``path`` whatever it is: file, symlink or directory tree."""
    if path.is_symlink() or (path.exists() and not path.is_dir()):
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def recreate_dir(path: Path) -> None:
    remove_path(path)
    path.mkdir(parents=True, exist_ok=True)


def symlink_glob(src_dir: Path, pattern: str, dest_dir: Path) -> List[Path]:
    """Link every ``src_dir/pattern`` match into ``dest_dir``.

    A pattern with no matches (or a missing ``src_dir``) links nothing.
    """
    links = []
    if not src_dir.is_dir():
        return links
    for src in sorted(src_dir.glob(pattern)):
        link = dest_dir / src.name
        try:
            link.symlink_to(src)
        except FileExistsError:
            log.debug("Link %s already exists", link)
            continue
        links.append(link)
    return links


def _data_dirs(env: LaunchEnvironment) -> List[Path]:
    return [Path(p) for p in env.entries("XDG_DATA_DIRS")]


def rebuild_mime_cache(config: LaunchConfig, env: LaunchEnvironment, jobs: JobGroup) -> None:
    data_home = Path(env["XDG_DATA_HOME"])
    shipped = config.install_root / "usr" / "share" / "mime"
    remove_path(data_home / "mime")
    if (shipped / "mime.cache").is_file():
        return
    tool = shutil.which("update-mime-database", path=env.get("PATH"))
    if not tool or not shipped.is_dir():
        log.debug("Skipping MIME cache: tool=%s source=%s", tool, shipped)
        return
    shutil.copytree(shipped, data_home / "mime", symlinks=True)
    jobs.spawn([tool, data_home / "mime"], description="update-mime-database")


def rebuild_gio_modules(config: LaunchConfig, env: LaunchEnvironment, jobs: JobGroup) -> None:
    tool = config.lib_dir / "glib-2.0" / "gio-querymodules"
    if not tool.is_file():
        return
    module_dir = Path(env["GIO_MODULE_DIR"])
    recreate_dir(module_dir)
    symlink_glob(config.lib_dir / "gio" / "modules", "*.so", module_dir)
    jobs.spawn([tool, module_dir], description="gio-querymodules")


def rebuild_schemas(config: LaunchConfig, env: LaunchEnvironment, jobs: JobGroup) -> None:
    tool = config.lib_dir / "glib-2.0" / "glib-compile-schemas"
    if not tool.is_file():
        return
    schema_dir = Path(env["XDG_DATA_HOME"]) / "glib-2.0" / "schemas"
    recreate_dir(schema_dir)
    linked = []
    for data_dir in _data_dirs(env):
        source = data_dir / "glib-2.0" / "schemas"
        if (source / "gschemas.compiled").is_file():
            continue
        linked += symlink_glob(source, "*.xml", schema_dir)
        linked += symlink_glob(source, "*.override", schema_dir)
    if not linked:
        log.debug("No uncompiled schemas found")
        return
    jobs.spawn([tool, schema_dir], description="glib-compile-schemas")


def rebuild_pixbuf_loaders(config: LaunchConfig, env: LaunchEnvironment, jobs: JobGroup) -> None:
    cache_file = Path(env["GDK_PIXBUF_MODULE_FILE"])
    # A dangling symlink must go too, or the tool output is written through it.
    remove_path(cache_file)
    tool = config.lib_dir / "gdk-pixbuf-2.0" / "gdk-pixbuf-query-loaders"
    if not tool.is_file():
        return
    cache_file.parent.mkdir(parents=True, exist_ok=True)
    jobs.spawn([tool], stdout=cache_file, description="gdk-pixbuf-query-loaders")


def rebuild_immodules(config: LaunchConfig, env: LaunchEnvironment, jobs: JobGroup) -> None:
    cache_file = Path(env["GTK_IM_MODULE_FILE"])
    module_dir = cache_file.parent
    recreate_dir(module_dir)
    modules = symlink_glob(config.lib_dir / "gtk-3.0" / "3.0.0" / "immodules", "*.so", module_dir)
    tool = config.lib_dir / "libgtk-3-0" / "gtk-query-immodules-3.0"
    if not tool.is_file():
        return
    jobs.spawn([tool, *modules], stdout=cache_file, description="gtk-query-immodules-3.0")


def _icon_cache_tool(config: LaunchConfig) -> Optional[Path]:
    for name in ICON_CACHE_TOOLS:
        candidate = config.install_root / "usr" / "sbin" / name
        if candidate.is_file():
            return candidate
    return None


def _themes(data_dirs: Iterable[Path]) -> Iterable[Path]:
    for data_dir in data_dirs:
        icons = data_dir / "icons"
        if not icons.is_dir():
            continue
        for theme in sorted(icons.iterdir()):
            if (theme / "index.theme").is_file() and not (theme / "icon-theme.cache").is_file():
                yield theme


def rebuild_icon_caches(config: LaunchConfig, env: LaunchEnvironment, jobs: JobGroup) -> None:
    icons_home = Path(env["XDG_DATA_HOME"]) / "icons"
    recreate_dir(icons_home)
    tool = _icon_cache_tool(config)
    for theme in _themes(_data_dirs(env)):
        mirror = icons_home / theme.name
        # Themes shared by several data dirs are handled once.
        if mirror.is_dir():
            continue
        mirror.mkdir(parents=True)
        symlink_glob(theme, "*", mirror)
        if tool is not None:
            jobs.spawn([tool, mirror], description=f"{tool.name} {theme.name}")


def rebuild_all(config: LaunchConfig, env: LaunchEnvironment, jobs: JobGroup) -> None:
    """Run every rebuild step; a step that fails is recorded in ``jobs.failures``."""
    for step in (
        rebuild_mime_cache,
        rebuild_gio_modules,
        rebuild_schemas,
        rebuild_pixbuf_loaders,
        rebuild_immodules,
        rebuild_icon_caches,
    ):
        try:
            step(config, env, jobs)
        except OSError as exc:
            log.error("ERROR: %s failed: %s", step.__name__, exc)
            jobs.failures.append(step.__name__)


def export_cache_locations(config: LaunchConfig, env: LaunchEnvironment) -> None:
    """Point toolkits at the per-user caches (whether or not they are rebuilt)."""
    cache_home = Path(env["XDG_CACHE_HOME"])
    env["GIO_MODULE_DIR"] = cache_home / "gio-modules"
    env["GDK_PIXBUF_MODULE_FILE"] = cache_home / PIXBUF_CACHE_NAME
    env["GDK_PIXBUF_MODULEDIR"] = config.lib_dir / "gdk-pixbuf-2.0" / "2.10.0" / "loaders"
    env["GTK_IM_MODULE_FILE"] = cache_home / "immodules" / "immodules.cache"


def pixbuf_cache_missing(env: LaunchEnvironment) -> bool:
    return not os.path.isfile(env["GDK_PIXBUF_MODULE_FILE"])
