import pathlib
import sys
from dataclasses import dataclass
from typing import Dict

import pytest

# Ensure repo root is on path
REPO_ROOT = pathlib.Path(__file__).parent.parent
sys.path.insert(0, str(REPO_ROOT))

TRIPLET = "x86_64-linux-gnu"


def make_tool(path: pathlib.Path, body: str) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
    path.chmod(0o755)
    return path


def logging_tool(path: pathlib.Path, extra: str = "") -> pathlib.Path:
    """A tool that records each invocation in $TOOL_LOG."""
    body = f'echo "{path.name}" >> "$TOOL_LOG"'
    if extra:
        body += "\n" + extra
    return make_tool(path, body)


def touch(path: pathlib.Path, content: str = "") -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@dataclass
class Sandbox:
    root: pathlib.Path
    user_data: pathlib.Path
    user_common: pathlib.Path
    bin_dir: pathlib.Path
    tool_log: pathlib.Path
    environ: Dict[str, str]

    @property
    def lib(self) -> pathlib.Path:
        return self.root / "usr" / "lib" / TRIPLET

    def invocations(self) -> list:
        if not self.tool_log.exists():
            return []
        return self.tool_log.read_text(encoding="utf-8").split()

    def install_tools(self) -> None:
        lib = self.lib
        logging_tool(self.bin_dir / "update-mime-database")
        touch(self.root / "usr" / "share" / "mime" / "packages" / "freedesktop.org.xml", "<mime-info/>")

        logging_tool(lib / "glib-2.0" / "gio-querymodules")
        touch(lib / "gio" / "modules" / "libgiognutls.so")

        logging_tool(lib / "glib-2.0" / "glib-compile-schemas")
        touch(self.root / "usr" / "share" / "glib-2.0" / "schemas" / "org.example.gschema.xml", "<schemalist/>")

        logging_tool(lib / "gdk-pixbuf-2.0" / "gdk-pixbuf-query-loaders", 'echo "# loaders"')

        logging_tool(lib / "libgtk-3-0" / "gtk-query-immodules-3.0", 'echo "# immodules $#"')
        touch(lib / "gtk-3.0" / "3.0.0" / "immodules" / "im-ibus.so")

        logging_tool(self.root / "usr" / "sbin" / "update-icon-caches")
        touch(self.root / "usr" / "share" / "icons" / "Adwaita" / "index.theme", "[Icon Theme]\n")


@pytest.fixture
def sandbox(tmp_path):
    root = tmp_path / "snap" / "app" / "x1"
    user_data = tmp_path / "home" / "snap" / "app" / "x1"
    user_common = tmp_path / "home" / "snap" / "app" / "common"
    bin_dir = tmp_path / "bin"
    for d in (root, user_data, user_common, bin_dir):
        d.mkdir(parents=True)
    tool_log = tmp_path / "tools.log"
    environ = {
        "SNAP": str(root),
        "SNAP_USER_DATA": str(user_data),
        "SNAP_USER_COMMON": str(user_common),
        "SNAP_ARCH": "amd64",
        "SNAP_VERSION": "1.0",
        "PATH": f"{bin_dir}:/usr/bin:/bin",
        "TOOL_LOG": str(tool_log),
    }
    return Sandbox(root, user_data, user_common, bin_dir, tool_log, environ)
