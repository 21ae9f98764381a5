import pytest

from desklaunch.errors import BinaryNotExecutableError, BinaryNotFoundError
from desklaunch.preflight import resolve_binary, run_preflight

from conftest import make_tool, touch


def test_resolves_on_child_path(tmp_path):
    tool = make_tool(tmp_path / "bin" / "app", "exit 0")
    assert resolve_binary("app", {"PATH": str(tmp_path / "bin")}) == str(tool)


def test_absolute_path_must_be_executable(tmp_path):
    plain = touch(tmp_path / "plain")
    with pytest.raises(BinaryNotExecutableError):
        resolve_binary(str(plain), {})
    with pytest.raises(BinaryNotFoundError):
        resolve_binary(str(tmp_path / "missing"), {})


def test_run_preflight_reports_exit_code(tmp_path):
    result = run_preflight("no-such-app", {"PATH": str(tmp_path)})
    assert not result.ok
    assert result.exit_code == 127
    assert "command not found" in result.message
