import logging

from desklaunch.jobs import JobGroup

from conftest import make_tool


def test_failed_job_does_not_block_others(tmp_path, caplog):
    out = tmp_path / "ok.txt"
    fail = make_tool(tmp_path / "fail", "exit 3")
    ok = make_tool(tmp_path / "ok", f'sleep 0.1; echo done > "{out}"')

    jobs = JobGroup()
    jobs.spawn([fail], description="failing-tool")
    jobs.spawn([ok], description="ok-tool")
    with caplog.at_level(logging.ERROR, logger="desklaunch.jobs"):
        failures = jobs.wait()

    assert failures == ["failing-tool"]
    assert out.read_text(encoding="utf-8").strip() == "done"
    assert "failing-tool exited abnormally with status 3" in caplog.text


def test_spawn_failure_is_recorded(tmp_path):
    jobs = JobGroup()
    assert jobs.spawn([tmp_path / "does-not-exist"]) is None
    assert jobs.wait() == [str(tmp_path / "does-not-exist")]


def test_stdout_redirect_and_env(tmp_path):
    tool = make_tool(tmp_path / "tool", 'echo "$GREETING"')
    target = tmp_path / "out.cache"
    jobs = JobGroup(env={"GREETING": "hello", "PATH": "/usr/bin:/bin"})
    jobs.spawn([tool], stdout=target)
    assert jobs.wait() == []
    assert target.read_text(encoding="utf-8") == "hello\n"


def test_wait_without_jobs():
    assert JobGroup().wait() == []
