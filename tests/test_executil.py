import json
from types import SimpleNamespace

from tpm_enroll import executil


def _events(log_dir):
    path = log_dir / executil.LOG_NAME
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]


def test_log_event_creates_log(_isolated_log):
    executil._log_event("exec", ["echo", "hi"], rc=0, out="ok", err=None, dur=0.1)
    data = _events(_isolated_log)
    assert data and data[0]["kind"] == "exec"
    assert data[0]["ts"].endswith("Z")


def test_log_level_filters_trace(_isolated_log, monkeypatch):
    monkeypatch.setattr(executil, "LOG_LEVEL", "INFO")
    executil.trace("hidden")
    executil.log("WARN", "shown", device="/dev/sda2")
    data = _events(_isolated_log)
    assert [d["event"] for d in data] == ["shown"]
    assert data[0]["device"] == "/dev/sda2"


def test_run_dry_run_skips_subprocess(monkeypatch):
    def boom(*args, **kwargs):
        raise AssertionError("subprocess must not run in dry-run")

    monkeypatch.setattr(executil.subprocess, "run", boom)
    res = executil.run(["dracut", "--force", "--regenerate-all"], dry_run=True)
    assert res.rc == 0
    assert res.out == "DRY-RUN: dracut --force --regenerate-all"


def test_run_captures_output(monkeypatch):
    seen = {}

    def fake_run(cmd, capture_output=False, text=False, timeout=None):
        seen.update(cmd=cmd, capture_output=capture_output, timeout=timeout)
        return SimpleNamespace(returncode=0, stdout="uuid\n", stderr="")

    monkeypatch.setattr(executil.subprocess, "run", fake_run)
    res = executil.run(["cryptsetup", "luksUUID", "/dev/sda2"])
    assert res.ok
    assert res.out == "uuid\n"
    assert seen["capture_output"] is True
    assert seen["timeout"] == executil.QUERY_TIMEOUT


def test_run_interactive_does_not_capture(monkeypatch):
    seen = {}

    def fake_run(cmd, timeout=None, **kwargs):
        seen.update(kwargs)
        seen["timeout"] = timeout
        return SimpleNamespace(returncode=0, stdout=None, stderr=None)

    monkeypatch.setattr(executil.subprocess, "run", fake_run)
    res = executil.run(["systemd-cryptenroll", "/dev/disk/by-uuid/x"], interactive=True, timeout=None)
    assert res.rc == 0
    assert res.out == ""
    assert "capture_output" not in seen
    assert seen["timeout"] is None


def test_run_returns_failure_rc(monkeypatch):
    def fake_run(cmd, capture_output=True, text=True, timeout=None):
        return SimpleNamespace(returncode=1, stdout="bad", stderr="oops")

    monkeypatch.setattr(executil.subprocess, "run", fake_run)
    res = executil.run(["false"])
    assert res.rc == 1
    assert not res.ok
    assert res.err == "oops"


def test_run_reports_timeout_as_124(monkeypatch):
    def fake_run(cmd, capture_output=True, text=True, timeout=None):
        raise executil.subprocess.TimeoutExpired(cmd, timeout)

    monkeypatch.setattr(executil.subprocess, "run", fake_run)
    res = executil.run(["systemd-cryptenroll", "--tpm2-device=list"], timeout=1.0)
    assert res.rc == executil.RC_TIMEOUT
    assert "timed out" in res.err


def test_run_reports_missing_binary_as_127(monkeypatch):
    def fake_run(cmd, capture_output=True, text=True, timeout=None):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    monkeypatch.setattr(executil.subprocess, "run", fake_run)
    res = executil.run(["grubby", "--info=ALL"])
    assert res.rc == executil.RC_NOT_FOUND
    assert "No such file" in res.err


def test_run_logs_start_and_done(_isolated_log, monkeypatch):
    monkeypatch.setattr(executil, "LOG_LEVEL", "TRACE")
    monkeypatch.setattr(
        executil.subprocess,
        "run",
        lambda cmd, capture_output=True, text=True, timeout=None: SimpleNamespace(returncode=0, stdout="", stderr=""),
    )
    executil.run(["true"])
    events = [d.get("event") or d.get("kind") for d in _events(_isolated_log)]
    assert events == ["exec.start", "exec", "exec.done", "done"]


def test_append_jsonl(tmp_path):
    path = tmp_path / "data" / "log.jsonl"
    executil.append_jsonl(str(path), {"foo": "bar"})
    text = path.read_text(encoding="utf-8").strip()
    assert json.loads(text) == {"foo": "bar"}


def test_log_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setattr(executil, "LOG_DIRS", None)
    monkeypatch.setattr(executil, "LOG_PATH", None)
    monkeypatch.setenv("TPM_ENROLL_LOG_DIR", str(tmp_path / "env-logs"))
    path = executil.resolve_log_path()
    assert path == str((tmp_path / "env-logs").resolve() / executil.LOG_NAME)
