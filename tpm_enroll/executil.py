from __future__ import annotations

"""Subprocess wrapper, dry-run hook and JSONL trace log."""

import datetime as _dt
import json
import os
import shlex
import subprocess
import time
from typing import Sequence

from .paths import log_dirs


LOG_DIRS: list[str] | None = None
LOG_PATH: str | None = None
LOG_NAME = "tpm_enroll.jsonl"

QUERY_TIMEOUT = 60.0

# exit statuses a shell and timeout(1) report
RC_NOT_FOUND = 127
RC_TIMEOUT = 124


def _log_dirs() -> list[str]:
    if LOG_DIRS:
        return list(LOG_DIRS)
    return log_dirs()


def _ensure_logger() -> str | None:
    global LOG_PATH
    if LOG_PATH:
        return LOG_PATH
    for d in _log_dirs():
        d_expanded = os.path.expanduser(d)
        try:
            os.makedirs(d_expanded, exist_ok=True)
        except OSError:
            continue
        LOG_PATH = os.path.join(d_expanded, LOG_NAME)
        return LOG_PATH
    LOG_PATH = None
    return None


def resolve_log_path() -> str | None:
    """Return the active log path, creating directories when possible."""

    return _ensure_logger()


def _now() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z")


def _write_jsonl(obj: dict):
    path = _ensure_logger()
    if not path:
        return
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(obj) + "\n")
    except OSError:
        pass


def _log_event(kind: str, cmd: list[str], rc: int = None, out: str = None, err: str = None, dur: float = None):
    _write_jsonl({"ts": _now(), "kind": kind, "cmd": cmd, "rc": rc, "dur": dur, "out": out, "err": err})


class Result:
    def __init__(self, rc: int, out: str, err: str, duration: float):
        self.rc, self.out, self.err, self.duration = rc, out, err, duration

    @property
    def ok(self) -> bool:
        return self.rc == 0


LEVELS = {"TRACE": 10, "INFO": 20, "WARN": 30, "ERROR": 40, "NONE": 100}
LOG_LEVEL = os.environ.get("TPM_ENROLL_LOG_LEVEL", "TRACE").upper()


def log(level: str, event: str, **fields):
    lvl = LEVELS.get(level.upper(), 100)
    cur = LEVELS.get(LOG_LEVEL, 100)
    if lvl < cur:
        return
    rec = {"ts": _now(), "level": level.upper(), "event": event}
    rec.update(fields)
    _write_jsonl(rec)


def trace(event: str, **fields):
    log("TRACE", event, **fields)


def quote(cmd: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(c)) for c in cmd)


def run(
    cmd: Sequence[str],
    dry_run: bool = False,
    timeout: float | None = QUERY_TIMEOUT,
    interactive: bool = False,
) -> Result:
    """Run ``cmd`` and return a :class:`Result`.

    ``interactive`` leaves stdin/stdout/stderr attached to the terminal so
    the child can prompt the operator; nothing is captured in that mode.
    A missing executable is reported as rc 127 and an expired ``timeout``
    as rc 124; neither is raised.  Callers decide what a non-zero rc means.
    """

    argv = [str(c) for c in cmd]
    trace("exec.start", cmd=argv, dry_run=dry_run, interactive=interactive)
    _log_event("exec", argv)
    if dry_run:
        return Result(0, "DRY-RUN: " + quote(argv), "", 0.0)
    started = time.time()
    try:
        if interactive:
            proc = subprocess.run(argv, timeout=timeout)
        else:
            proc = subprocess.run(argv, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as exc:
        proc = subprocess.CompletedProcess(argv, RC_NOT_FOUND, "", str(exc))
    except subprocess.TimeoutExpired as exc:
        proc = subprocess.CompletedProcess(argv, RC_TIMEOUT, "", f"timed out after {exc.timeout}s")
    dur = time.time() - started
    out = getattr(proc, "stdout", None) or ""
    err = getattr(proc, "stderr", None) or ""
    trace("exec.done", cmd=argv, rc=proc.returncode, dur=dur)
    _log_event("done", argv, rc=proc.returncode, out=out, err=err, dur=dur)
    return Result(proc.returncode, out, err, dur)


def append_jsonl(path: str, obj: dict):
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(obj, ensure_ascii=False) + "\n")
    except OSError:
        pass
