import io

import pytest

from tpm_enroll import boot_plumbing, devices, enroll, executil, initramfs
from tpm_enroll.prompts import Operator

_RUN_USERS = (devices, boot_plumbing, initramfs, enroll)


class FakeRunner:
    """Stand-in for ``executil.run``: records argv, answers by argv prefix."""

    def __init__(self, responses=None):
        self.calls = []
        self.kwargs = []
        self.responses = dict(responses or {})

    def __call__(self, cmd, dry_run=False, timeout=executil.QUERY_TIMEOUT, interactive=False):
        argv = [str(c) for c in cmd]
        self.calls.append(argv)
        self.kwargs.append({"dry_run": dry_run, "timeout": timeout, "interactive": interactive})
        rc, out = 0, ""
        best = -1
        for prefix, answer in self.responses.items():
            if tuple(argv[: len(prefix)]) == prefix and len(prefix) > best:
                rc, out = answer
                best = len(prefix)
        if dry_run:
            rc, out = 0, "DRY-RUN: " + " ".join(argv)
        return executil.Result(rc, out, "", 0.0)

    def commands(self):
        return [call[0] for call in self.calls]

    def find(self, *prefix):
        return [call for call in self.calls if tuple(call[: len(prefix)]) == prefix]


@pytest.fixture(autouse=True)
def _isolated_log(tmp_path, monkeypatch):
    log_dir = tmp_path / "logs"
    monkeypatch.setattr(executil, "LOG_DIRS", [str(log_dir)])
    monkeypatch.setattr(executil, "LOG_PATH", None)
    return log_dir


@pytest.fixture
def fake_run(monkeypatch):
    def install(responses=None):
        runner = FakeRunner(responses)
        for module in _RUN_USERS:
            monkeypatch.setattr(module, "run", runner)
        return runner

    return install


@pytest.fixture
def operator():
    def build(answers="", assume_yes=False):
        return Operator(stdin=io.StringIO(answers), stream=io.StringIO(), assume_yes=assume_yes)

    return build

