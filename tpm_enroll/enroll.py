"""TPM2 key-slot wipe and enrollment through systemd-cryptenroll."""

from __future__ import annotations

from .errors import MutationError
from .executil import run
from .model import Target


def wipe_tpm2_slots(device_path: str, dry_run: bool = False) -> bool:
    """Best effort: a failure cannot be told apart from "no TPM2 slot"."""

    res = run(
        ["systemd-cryptenroll", device_path, "--wipe-slot=tpm2"],
        dry_run=dry_run,
        timeout=None,
        interactive=True,
    )
    return res.ok


def enroll_command(target: Target, pcrs: str, pin: bool) -> list[str]:
    return [
        "systemd-cryptenroll",
        target.device_path,
        f"--tpm2-device={target.tpm_device}",
        f"--tpm2-pcrs={pcrs}",
        f"--tpm2-with-pin={'true' if pin else 'false'}",
    ]


def enroll_tpm2(target: Target, pcrs: str, pin: bool, dry_run: bool = False) -> None:
    res = run(
        enroll_command(target, pcrs, pin),
        dry_run=dry_run,
        timeout=None,
        interactive=True,
    )
    if not res.ok:
        raise MutationError("Could not enroll TPM2")
