"""Back up and rewrite crypttab, append kernel args, regenerate grub.cfg."""
from __future__ import annotations

import os
import shutil
import time

from .errors import MutationError
from .executil import run, trace


def backup_path(path: str, now: float | None = None) -> str:
    stamp = time.strftime("%Y%m%d_%H%M%S", time.localtime(now))
    return f"{path}.backup.{stamp}"


def backup_crypttab(path: str, now: float | None = None) -> str | None:
    """Copy an existing crypttab aside before it is rewritten.

    Backups are never pruned or restored automatically.  Two runs within the
    same second share a name and the later copy wins.
    """

    if not os.path.isfile(path):
        trace("boot.crypttab.backup", path=path, backup=None)
        return None
    dst = backup_path(path, now)
    shutil.copy2(path, dst)
    trace("boot.crypttab.backup", path=path, backup=dst)
    return dst


def crypttab_line(luks_uuid: str, tpm_device: str) -> str:
    return f"luks-{luks_uuid} UUID={luks_uuid} - tpm2-device={tpm_device},discard"


def write_crypttab(path: str, luks_uuid: str, tpm_device: str) -> str:
    line = crypttab_line(luks_uuid, tpm_device)
    with open(path, "w", encoding="utf-8") as f:
        f.write(line + "\n")
        try:
            f.flush()
            os.fsync(f.fileno())
        except OSError:
            pass
    trace("boot.crypttab.write", path=path, line=line)
    return line


def kernel_args(tpm_device: str) -> str:
    return f"rd.luks.options=tpm2-device={tpm_device},tpm2-measure-pcr=yes"


def update_kernel_args(tpm_device: str, dry_run: bool = False) -> str:
    # grubby appends; repeated runs accumulate duplicate arguments
    args = kernel_args(tpm_device)
    res = run(
        ["grubby", "--update-kernel=ALL", f"--args={args}"],
        dry_run=dry_run,
        timeout=None,
    )
    if not res.ok:
        raise MutationError(f"grubby failed to update kernel arguments (rc={res.rc})")
    return args


def regenerate_grub_config(cfg_path: str, dry_run: bool = False) -> None:
    res = run(["grub2-mkconfig", "-o", cfg_path], dry_run=dry_run, timeout=None)
    if not res.ok:
        raise MutationError(f"grub2-mkconfig failed to write {cfg_path} (rc={res.rc})")
