from __future__ import annotations

import os
from pathlib import Path

_DEFAULT_CRYPTTAB = "/etc/crypttab"
_DEFAULT_GRUB_CFG = "/boot/grub2/grub.cfg"
_DEFAULT_LOG_DIRS = ("/var/log/tpm-enroll", "/tmp/tpm-enroll-logs")

BY_UUID_DIR = "/dev/disk/by-uuid"


def _expand(path: str) -> str:
    candidate = Path(path).expanduser()
    try:
        return str(candidate.resolve())
    except FileNotFoundError:
        return str(candidate)


def _override(name: str, default: str) -> str:
    value = os.environ.get(name)
    if value:
        return _expand(value)
    return default


def crypttab_path() -> str:
    """Return the unlock configuration file managed by the tool.

    ``TPM_ENROLL_CRYPTTAB`` points it somewhere else, which is mostly useful
    for staging a change against a copy of ``/etc``.
    """

    return _override("TPM_ENROLL_CRYPTTAB", _DEFAULT_CRYPTTAB)


def grub_cfg_path() -> str:
    return _override("TPM_ENROLL_GRUB_CFG", _DEFAULT_GRUB_CFG)


def log_dirs() -> list[str]:
    override = os.environ.get("TPM_ENROLL_LOG_DIR")
    if override:
        return [_expand(override)]
    return list(_DEFAULT_LOG_DIRS)
