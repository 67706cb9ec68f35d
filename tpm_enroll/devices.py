"""TPM and LUKS device discovery."""
from __future__ import annotations

import os
import stat

from .errors import DiscoveryError, PreconditionError
from .executil import run, trace
from .paths import BY_UUID_DIR

ALIAS_PREFIX = "/dev/disk/by-"


def is_block_device(path: str) -> bool:
    try:
        st = os.stat(path)
    except OSError:
        return False
    return stat.S_ISBLK(st.st_mode)


def is_luks(path: str) -> bool:
    probe = run(["cryptsetup", "isLuks", path])
    return probe.ok


def luks_uuid(path: str) -> str:
    res = run(["cryptsetup", "luksUUID", path])
    uuid = (res.out or "").strip()
    if not res.ok or not uuid:
        raise PreconditionError(f"Could not read LUKS UUID of {path}")
    return uuid


def by_uuid_path(uuid: str) -> str:
    return f"{BY_UUID_DIR}/{uuid}"


def find_tpm_device() -> str:
    """Return the device path of the last TPM2 listed by systemd-cryptenroll.

    The listing starts with a ``PATH DRIVER`` header; only rows whose first
    column is a ``/dev`` node count.  With several TPMs the last row wins.
    """

    res = run(["systemd-cryptenroll", "--tpm2-device=list"])
    if not res.ok:
        raise DiscoveryError("Failed to get available TPM devices")
    entries = []
    for line in (res.out or "").splitlines():
        fields = line.split()
        if fields and fields[0].startswith("/dev/"):
            entries.append(fields[0])
    trace("devices.tpm", entries=entries)
    if not entries:
        raise DiscoveryError("No TPM2 device found")
    return entries[-1]


def list_luks_devices() -> list[str]:
    res = run(["systemd-cryptenroll", "--list-devices"])
    if not res.ok:
        raise DiscoveryError("Failed to list LUKS devices. Ensure systemd-cryptenroll is available.")
    devices = []
    for line in (res.out or "").splitlines():
        candidate = line.strip()
        if candidate.startswith("/dev/") and not candidate.startswith(ALIAS_PREFIX):
            devices.append(candidate)
    trace("devices.luks", devices=devices)
    return devices


def select_luks_partition(operator) -> str:
    devices = list_luks_devices()
    if not devices:
        raise DiscoveryError("No LUKS devices found")
    if len(devices) == 1:
        return devices[0]
    index = operator.choose("Multiple LUKS devices found:", devices)
    return devices[index]
