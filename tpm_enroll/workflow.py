"""Stage pipeline: resolve target, update boot configuration, enroll.

Each stage takes the parsed :class:`Config` and, once resolved, the
:class:`Target`; nothing is kept in module globals.  Errors propagate as
:class:`~tpm_enroll.errors.EnrollError` subclasses and nothing is rolled
back.
"""
from __future__ import annotations

import os
from typing import Any, Dict, Optional

from . import boot_plumbing, console, devices, enroll, initramfs
from .errors import OperatorAbort
from .executil import trace
from .model import Config, Target
from .paths import crypttab_path, grub_cfg_path

WIPE_QUESTION = "Do you want to remove any existing TPM2 keys?"
ENROLL_QUESTION = "Do you want to enroll your TPM2 device?"


def resolve_target(config: Config, operator) -> Target:
    tpm_device = devices.find_tpm_device()
    partition = config.device or devices.select_luks_partition(operator)
    uuid = devices.luks_uuid(partition)
    target = Target(
        partition=partition,
        uuid=uuid,
        device_path=devices.by_uuid_path(uuid),
        tpm_device=tpm_device,
    )
    trace("workflow.target", **vars(target))
    return target


def print_summary(target: Target, config: Config) -> None:
    console.info("===================")
    console.info(f"LUKS Partition    : {target.partition}")
    console.info(f"LUKS UUID         : {target.uuid}")
    console.info(f"LUKS Device Path  : {target.device_path}")
    console.info(f"TPM Device        : {target.tpm_device}")
    console.info(f"TPM PCRs          : {config.pcrs}")
    console.info(f"TPM Pin Required  : {'true' if config.pin else 'false'}")
    console.info("===================")


def update_boot_config(
        target: Target,
        config: Config,
        crypttab: Optional[str] = None,
        grub_cfg: Optional[str] = None,
) -> Dict[str, Any]:
    crypttab = crypttab or crypttab_path()
    grub_cfg = grub_cfg or grub_cfg_path()
    meta: Dict[str, Any] = {"crypttab": crypttab, "grub_cfg": grub_cfg, "backup": None}

    if config.dry_run:
        console.info(f"DRY-RUN: would back up and rewrite {crypttab}")
        meta["crypttab_line"] = boot_plumbing.crypttab_line(target.uuid, target.tpm_device)
    else:
        if os.path.isfile(crypttab):
            console.info(f"Backing up existing {crypttab}")
        meta["backup"] = boot_plumbing.backup_crypttab(crypttab)
        console.info(f"Updating {crypttab}...")
        meta["crypttab_line"] = boot_plumbing.write_crypttab(crypttab, target.uuid, target.tpm_device)

    console.info("Updating GRUB configuration...")
    meta["kernel_args"] = boot_plumbing.update_kernel_args(target.tpm_device, dry_run=config.dry_run)
    boot_plumbing.regenerate_grub_config(grub_cfg, dry_run=config.dry_run)

    console.info("Regenerating initramfs using dracut...")
    meta["initramfs"] = initramfs.rebuild(dry_run=config.dry_run)
    trace("workflow.boot_config", **meta)
    return meta


def enroll_target(target: Target, config: Config, operator) -> Dict[str, Any]:
    meta: Dict[str, Any] = {"wipe_requested": False, "wiped": None}
    if operator.confirm(WIPE_QUESTION, default=False):
        meta["wipe_requested"] = True
        console.info("Removing existing TPM2 keys...")
        meta["wiped"] = enroll.wipe_tpm2_slots(target.device_path, dry_run=config.dry_run)
        if not meta["wiped"]:
            console.warn("Could not wipe TPM2 slots (maybe none exist)")

    if not operator.confirm(ENROLL_QUESTION, default=False):
        trace("workflow.enroll.declined")
        raise OperatorAbort("enrollment declined by operator")

    console.info(f"Enrolling TPM2 device {target.tpm_device} using PCRs {config.pcrs}...")
    enroll.enroll_tpm2(target, config.pcrs, config.pin, dry_run=config.dry_run)
    meta["enrolled"] = True
    return meta


def run_enrollment(config: Config, operator) -> Dict[str, Any]:
    target = resolve_target(config, operator)
    print_summary(target, config)
    boot_meta = update_boot_config(target, config)
    enroll_meta = enroll_target(target, config, operator)
    console.info("Enrolled successfully! You may now reboot")
    return {
        "target": vars(target),
        "pcrs": config.pcrs,
        "pin": config.pin,
        "dry_run": config.dry_run,
        "boot": boot_meta,
        "enroll": enroll_meta,
    }
