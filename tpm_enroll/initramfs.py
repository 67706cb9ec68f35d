"""Regenerate initramfs images for every installed kernel."""

from __future__ import annotations

from typing import Any, Dict

from .errors import MutationError
from .executil import run


def rebuild(dry_run: bool = False) -> Dict[str, Any]:
    # runs to completion, never under a timeout
    res = run(
        ["dracut", "--force", "--regenerate-all"],
        dry_run=dry_run,
        timeout=None,
    )
    if not res.ok:
        raise MutationError(f"dracut failed to regenerate initramfs (rc={res.rc})")
    return {"rc": res.rc, "duration_sec": res.duration}
