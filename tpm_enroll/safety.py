"""Up-front guards: root privileges and required tools."""

from __future__ import annotations

import os
import shutil
from typing import Iterable

from .errors import PreconditionError
from .executil import trace

REQUIRED_TOOLS = ("systemd-cryptenroll", "cryptsetup", "grubby", "grub2-mkconfig", "dracut")
INSTALL_HINT = "sudo dnf install systemd cryptsetup-luks grubby grub2-tools dracut"


class MissingToolsError(PreconditionError):
    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__("Missing required dependencies: " + ", ".join(self.missing))


def require_root() -> None:
    if os.geteuid() != 0:
        raise PreconditionError("This script must be run as root")
    trace("safety.root_ok")


def missing_tools(tools: Iterable[str] = REQUIRED_TOOLS) -> list[str]:
    return [tool for tool in tools if shutil.which(tool) is None]


def require_tools(tools: Iterable[str] = REQUIRED_TOOLS) -> None:
    """Fail before any change when one of ``tools`` is not on PATH."""

    tools = list(tools)
    missing = missing_tools(tools)
    trace("safety.tools", required=tools, missing=missing)
    if missing:
        raise MissingToolsError(missing)
