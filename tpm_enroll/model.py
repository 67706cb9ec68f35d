from dataclasses import dataclass
from typing import Optional

DEFAULT_PCRS = "7+8"
DEFAULT_PIN = False


@dataclass(frozen=True)
class Config:
    device: Optional[str] = None
    pcrs: str = DEFAULT_PCRS
    pin: bool = DEFAULT_PIN
    dry_run: bool = False
    assume_yes: bool = False


@dataclass(frozen=True)
class Target:
    partition: str
    uuid: str
    device_path: str
    tpm_device: str
