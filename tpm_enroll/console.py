"""Operator-facing status lines ([INFO]/[WARN]/[ERROR])."""
from __future__ import annotations

import sys

GREEN = "\033[0;32m"; YELLOW = "\033[1;33m"; RED = "\033[0;31m"; CLR = "\033[0m"


def _isatty(stream) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def _emit(tag: str, color: str, msg: str, stream) -> None:
    if _isatty(stream):
        prefix = f"{color}[{tag}]{CLR}"
    else:
        prefix = f"[{tag}]"
    print(f"{prefix} {msg}", file=stream, flush=True)


def info(msg: str, stream=None) -> None:
    _emit("INFO", GREEN, msg, stream or sys.stdout)


def warn(msg: str, stream=None) -> None:
    _emit("WARN", YELLOW, msg, stream or sys.stderr)


def error(msg: str, stream=None) -> None:
    _emit("ERROR", RED, msg, stream or sys.stderr)
