"""CLI entrypoint for TPM2 enrollment of a LUKS volume."""

from __future__ import annotations

import argparse
import json
import signal
import sys
import time
from typing import Any, Dict, Optional

from . import console
from .devices import is_block_device, is_luks
from .errors import EnrollError, OperatorAbort, UsageError
from .executil import append_jsonl, resolve_log_path, trace
from .model import DEFAULT_PCRS, Config
from .prompts import Operator
from .safety import INSTALL_HINT, MissingToolsError, require_root, require_tools
from .workflow import run_enrollment

PROG = "tpm-enroll"

RESULT_CODES: Dict[str, int] = {
    "ENROLL_OK": 0,
    "ABORTED": 1,
    "INTERRUPTED": 1,
    "FAIL_USAGE": 1,
    "FAIL_PRECONDITION": 1,
    "FAIL_DISCOVERY": 1,
    "FAIL_SELECTION": 1,
    "FAIL_MUTATION": 1,
    "FAIL_GENERIC": 1,
    "FAIL_UNHANDLED": 1,
}

PIN_TRUE = ("true", "yes", "1")
PIN_FALSE = ("false", "no", "0")
MAX_PCR = 23

JSON_OUTPUT_ENABLED = False

EPILOG = f"""\
examples:
    {PROG}                                  # Use default settings
    {PROG} --device /dev/sda1               # Use explicitly device /dev/sda1
    {PROG} --pcrs "0+7"                     # Use only PCRs 0 and 7
    {PROG} --pin true                       # Require PIN for unlock
    {PROG} --pcrs "0+2+7" --pin true        # Custom PCRs with PIN required

PCR register information:
    0   - SRTM, BIOS, Host Platform Extensions
    1   - Host Platform Configuration
    2   - UEFI driver and variable data
    4   - UEFI Boot Manager Code and Boot Attempts
    7   - Secure Boot State
    8   - GRUB2 bootloader
    9   - GRUB2 loaded files (kernel, initramfs)
    15  - System Locality

For more details, see: https://wiki.archlinux.org/title/Trusted_Platform_Module#Accessing_PCR_registers
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Bad usage raises :class:`UsageError` instead of argparse's exit 2."""

    def error(self, message):
        self.print_usage(sys.stderr)
        raise UsageError(message)


def _pin_arg(value: str) -> bool:
    lowered = value.lower()
    if lowered in PIN_TRUE:
        return True
    if lowered in PIN_FALSE:
        return False
    raise argparse.ArgumentTypeError(f"Invalid value for --pin: {value} (use true/false)")


def _pcrs_arg(value: str) -> str:
    tokens = value.split("+")
    for token in tokens:
        if not (token.isascii() and token.isdigit()) or int(token) > MAX_PCR:
            raise argparse.ArgumentTypeError(
                f"Invalid PCR list: {value!r} (use '+'-joined register numbers 0-{MAX_PCR})"
            )
    return value


def _device_arg(value: str) -> str:
    if not is_block_device(value):
        raise argparse.ArgumentTypeError(f"Device '{value}' is not a valid block device")
    if not is_luks(value):
        raise argparse.ArgumentTypeError(f"Device '{value}' is not a LUKS encrypted device")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROG,
        description="Configure TPM2-based LUKS disk encryption.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-d", "--device", type=_device_arg, default=None, help="LUKS block device to use")
    parser.add_argument(
        "-p", "--pcrs", type=_pcrs_arg, default=DEFAULT_PCRS, metavar="PCR_LIST",
        help=f"TPM PCR registers to use (default: {DEFAULT_PCRS})",
    )
    parser.add_argument(
        "-i", "--pin", type=_pin_arg, default=False, metavar="BOOLEAN",
        help="Require PIN for TPM unlock (true/false, default: false)",
    )
    parser.add_argument("-n", "--dry-run", action="store_true", help="print mutating commands instead of running them")
    parser.add_argument("-y", "--yes", dest="assume_yes", action="store_true", help="answer yes to every confirmation")
    parser.add_argument("--json", dest="json", action="store_true", help="print the result record as JSON on stdout")
    return parser


def parse_args(argv: Optional[list[str]] = None) -> tuple[Config, argparse.Namespace]:
    args = build_parser().parse_args(argv)
    config = Config(
        device=args.device,
        pcrs=args.pcrs,
        pin=args.pin,
        dry_run=args.dry_run,
        assume_yes=args.assume_yes,
    )
    return config, args


def _emit_result(kind: str, extra: Optional[Dict[str, Any]] = None) -> None:
    payload: Dict[str, Any] = {"result": kind, "ts": int(time.time())}
    if extra:
        payload.update(extra)
    log_path = resolve_log_path()
    if log_path:
        payload.setdefault("log_path", log_path)
        append_jsonl(log_path, payload)
    if JSON_OUTPUT_ENABLED:
        print(json.dumps(payload, sort_keys=True, separators=(",", ":")))
    raise SystemExit(RESULT_CODES.get(kind, 1))


def _on_signal(signum, frame):  # noqa: ARG001
    print(file=sys.stderr)
    console.warn("Script interrupted")
    _emit_result("INTERRUPTED", extra={"signal": signal.Signals(signum).name})


def install_signal_handlers() -> None:
    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)


def _report_missing(exc: MissingToolsError) -> None:
    console.error("Missing required dependencies:")
    for dep in exc.missing:
        console.error(f"  - {dep}")
    console.error("")
    console.error("Please install the missing packages:")
    console.error(f"  {INSTALL_HINT}")


def _main_impl(argv: Optional[list[str]] = None, operator: Optional[Operator] = None) -> int:
    global JSON_OUTPUT_ENABLED
    try:
        config, args = parse_args(argv)
    except UsageError as exc:
        console.error(str(exc))
        console.error("Use --help for usage information")
        _emit_result(exc.result, extra={"why": str(exc)})
    JSON_OUTPUT_ENABLED = bool(args.json)
    trace(
        "cli.args",
        device=config.device,
        pcrs=config.pcrs,
        pin=config.pin,
        dry_run=config.dry_run,
        assume_yes=config.assume_yes,
    )
    operator = operator or Operator(assume_yes=config.assume_yes)

    try:
        require_root()
        console.info("Running as root - OK")
        require_tools()
        console.info("All required dependencies found - OK")
        payload = run_enrollment(config, operator)
    except OperatorAbort as exc:
        _emit_result(exc.result, extra={"why": str(exc)})
    except MissingToolsError as exc:
        _report_missing(exc)
        _emit_result(exc.result, extra={"why": str(exc), "missing": exc.missing})
    except EnrollError as exc:
        console.error(str(exc))
        _emit_result(exc.result, extra={"why": str(exc)})

    _emit_result("ENROLL_OK", payload)
    return 0


def main(argv: Optional[list[str]] = None, operator: Optional[Operator] = None) -> int:
    install_signal_handlers()
    try:
        return _main_impl(argv, operator)
    except SystemExit:
        raise
    except Exception as exc:  # noqa: BLE001
        console.error(f"Unexpected failure: {exc}")
        _emit_result("FAIL_UNHANDLED", extra={"error": str(exc)})
    return 1


if __name__ == "__main__":
    sys.exit(main())
