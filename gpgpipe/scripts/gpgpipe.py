#!/usr/bin/env python3
"""
gpgpipe: Minimal CLI around the gpg executable

Commands:
  gpgpipe encrypt IN OUT -r ID          # encrypt a file for a recipient
  gpgpipe encrypt-sign IN OUT -r ID     # encrypt and sign
  gpgpipe decrypt IN OUT                # decrypt a file
  gpgpipe sign IN OUT [--detached] [--cleartext]
  gpgpipe verify IN                     # exit 0 on a good signature, 1 on a bad one
  gpgpipe keys [--secret]               # list keys as a table
  gpgpipe exec -- ARGS...               # raw gpg call, stdin -> gpg -> stdout
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from gpgpipe.core.errors import GpgPipeError
from gpgpipe.gpg.api import Gpg
from gpgpipe.gpg.command import GpgCommand, quote_argument
from gpgpipe.gpg.configuration import load_settings
from gpgpipe.gpg.enums import KeyCapabilities
from gpgpipe.gpg.executor import GpgCommandExecutor
from gpgpipe.gpg.keys import GpgKey
from gpgpipe.utils.logging_config import setup_logging

PASSPHRASE_ENV = "GPGPIPE_PASSPHRASE"

log = logging.getLogger("gpgpipe")

_CAPABILITY_LETTERS = (
    ("e", KeyCapabilities.ENCRYPTION),
    ("s", KeyCapabilities.SIGNING),
    ("c", KeyCapabilities.CERTIFICATION),
    ("a", KeyCapabilities.AUTHENTICATION),
    ("D", KeyCapabilities.DISABLED),
)


def _build_gpg(args: argparse.Namespace) -> Gpg:
    settings = load_settings(Path(args.config) if args.config else None)
    if args.timeout is not None:
        settings = settings.model_copy(update={"timeout": None if args.timeout <= 0 else args.timeout})
    executor = GpgCommandExecutor(gpg_path=args.gpg, settings=settings)
    return Gpg(executor=executor, settings=settings)


def _passphrase(args: argparse.Namespace) -> str:
    value = getattr(args, "passphrase", None) or os.environ.get(PASSPHRASE_ENV)
    if not value:
        raise SystemExit(f"a passphrase is required (--passphrase or {PASSPHRASE_ENV})")
    return value


def cmd_encrypt(args: argparse.Namespace) -> int:
    _build_gpg(args).encrypt(args.input, args.output, args.recipient)
    return 0


def cmd_encrypt_sign(args: argparse.Namespace) -> int:
    _build_gpg(args).encrypt_and_sign(args.input, args.output, args.recipient, _passphrase(args))
    return 0


def cmd_decrypt(args: argparse.Namespace) -> int:
    _build_gpg(args).decrypt(args.input, args.output, _passphrase(args))
    return 0


def cmd_sign(args: argparse.Namespace) -> int:
    _build_gpg(args).sign(args.input, args.output, args.detached, args.cleartext, _passphrase(args))
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    ok = _build_gpg(args).verify(args.input)
    print("Good signature" if ok else "BAD signature")
    return 0 if ok else 1


def _ensure_rich() -> None:
    """Assert that 'rich' is importable; do not attempt auto-install."""
    try:
        import rich  # noqa: F401
    except Exception as e:
        raise RuntimeError("'rich' is required for gpgpipe keys. Please install it in your environment.") from e


def render_keys(keys: List[GpgKey], *, all_records: bool = False) -> object:
    """Return a rich Table for the key records (only key records unless ``all_records``)."""
    from rich.table import Table
    from rich.text import Text

    shown = keys if all_records else [k for k in keys if k.record_type.value in ("pub", "sec", "sub", "ssb", "uid")]
    table = Table(expand=True, show_lines=False)
    table.add_column("type", style="bold")
    table.add_column("validity")
    table.add_column("algo")
    table.add_column("bits", justify="right")
    table.add_column("key id")
    table.add_column("created")
    table.add_column("expires")
    table.add_column("caps")
    table.add_column("user id")
    for k in shown:
        val_style = {
            "ultimately_valid": "bold green",
            "fully_valid": "green",
            "marginally_valid": "yellow",
            "expired": "magenta",
            "revoked": "bold red",
            "invalid": "red",
        }.get(k.validity.value, "white")
        caps = "".join(letter for letter, flag in _CAPABILITY_LETTERS if flag in k.key_capabilities)
        table.add_row(
            k.record_type.value or "?",
            Text(k.validity.value, style=val_style),
            k.algorithm.name.lower(),
            str(k.key_length or ""),
            k.key_id or "",
            k.creation_date.date().isoformat() if k.creation_date else "",
            k.expiration_date.date().isoformat() if k.expiration_date else "",
            caps,
            k.user_id or "",
        )
    return table


def cmd_keys(args: argparse.Namespace) -> int:
    _ensure_rich()
    from rich.console import Console

    gpg = _build_gpg(args)
    keys = gpg.get_private_keys() if args.secret else gpg.get_public_keys()
    Console().print(render_keys(keys, all_records=args.all))
    return 0


def cmd_exec(args: argparse.Namespace) -> int:
    gpg = _build_gpg(args)
    raw = list(args.gpg_args or [])
    if raw and raw[0] == "--":
        raw = raw[1:]
    command = GpgCommand.command(" ".join(quote_argument(a) for a in raw))
    stdin = None if sys.stdin is None or sys.stdin.isatty() else sys.stdin.buffer
    gpg.executor.execute(command, stdin, sys.stdout.buffer, gpg.settings.timeout)
    sys.stdout.flush()
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", default=None, help="Settings YAML (default: $GPGPIPE_CONFIG or gpgpipe_data/config.yaml)")
    p.add_argument("--gpg", default=None, help="Path to the gpg executable (default: discovered)")
    p.add_argument("--timeout", type=float, default=None, help="Seconds per gpg call; 0 waits forever (default: from settings)")
    p.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="INFO")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gpgpipe", description="Minimal CLI around the gpg executable")
    sub = parser.add_subparsers(dest="cmd")

    p_enc = sub.add_parser("encrypt", help="Encrypt a file for a recipient")
    p_enc.add_argument("input")
    p_enc.add_argument("output")
    p_enc.add_argument("-r", "--recipient", required=True)
    _add_common(p_enc)
    p_enc.set_defaults(func=cmd_encrypt)

    p_es = sub.add_parser("encrypt-sign", help="Encrypt and sign a file")
    p_es.add_argument("input")
    p_es.add_argument("output")
    p_es.add_argument("-r", "--recipient", required=True)
    p_es.add_argument("--passphrase", default=None, help=f"Signing key passphrase (default: ${PASSPHRASE_ENV})")
    _add_common(p_es)
    p_es.set_defaults(func=cmd_encrypt_sign)

    p_dec = sub.add_parser("decrypt", help="Decrypt a file")
    p_dec.add_argument("input")
    p_dec.add_argument("output")
    p_dec.add_argument("--passphrase", default=None, help=f"Private key passphrase (default: ${PASSPHRASE_ENV})")
    _add_common(p_dec)
    p_dec.set_defaults(func=cmd_decrypt)

    p_sign = sub.add_parser("sign", help="Sign a file")
    p_sign.add_argument("input")
    p_sign.add_argument("output")
    p_sign.add_argument("--detached", action="store_true", help="Write only the signature")
    p_sign.add_argument("--cleartext", action="store_true", help="Text output (clearsign, or armored when detached)")
    p_sign.add_argument("--passphrase", default=None, help=f"Signing key passphrase (default: ${PASSPHRASE_ENV})")
    _add_common(p_sign)
    p_sign.set_defaults(func=cmd_sign)

    p_ver = sub.add_parser("verify", help="Verify a signed file")
    p_ver.add_argument("input")
    _add_common(p_ver)
    p_ver.set_defaults(func=cmd_verify)

    p_keys = sub.add_parser("keys", help="List keys in the keyring")
    p_keys.add_argument("--secret", action="store_true", help="List secret keys instead of public keys")
    p_keys.add_argument("--all", action="store_true", help="Show every record (fingerprints, signatures, ...)")
    _add_common(p_keys)
    p_keys.set_defaults(func=cmd_keys)

    p_exec = sub.add_parser("exec", help="Run gpg with raw arguments, piping stdin/stdout")
    _add_common(p_exec)
    p_exec.add_argument("gpg_args", nargs=argparse.REMAINDER, help="Arguments passed to gpg (after --)")
    p_exec.set_defaults(func=cmd_exec)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    setup_logging(level=args.log_level)
    try:
        return int(args.func(args))
    except (GpgPipeError, FileNotFoundError) as e:
        log.error("%s failed: %s", args.cmd, e)
        print(f"gpgpipe {args.cmd}: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
