"""
Fluent builder for GnuPG argument lines.

    cmd = GpgCommand.encrypt().batch().quiet().recipient("alice@example.org").input_file("a.txt")
    str(cmd)  # --batch --no-verbose --quiet --no-tty --recipient alice@example.org --encrypt a.txt
"""

from __future__ import annotations

import os
import shlex
import subprocess
from typing import List, Optional, Union

from .enums import TrustModel


def quote_argument(value: str) -> str:
    """Quote a single value for the platform's argument-line parser."""
    if os.name == "nt":
        return subprocess.list2cmdline([value])
    return shlex.quote(value)


class GpgCommand:
    """A GnuPG command plus its options; ``str()`` renders the argument line."""

    def __init__(self, command: str):
        self._command = command
        self._options: List[str] = []
        self._input_file: Optional[str] = None

    # ---- command factories ----

    @classmethod
    def sign(cls) -> "GpgCommand":
        return cls("--sign")

    @classmethod
    def sign_detached(cls) -> "GpgCommand":
        return cls("--detach-sign")

    @classmethod
    def clear_sign(cls) -> "GpgCommand":
        return cls("--clearsign")

    @classmethod
    def encrypt(cls) -> "GpgCommand":
        return cls("--encrypt")

    @classmethod
    def encrypt_sign(cls) -> "GpgCommand":
        return cls("--encrypt --sign")

    @classmethod
    def decrypt(cls) -> "GpgCommand":
        return cls("--decrypt")

    @classmethod
    def verify(cls) -> "GpgCommand":
        return cls("--verify")

    @classmethod
    def list_public_keys(cls) -> "GpgCommand":
        return cls("--list-public-keys")

    @classmethod
    def list_secret_keys(cls) -> "GpgCommand":
        return cls("--list-secret-keys")

    @classmethod
    def command(cls, command: str) -> "GpgCommand":
        return cls(command)

    # ---- options ----

    def recipient(self, user_id: str) -> "GpgCommand":
        return self._add("--recipient", user_id)

    def local_user(self, user_id: str) -> "GpgCommand":
        return self._add("--local-user", user_id)

    def armored_output(self) -> "GpgCommand":
        return self._add("--armor")

    def non_armored_input(self) -> "GpgCommand":
        return self._add("--no-armor")

    def compression_level(self, level: int) -> "GpgCommand":
        return self._add(f"-z {int(level)}")

    def home_directory(self, path: Union[str, os.PathLike]) -> "GpgCommand":
        return self._add("--homedir", os.fspath(path))

    def passphrase(self, passphrase: str) -> "GpgCommand":
        return self._add("--passphrase", passphrase)

    def pinentry_mode(self, mode: str = "loopback") -> "GpgCommand":
        return self._add("--pinentry-mode", mode)

    def quiet(self) -> "GpgCommand":
        return self._add("--no-verbose --quiet --no-tty")

    def batch(self, use_batch: bool = True) -> "GpgCommand":
        return self._add("--batch" if use_batch else "--no-batch")

    def trust_model(self, model: Union[TrustModel, str]) -> "GpgCommand":
        return self._add(f"--trust-model {TrustModel(model).value}")

    def with_colons(self) -> "GpgCommand":
        return self._add("--with-colons")

    def fixed_list_mode(self) -> "GpgCommand":
        return self._add("--fixed-list-mode")

    def input_file(self, path: Union[str, os.PathLike]) -> "GpgCommand":
        self._input_file = os.fspath(path)
        return self

    def output_file(self, path: Union[str, os.PathLike]) -> "GpgCommand":
        return self._add("--output", os.fspath(path))

    def yes(self) -> "GpgCommand":
        return self._add("--yes")

    def option(self, option: str) -> "GpgCommand":
        """Append a raw, already-quoted option string."""
        return self._add(option)

    def _add(self, option: str, value: Optional[str] = None) -> "GpgCommand":
        self._options.append(option if value is None else f"{option} {quote_argument(value)}")
        return self

    def __str__(self) -> str:
        parts = [*self._options, self._command]
        if self._input_file is not None:
            parts.append(quote_argument(self._input_file))
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"GpgCommand({self._command!r}, options={len(self._options)})"
