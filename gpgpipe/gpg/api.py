"""
High-level GnuPG operations.

``Gpg`` wraps the common encrypt/decrypt/sign/verify/list-keys commands with
batch mode, quiet output and the configured trust model. Every operation has
a blocking form and a ``begin_*``/``end_*`` pair built on AsyncResult.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from ..core.async_result import AsyncCallback, AsyncResult, begin_execute, end_execute
from ..core.error_handler import ErrorHandler
from ..core.errors import SubprocessFailure
from .command import GpgCommand
from .configuration import GpgSettings, load_settings
from .executor import GpgCommandExecutor
from .keys import GpgKey, GpgKeyReader

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Gpg:
    """Blocking and asynchronous GnuPG operations on files."""

    def __init__(self, executor: Optional[GpgCommandExecutor] = None, settings: Optional[GpgSettings] = None):
        if settings is None:
            settings = executor.settings if executor is not None else load_settings()
        self.settings = settings
        self.executor = executor or GpgCommandExecutor(settings=settings)
        self.error_handler = ErrorHandler({"extra_patterns": settings.error_patterns})

    # ---- blocking operations ----

    def encrypt(self, input_file: PathLike, output_file: PathLike, recipient: str) -> None:
        command = self._base(GpgCommand.encrypt()).input_file(input_file).output_file(output_file).recipient(recipient)
        self._run(command)
        logger.info(f"Encrypted {input_file} for {recipient}")

    def encrypt_and_sign(self, input_file: PathLike, output_file: PathLike, recipient: str, passphrase: str) -> None:
        command = (
            self._base(GpgCommand.encrypt_sign())
            .input_file(input_file)
            .output_file(output_file)
            .recipient(recipient)
            .passphrase(passphrase)
        )
        self._run(command)
        logger.info(f"Encrypted and signed {input_file} for {recipient}")

    def decrypt(self, input_file: PathLike, output_file: PathLike, passphrase: str) -> None:
        command = self._base(GpgCommand.decrypt()).input_file(input_file).output_file(output_file).passphrase(passphrase)
        self._run(command)
        logger.info(f"Decrypted {input_file}")

    def sign(self, input_file: PathLike, output_file: PathLike, detached: bool, cleartext: bool, passphrase: str) -> None:
        """Sign a file.

        detached + cleartext -> armored detached signature
        detached only        -> binary detached signature
        cleartext only       -> clear-signed document
        neither              -> binary signed document
        """
        if detached:
            command = GpgCommand.sign_detached()
            command = command.armored_output() if cleartext else command.non_armored_input()
        else:
            command = GpgCommand.clear_sign() if cleartext else GpgCommand.sign()
        command = self._base(command).input_file(input_file).output_file(output_file).passphrase(passphrase)
        self._run(command)
        logger.info(f"Signed {input_file}")

    def verify(self, input_file: PathLike) -> bool:
        """Return True for a good signature, False for a bad one; other failures propagate."""
        command = self._base(GpgCommand.verify()).input_file(input_file)
        try:
            self._run(command)
        except SubprocessFailure as e:
            if self.error_handler.is_bad_signature(e):
                logger.info(f"Bad signature on {input_file}")
                return False
            raise
        return True

    def get_public_keys(self) -> List[GpgKey]:
        return self._list_keys(GpgCommand.list_public_keys())

    def get_private_keys(self) -> List[GpgKey]:
        return self._list_keys(GpgCommand.list_secret_keys())

    # ---- asynchronous operations ----

    def begin_encrypt(self, input_file: PathLike, output_file: PathLike, recipient: str,
                      callback: Optional[AsyncCallback] = None, state: Any = None) -> AsyncResult:
        return begin_execute(lambda: self.encrypt(input_file, output_file, recipient), callback, state)

    def end_encrypt(self, handle: AsyncResult) -> None:
        end_execute(handle)

    def begin_encrypt_and_sign(self, input_file: PathLike, output_file: PathLike, recipient: str, passphrase: str,
                               callback: Optional[AsyncCallback] = None, state: Any = None) -> AsyncResult:
        return begin_execute(
            lambda: self.encrypt_and_sign(input_file, output_file, recipient, passphrase), callback, state
        )

    def end_encrypt_and_sign(self, handle: AsyncResult) -> None:
        end_execute(handle)

    def begin_decrypt(self, input_file: PathLike, output_file: PathLike, passphrase: str,
                      callback: Optional[AsyncCallback] = None, state: Any = None) -> AsyncResult:
        return begin_execute(lambda: self.decrypt(input_file, output_file, passphrase), callback, state)

    def end_decrypt(self, handle: AsyncResult) -> None:
        end_execute(handle)

    def begin_sign(self, input_file: PathLike, output_file: PathLike, detached: bool, cleartext: bool, passphrase: str,
                   callback: Optional[AsyncCallback] = None, state: Any = None) -> AsyncResult:
        return begin_execute(
            lambda: self.sign(input_file, output_file, detached, cleartext, passphrase), callback, state
        )

    def end_sign(self, handle: AsyncResult) -> None:
        end_execute(handle)

    def begin_verify(self, input_file: PathLike,
                     callback: Optional[AsyncCallback] = None, state: Any = None) -> AsyncResult:
        return begin_execute(lambda: self.verify(input_file), callback, state, result_type=bool)

    def end_verify(self, handle: AsyncResult) -> bool:
        return end_execute(handle, bool)

    def begin_get_public_keys(self, callback: Optional[AsyncCallback] = None, state: Any = None) -> AsyncResult:
        return begin_execute(self.get_public_keys, callback, state, result_type=list)

    def end_get_public_keys(self, handle: AsyncResult) -> List[GpgKey]:
        return end_execute(handle, list)

    def begin_get_private_keys(self, callback: Optional[AsyncCallback] = None, state: Any = None) -> AsyncResult:
        return begin_execute(self.get_private_keys, callback, state, result_type=list)

    def end_get_private_keys(self, handle: AsyncResult) -> List[GpgKey]:
        return end_execute(handle, list)

    # ---- helpers ----

    def _base(self, command: GpgCommand) -> GpgCommand:
        command = command.batch(self.settings.batch).quiet().trust_model(self.settings.trust_model)
        if self.settings.homedir:
            command = command.home_directory(self.settings.homedir)
        return command

    def _run(self, command: GpgCommand, output: Optional[Any] = None) -> None:
        self.executor.execute(command, None, output, self.settings.timeout)

    def _list_keys(self, command: GpgCommand) -> List[GpgKey]:
        command = self._base(command.with_colons().fixed_list_mode())
        buffer = io.BytesIO()
        self._run(command, buffer)
        buffer.seek(0)
        with GpgKeyReader(buffer, encoding=self.settings.encoding) as reader:
            return reader.read_all_keys()


def _default() -> Gpg:
    return Gpg()


def _forward(name: str) -> Callable[..., Any]:
    def call(*args: Any, **kwargs: Any) -> Any:
        return getattr(_default(), name)(*args, **kwargs)
    call.__name__ = name
    call.__doc__ = f"Call Gpg().{name} with the default settings and discovered gpg executable."
    return call


encrypt = _forward("encrypt")
encrypt_and_sign = _forward("encrypt_and_sign")
decrypt = _forward("decrypt")
sign = _forward("sign")
verify = _forward("verify")
get_public_keys = _forward("get_public_keys")
get_private_keys = _forward("get_private_keys")
