"""
Execute GpgCommand instances through the subprocess engine.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..core.async_result import AsyncCallback, ValueAsyncResult, begin_execute, end_execute
from ..core.process import CommandLineProcess
from .command import GpgCommand
from .configuration import GpgSettings
from .path_finder import find_gpg_path

logger = logging.getLogger(__name__)


class GpgCommandExecutor:
    """Runs GnuPG commands synchronously or asynchronously.

    Public API:
      - GpgCommandExecutor(gpg_path=None, settings=None)
      - execute(command, input=None, output=None, timeout=None) -> None
      - begin_execute(command, input=None, output=None, callback=None, state=None, timeout=None) -> ValueAsyncResult
      - end_execute(handle) -> output stream
    """

    def __init__(self, gpg_path: Optional[str] = None, settings: Optional[GpgSettings] = None):
        self.settings = settings or GpgSettings()
        self.gpg_path = gpg_path or self.settings.gpg_path or find_gpg_path()
        if not self.gpg_path:
            raise FileNotFoundError(
                "Could not automatically determine the location of the gpg executable. "
                "Pass gpg_path, set gpg_path in the settings file or set GPGPIPE_GPG_PATH."
            )

    def execute(
        self,
        command: GpgCommand,
        input: Optional[Any] = None,
        output: Optional[Any] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Run ``command`` to completion; ``timeout=None`` waits forever."""
        process = CommandLineProcess(self.gpg_path, str(command), encoding=self.settings.encoding)
        process.run(input=input, output=output, timeout=timeout)

    def begin_execute(
        self,
        command: GpgCommand,
        input: Optional[Any] = None,
        output: Optional[Any] = None,
        callback: Optional[AsyncCallback] = None,
        state: Any = None,
        timeout: Optional[float] = None,
    ) -> ValueAsyncResult:
        """Start ``command`` on a worker thread; the handle's value is ``output``."""
        def work() -> Any:
            self.execute(command, input, output, timeout)
            return output

        return begin_execute(work, callback, state, result_type=object)  # type: ignore[return-value]

    def end_execute(self, handle: ValueAsyncResult) -> Any:
        """Wait for a begin_execute handle; returns the output stream or re-raises."""
        return end_execute(handle, object)
