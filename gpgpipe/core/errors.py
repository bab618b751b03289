"""
Exception types raised by the subprocess engine and the asynchronous helpers.
"""

from __future__ import annotations

from typing import Iterable, List, Optional


class GpgPipeError(Exception):
    """Base class for all gpgpipe errors."""


class UnsupportedStreamError(GpgPipeError, TypeError):
    """A supplied stream cannot be read from or written to as required."""


class ConfigurationError(GpgPipeError):
    """A settings file could not be loaded or validated."""


class SubprocessFailure(GpgPipeError):
    """The process exited with a non-zero status and wrote to stderr.

    The message is the captured stderr text, verbatim.
    """

    def __init__(self, stderr: str, exit_code: Optional[int] = None, executable: Optional[str] = None):
        super().__init__(stderr)
        self.stderr = stderr
        self.exit_code = exit_code
        self.executable = executable


class ProcessTimeoutError(GpgPipeError, TimeoutError):
    """The process did not exit in time and was killed."""

    def __init__(self, timeout: float, process_name: str):
        super().__init__(
            f"A timeout occurred after {timeout} seconds waiting for the {process_name} process to complete."
        )
        self.timeout = timeout
        self.process_name = process_name


class AggregateFailure(GpgPipeError):
    """More than one concurrent activity of an invocation failed."""

    def __init__(self, errors: Iterable[BaseException]):
        self.errors: List[BaseException] = flatten_errors(errors)
        summary = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} errors occurred: {summary}")


class DoubleCompletionError(GpgPipeError, RuntimeError):
    """An asynchronous operation was completed more than once."""


class MismatchedHandleError(GpgPipeError, ValueError):
    """A handle passed to an end_* call does not match the expected result type."""


def flatten_errors(errors: Iterable[BaseException]) -> List[BaseException]:
    flat: List[BaseException] = []
    for err in errors:
        if isinstance(err, AggregateFailure):
            flat.extend(err.errors)
        else:
            flat.append(err)
    return flat


def raise_collected(errors: Iterable[BaseException]) -> None:
    """Raise nothing, the single error as is, or an AggregateFailure."""
    flat = flatten_errors(errors)
    if not flat:
        return
    if len(flat) == 1:
        raise flat[0]
    raise AggregateFailure(flat)
