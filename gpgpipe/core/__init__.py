"""
Core subprocess engine: stream pumping, process execution with timeouts,
error aggregation and single-completion asynchronous results.
"""

from .errors import (
    GpgPipeError, UnsupportedStreamError, SubprocessFailure, ProcessTimeoutError,
    AggregateFailure, DoubleCompletionError, MismatchedHandleError, ConfigurationError
)
from .streams import copy_dynamic
from .process import CommandLineProcess, Invocation, run_process
from .async_result import AsyncResult, ValueAsyncResult, begin_execute, end_execute
from .error_handler import ErrorHandler, ErrorCategory, FailureReport

__all__ = [
    "GpgPipeError",
    "UnsupportedStreamError",
    "SubprocessFailure",
    "ProcessTimeoutError",
    "AggregateFailure",
    "DoubleCompletionError",
    "MismatchedHandleError",
    "ConfigurationError",
    "copy_dynamic",
    "CommandLineProcess",
    "Invocation",
    "run_process",
    "AsyncResult",
    "ValueAsyncResult",
    "begin_execute",
    "end_execute",
    "ErrorHandler",
    "ErrorCategory",
    "FailureReport",
]
