"""
Single-completion asynchronous results.

An ``AsyncResult`` is handed out as soon as some work starts on another
thread. The worker completes it exactly once, either with a value or with an
exception. Callers block on ``wait()`` (or ``value``), which re-raises the
stored exception on every call, or supply a callback that receives the handle
once the outcome is visible.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Callable, Generic, Optional, Type, TypeVar

from .errors import DoubleCompletionError, MismatchedHandleError

logger = logging.getLogger(__name__)

T = TypeVar("T")

AsyncCallback = Callable[["AsyncResult"], Any]

_thread_ids = itertools.count(1)


class AsyncResult:
    """Result handle for asynchronous work that does not produce a value."""

    def __init__(self, callback: Optional[AsyncCallback] = None, state: Any = None):
        self._callback = callback
        self._state = state
        self._lock = threading.Lock()
        self._completed = False
        self._event: Optional[threading.Event] = None
        self._exception: Optional[BaseException] = None

    @property
    def state(self) -> Any:
        """Caller-supplied correlation token; never interpreted here."""
        return self._state

    @property
    def is_completed(self) -> bool:
        return self._completed

    @property
    def exception(self) -> Optional[BaseException]:
        return self._exception

    def _wait_event(self) -> threading.Event:
        with self._lock:
            if self._event is None:
                self._event = threading.Event()
                if self._completed:
                    self._event.set()
            return self._event

    def _transition(self, store: Callable[[], None]) -> None:
        # test-and-set: exactly one caller gets past the completed check
        with self._lock:
            if self._completed:
                raise DoubleCompletionError("An asynchronous operation can only complete once.")
            store()
            self._completed = True
            event = self._event
        if event is not None:
            event.set()
        if self._callback is not None:
            try:
                self._callback(self)
            except Exception:
                logger.exception("Completion callback raised")

    def complete(self) -> None:
        """Mark the operation complete; raises DoubleCompletionError on a second call."""
        self._transition(lambda: None)

    def fail(self, exception: BaseException) -> None:
        """Complete the operation with ``exception`` as its outcome."""
        def store() -> None:
            self._exception = exception
        self._transition(store)

    def wait(self) -> None:
        """Block until completion, then re-raise the stored exception if there is one."""
        if not self._completed:
            self._wait_event().wait()
        if self._exception is not None:
            raise self._exception


class ValueAsyncResult(AsyncResult, Generic[T]):
    """Result handle for asynchronous work returning a value of ``result_type``."""

    def __init__(self, result_type: Type[Any] = object, callback: Optional[AsyncCallback] = None, state: Any = None):
        super().__init__(callback, state)
        self.result_type = result_type
        self._value: Optional[T] = None

    @property
    def value(self) -> T:
        """Wait for completion and return the value, or re-raise the failure."""
        self.wait()
        return self._value  # type: ignore[return-value]

    def complete(self, value: Optional[T] = None) -> None:  # type: ignore[override]
        def store() -> None:
            self._value = value
        self._transition(store)


def begin_execute(
    work: Callable[[], Any],
    callback: Optional[AsyncCallback] = None,
    state: Any = None,
    result_type: Optional[Type[Any]] = None,
) -> AsyncResult:
    """Start ``work`` on a new thread and return its handle immediately.

    When ``result_type`` is given the handle is a ValueAsyncResult holding the
    return value of ``work``; otherwise the return value is discarded.
    """
    if result_type is None:
        handle: AsyncResult = AsyncResult(callback, state)
    else:
        handle = ValueAsyncResult(result_type, callback, state)

    def _run() -> None:
        try:
            value = work()
        except BaseException as exc:
            logger.debug(f"Asynchronous work failed: {exc!r}")
            handle.fail(exc)
            if not isinstance(exc, Exception):
                raise
            return
        if isinstance(handle, ValueAsyncResult):
            handle.complete(value)
        else:
            handle.complete()

    worker = threading.Thread(target=_run, name=f"gpgpipe-async-{next(_thread_ids)}", daemon=True)
    worker.start()
    return handle


def end_execute(handle: Any, result_type: Optional[Type[Any]] = None) -> Any:
    """Wait for ``handle`` and return its value, re-raising a stored failure.

    Raises:
        MismatchedHandleError: ``handle`` is not an AsyncResult, or a
            ``result_type`` was requested and the handle was not started with
            a compatible one.
    """
    if not isinstance(handle, AsyncResult):
        raise MismatchedHandleError(f"A mismatched asynchronous result was provided: {handle!r}")
    if result_type is None:
        handle.wait()
        return None
    if not isinstance(handle, ValueAsyncResult) or not issubclass(handle.result_type, result_type):
        raise MismatchedHandleError(
            f"A mismatched asynchronous result was provided: expected {result_type.__name__} result"
        )
    return handle.value
