"""
Byte stream copying with an adaptively growing buffer.
"""

from __future__ import annotations

import io
from typing import Any, Optional

from .errors import UnsupportedStreamError

INITIAL_BUFFER_SIZE = 256
MAX_BUFFER_SIZE = 64 * 1024
GROWTH_FACTOR = 4


def _supports(stream: Any, check: str, method: str) -> bool:
    if isinstance(stream, io.TextIOBase):
        # pumps move bytes; text wrappers accept and return str
        return False
    probe = getattr(stream, check, None)
    if probe is None:
        return callable(getattr(stream, method, None))
    try:
        return bool(probe())
    except ValueError:
        # closed file objects raise instead of answering
        return False


def is_readable(stream: Any) -> bool:
    return _supports(stream, "readable", "read")


def is_writable(stream: Any) -> bool:
    return _supports(stream, "writable", "write")


def ensure_readable(stream: Any, name: str = "source") -> None:
    if stream is not None and not is_readable(stream):
        raise UnsupportedStreamError(f"The {name} stream is not a readable binary stream.")


def ensure_writable(stream: Any, name: str = "destination") -> None:
    if stream is not None and not is_writable(stream):
        raise UnsupportedStreamError(f"The {name} stream is not a writable binary stream.")


def _write_all(destination: Any, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = destination.write(view)
        # buffered and BytesIO writers return None or the full length
        if written is None or written >= len(view):
            return
        view = view[written:]


def copy_dynamic(source: Optional[Any], destination: Optional[Any]) -> int:
    """Copy every remaining byte of ``source`` into ``destination``.

    Reads start at 256 bytes. Whenever a read fills the whole buffer and the
    buffer is still below 64 KiB, the buffer grows four-fold. A short read
    keeps the current size; an empty read ends the copy.

    Returns the number of bytes copied. Does nothing when either side is None.
    """
    if source is None or destination is None:
        return 0
    ensure_readable(source)
    ensure_writable(destination)

    size = INITIAL_BUFFER_SIZE
    total = 0
    while True:
        chunk = source.read(size)
        if not chunk:
            return total
        _write_all(destination, chunk)
        total += len(chunk)
        if len(chunk) == size and size < MAX_BUFFER_SIZE:
            size *= GROWTH_FACTOR
