"""
Parsing of ``gpg --with-colons --fixed-list-mode`` key listings.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import IO, Iterator, List, Optional, Union

from .enums import Algorithm, KeyCapabilities, RecordType, Validity

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class GpgKey:
    """One record of a colon-delimited key listing."""
    record_type: RecordType = RecordType.UNKNOWN
    validity: Validity = Validity.UNKNOWN
    key_length: int = 0
    algorithm: Algorithm = Algorithm.UNKNOWN
    key_id: Optional[str] = None
    creation_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    hash: Optional[str] = None
    owner_trust: Optional[str] = None
    user_id: Optional[str] = None
    signature_class: Optional[str] = None
    key_capabilities: KeyCapabilities = KeyCapabilities.NONE
    fingerprint: Optional[str] = None
    flag: Optional[str] = None
    serial_number: Optional[str] = None


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse epoch seconds or ISO 8601 basic format (``20240131T120000``)."""
    if not value:
        return None
    if "T" in value:
        for fmt in ("%Y%m%dT%H%M%S", "%Y-%m-%dT%H:%M:%S"):
            try:
                return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
            except ValueError:
                continue
        return None
    try:
        return _EPOCH + timedelta(seconds=int(value))
    except (ValueError, OverflowError):
        return None


def _parse_int(value: Optional[str]) -> int:
    try:
        return int(value or "")
    except ValueError:
        return 0


def parse_key_line(line: str) -> GpgKey:
    fields = line.rstrip("\r\n").split(":")

    def f(i: int) -> Optional[str]:
        return fields[i] if len(fields) > i else None

    return GpgKey(
        record_type=RecordType.from_field(f(0)),
        validity=Validity.from_field(f(1)),
        key_length=_parse_int(f(2)),
        algorithm=Algorithm.from_field(f(3)),
        key_id=f(4),
        creation_date=parse_date(f(5)),
        expiration_date=parse_date(f(6)),
        hash=f(7),
        owner_trust=f(8),
        user_id=f(9),
        signature_class=f(10),
        key_capabilities=KeyCapabilities.from_field(f(11)),
        fingerprint=f(12),
        flag=f(13),
        serial_number=f(14),
    )


class GpgKeyReader:
    """Reads GpgKey records from a binary or text stream.

    Usable as a context manager; closing the reader closes the stream.
    """

    def __init__(self, stream: Union[IO[bytes], IO[str]], encoding: str = "utf-8"):
        if isinstance(stream, io.TextIOBase):
            self._reader = stream
        else:
            self._reader = io.TextIOWrapper(stream, encoding=encoding, errors="replace")

    def __iter__(self) -> Iterator[GpgKey]:
        for line in self._reader:
            if not line.strip():
                continue
            yield parse_key_line(line)

    def read_all_keys(self) -> List[GpgKey]:
        keys = list(self)
        logger.debug(f"Read {len(keys)} key records")
        return keys

    def close(self) -> None:
        self._reader.close()

    def __enter__(self) -> "GpgKeyReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
