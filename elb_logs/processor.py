from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import DecodeError, ObjectError
from .parser import parse_line
from .record import AccessLogRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObjectResult:
    key: str
    records: Tuple[AccessLogRecord, ...] = ()
    dropped_lines: int = 0
    error: Optional[ObjectError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, key: str, error: ObjectError) -> ObjectResult:
        return cls(key=key, error=error)


def split_lines(text: str) -> List[str]:
    """Split on LF, dropping one trailing CR per line and the empty tail after a final newline."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_body(key: str, data: bytes) -> ObjectResult:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        return ObjectResult.failed(key, DecodeError(key, f"body is not UTF-8: {e}"))

    records = []
    dropped = 0
    for line in split_lines(text):
        record = parse_line(line)
        if record is None:
            dropped += 1
            continue
        records.append(record)

    if dropped:
        logger.debug("%s: dropped %d unparseable lines", key, dropped)
    return ObjectResult(key=key, records=tuple(records), dropped_lines=dropped)
