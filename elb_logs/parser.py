"""
Positional parser for application load balancer access log lines.

https://docs.aws.amazon.com/elasticloadbalancing/latest/application/load-balancer-access-logs.html#access-log-entry-format

A line is a fixed sequence of fields separated by single spaces. Bare fields
are runs of non-whitespace; quoted fields are wrapped in double quotes and may
contain spaces. The scanner walks the line once, field by field, and any
deviation from the grammar makes the whole line a non-match.
"""
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional

from pydantic import ValidationError

from .record import U16_MAX, AccessLogRecord, RequestType

_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _request_type(token: str) -> RequestType:
    return RequestType(token.lower())


def _unsigned(token: str) -> int:
    if not (token.isascii() and token.isdigit()):
        raise ValueError(f"not an unsigned integer: {token!r}")
    return int(token)


def _unsigned16(token: str) -> int:
    value = _unsigned(token)
    if value > U16_MAX:
        raise ValueError(f"out of 16-bit range: {token!r}")
    return value


def _float(token: str) -> float:
    if not _FLOAT_RE.fullmatch(token):
        raise ValueError(f"not a float: {token!r}")
    value = float(token)
    # huge exponents overflow to inf
    if not math.isfinite(value):
        raise ValueError(f"not a finite float: {token!r}")
    return value


@dataclass(frozen=True)
class FieldSpec:
    name: str
    quoted: bool = False
    convert: Callable[[str], Any] = str


FIELDS = (
    FieldSpec("request_type", convert=_request_type),
    FieldSpec("timestamp"),
    FieldSpec("elb"),
    FieldSpec("client"),
    FieldSpec("target"),
    FieldSpec("request_processing_time", convert=_float),
    FieldSpec("target_processing_time", convert=_float),
    FieldSpec("response_processing_time", convert=_float),
    FieldSpec("elb_status_code", convert=_unsigned16),
    FieldSpec("target_status_code", convert=_unsigned16),
    FieldSpec("received_bytes", convert=_unsigned),
    FieldSpec("sent_bytes", convert=_unsigned),
    FieldSpec("request", quoted=True),
    FieldSpec("user_agent", quoted=True),
    FieldSpec("ssl_cipher"),
    FieldSpec("ssl_protocol"),
    FieldSpec("target_group_arn"),
    FieldSpec("trace_id", quoted=True),
    FieldSpec("domain_name", quoted=True),
    FieldSpec("chosen_cert_arn", quoted=True),
    FieldSpec("matched_rule_priority", convert=_unsigned16),
    FieldSpec("request_creation_time"),
    FieldSpec("actions_executed", quoted=True),
    FieldSpec("redirect_url", quoted=True),
    FieldSpec("error_reason", quoted=True),
)


class LineScanner:
    """Cursor over one line. Every method returns None instead of raising."""

    def __init__(self, line: str):
        self.line = line
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.line)

    def separator(self) -> bool:
        if self.line.startswith(" ", self.pos):
            self.pos += 1
            return True
        return False

    def bare(self) -> Optional[str]:
        start = self.pos
        end = start
        while end < len(self.line) and not self.line[end].isspace():
            end += 1
        if end == start:
            return None
        self.pos = end
        return self.line[start:end]

    def quoted(self) -> Optional[str]:
        if not self.line.startswith('"', self.pos):
            return None
        i = self.pos + 1
        while i < len(self.line):
            ch = self.line[i]
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                value = self.line[self.pos + 1:i]
                self.pos = i + 1
                return value
            i += 1
        return None


def parse_line(line: str) -> Optional[AccessLogRecord]:
    """Return the record for a full grammar match, None for anything else."""
    scanner = LineScanner(line)
    values = {}
    for index, spec in enumerate(FIELDS):
        if index and not scanner.separator():
            return None
        token = scanner.quoted() if spec.quoted else scanner.bare()
        if token is None:
            return None
        try:
            values[spec.name] = spec.convert(token)
        except ValueError:
            return None
    if not scanner.at_end():
        return None
    try:
        return AccessLogRecord(**values)
    except ValidationError:
        return None


def parse_lines(lines: Iterable[str]) -> Iterator[AccessLogRecord]:
    for line in lines:
        record = parse_line(line)
        if record is not None:
            yield record
