import json
from typing import Iterable, TextIO

from .record import AccessLogRecord

FORMATS = ("text", "json")


def _text_value(value) -> str:
    text = str(value)
    if text == "" or any(ch.isspace() or ch == '"' for ch in text):
        return json.dumps(text, ensure_ascii=False)
    return text


def render_record(record: AccessLogRecord, fmt: str = "text") -> str:
    if fmt == "json":
        return record.model_dump_json()
    if fmt == "text":
        data = record.model_dump(mode="json")
        return " ".join(f"{name}={_text_value(value)}" for name, value in data.items())
    raise ValueError(f"unknown output format: {fmt!r}")


def write_records(records: Iterable[AccessLogRecord], out: TextIO, fmt: str = "text") -> int:
    count = 0
    for record in records:
        print(render_record(record, fmt), file=out)
        count += 1
    return count
