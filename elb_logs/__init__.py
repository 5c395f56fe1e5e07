from .parser import parse_line, parse_lines
from .pipeline import LogPipeline, PipelineResult, date_prefix, parse_bucket_path
from .record import AccessLogRecord, RequestType
from .window import ObjectCandidate, SelectionWindow, select_objects

__all__ = [
    "AccessLogRecord",
    "RequestType",
    "parse_line",
    "parse_lines",
    "ObjectCandidate",
    "SelectionWindow",
    "select_objects",
    "LogPipeline",
    "PipelineResult",
    "date_prefix",
    "parse_bucket_path",
]
