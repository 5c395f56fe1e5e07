from __future__ import annotations

import logging
import queue
import re
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from .config import Settings
from .errors import BucketPathError, FetchError, ObjectError
from .metrics import (
    m_lines_dropped,
    m_lines_parsed,
    m_objects_failed,
    m_objects_listed,
    m_objects_selected,
)
from .processor import ObjectResult, parse_body
from .record import AccessLogRecord
from .source import ObjectSource
from .window import SelectionWindow, select_objects

logger = logging.getLogger(__name__)

BUCKET_PATH_RE = re.compile(r"^(?:s3://)?(?P<bucket>[^/:\s]+)(?:/(?P<path>.*))?$")


def parse_bucket_path(value: str) -> Tuple[str, str]:
    """Split "bucket/some/prefix" into ("bucket", "some/prefix")."""
    m = BUCKET_PATH_RE.match(value or "")
    if not m or not m.group("bucket").strip():
        raise BucketPathError(f"expected BUCKET[/PREFIX], got {value!r}")
    return m.group("bucket"), (m.group("path") or "").rstrip("/")


def date_prefix(base: str, now: datetime) -> str:
    # bucket[/prefix]/AWSLogs/<account>/elasticloadbalancing/<region>/yyyy/mm/dd/<object>.log.gz
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    day = now.astimezone(timezone.utc).strftime("%Y/%m/%d")
    return f"{base}/{day}" if base else day


@dataclass(frozen=True)
class PipelineResult:
    prefix: str
    listed: int
    selected: Tuple[str, ...]
    objects: Tuple[ObjectResult, ...]

    @property
    def records(self) -> List[AccessLogRecord]:
        return [record for obj in self.objects if obj.ok for record in obj.records]

    @property
    def dropped_lines(self) -> int:
        return sum(obj.dropped_lines for obj in self.objects)

    @property
    def failed(self) -> List[ObjectResult]:
        return [obj for obj in self.objects if not obj.ok]


class LogPipeline:
    """
    One discovery pass: list today's partition, keep the objects written in
    the trailing window, then fetch and parse them concurrently.
    """

    def __init__(
        self,
        source: ObjectSource,
        lag: timedelta = timedelta(minutes=15),
        lookback: timedelta = timedelta(minutes=20),
        max_workers: int = 8,
        deadline: Optional[float] = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.source = source
        self.lag = lag
        self.lookback = lookback
        self.max_workers = max_workers
        self.deadline = deadline

    @classmethod
    def from_settings(cls, source: ObjectSource, settings: Settings) -> LogPipeline:
        return cls(
            source,
            lag=timedelta(minutes=settings.lag_minutes),
            lookback=timedelta(minutes=settings.lookback_minutes),
            max_workers=settings.max_workers,
            deadline=settings.deadline_seconds,
        )

    def run(self, bucket: str, base_path: str, now: Optional[datetime] = None) -> PipelineResult:
        started = time.monotonic()
        now = now or datetime.now(timezone.utc)
        window = SelectionWindow(reference=now, lower_offset=self.lookback, upper_offset=self.lag)
        prefix = date_prefix(base_path, now)

        listing = self.source.list(bucket, prefix)
        selected = select_objects(listing, window)
        m_objects_listed.inc(len(listing))
        m_objects_selected.inc(len(selected))
        logger.info("found %d objects", len(selected))
        for candidate in selected:
            logger.info("%s", candidate.key)

        remaining = None
        if self.deadline is not None:
            remaining = max(0.0, self.deadline - (time.monotonic() - started))
        objects = self.fetch_all(bucket, [c.key for c in selected], timeout=remaining)

        result = PipelineResult(
            prefix=prefix,
            listed=len(listing),
            selected=tuple(c.key for c in selected),
            objects=tuple(objects),
        )
        for obj in result.failed:
            logger.warning("Skipping %s: %s", obj.key, obj.error)
        m_objects_failed.inc(len(result.failed))
        m_lines_parsed.inc(len(result.records))
        m_lines_dropped.inc(result.dropped_lines)
        return result

    def fetch_all(self, bucket: str, keys: Sequence[str], timeout: Optional[float] = None) -> List[ObjectResult]:
        """
        Fetch and parse every key; results come back in key order.

        Workers are daemon threads, so objects still in flight when the
        deadline passes never hold the process open.
        """
        if not keys:
            return []

        jobs: queue.Queue = queue.Queue()
        done: queue.Queue = queue.Queue()
        stop = threading.Event()
        for job in enumerate(keys):
            jobs.put(job)

        def worker():
            while not stop.is_set():
                try:
                    i, key = jobs.get_nowait()
                except queue.Empty:
                    return
                done.put((i, self._fetch_one(bucket, key)))

        for n in range(min(self.max_workers, len(keys))):
            threading.Thread(target=worker, name=f"elb-logs-fetch-{n}", daemon=True).start()

        expires = None if timeout is None else time.monotonic() + timeout
        results = {}
        while len(results) < len(keys):
            wait = None if expires is None else expires - time.monotonic()
            if wait is not None and wait <= 0:
                break
            try:
                i, result = done.get(timeout=wait)
            except queue.Empty:
                break
            results[i] = result

        if len(results) < len(keys):
            stop.set()
            while True:
                try:
                    i, result = done.get_nowait()
                except queue.Empty:
                    break
                results[i] = result
            outstanding = 0
            for i, key in enumerate(keys):
                if i not in results:
                    outstanding += 1
                    results[i] = ObjectResult.failed(key, FetchError(key, "deadline exceeded"))
            logger.warning("Deadline reached with %d objects outstanding", outstanding)
        return [results[i] for i in range(len(keys))]

    def _fetch_one(self, bucket: str, key: str) -> ObjectResult:
        try:
            data = self.source.fetch_and_decompress(bucket, key)
        except ObjectError as e:
            return ObjectResult.failed(key, e)
        except Exception as e:
            logger.error("Unexpected error fetching %s: %s", key, e, exc_info=True)
            return ObjectResult.failed(key, FetchError(key, f"unexpected error: {e}"))
        return parse_body(key, data)
