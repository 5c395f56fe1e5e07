import gzip
import threading
from datetime import datetime, timedelta, timezone

import pytest
from botocore.exceptions import ClientError

MIDNIGHT = datetime(2024, 5, 1, tzinfo=timezone.utc)

# https://docs.aws.amazon.com/elasticloadbalancing/latest/application/load-balancer-access-logs.html
SAMPLE_TOKENS = {
    "request_type": "https",
    "timestamp": "2018-07-02T22:23:00.186641Z",
    "elb": "app/my-loadbalancer/50dc6c495c0c9188",
    "client": "192.168.131.39:2817",
    "target": "10.0.0.1:80",
    "request_processing_time": "0.086",
    "target_processing_time": "0.048",
    "response_processing_time": "0.037",
    "elb_status_code": "200",
    "target_status_code": "200",
    "received_bytes": "0",
    "sent_bytes": "57",
    "request": '"GET https://www.example.com:443/ HTTP/1.1"',
    "user_agent": '"curl/7.46.0"',
    "ssl_cipher": "ECDHE-RSA-AES128-GCM-SHA256",
    "ssl_protocol": "TLSv1.2",
    "target_group_arn": "arn:aws:elasticloadbalancing:us-east-2:123456789012:targetgroup/my-targets/73e2d6bc24d8a067",
    "trace_id": '"Root=1-58337281-1d84f3d73c47ec4e58577259"',
    "domain_name": '"www.example.com"',
    "chosen_cert_arn": '"arn:aws:acm:us-east-2:123456789012:certificate/12345678-1234-1234-1234-123456789012"',
    "matched_rule_priority": "1",
    "request_creation_time": "2018-07-02T22:22:48.364000Z",
    "actions_executed": '"authenticate,forward"',
    "redirect_url": '"-"',
    "error_reason": '"-"',
}


def build_line(**overrides) -> str:
    tokens = dict(SAMPLE_TOKENS)
    tokens.update(overrides)
    return " ".join(tokens.values())


def at(seconds: float, day: datetime = MIDNIGHT) -> datetime:
    """Instant `seconds` past midnight of `day`."""
    return day + timedelta(seconds=seconds)


@pytest.fixture
def alb_line():
    return build_line()


@pytest.fixture
def line_factory():
    return build_line


class FakeObjectSource:
    def __init__(self, objects=(), bodies=None, errors=None, list_error=None, gate=None):
        self.objects = list(objects)
        self.bodies = bodies or {}
        self.errors = errors or {}
        self.list_error = list_error
        self.gate = gate or {}
        self.listed = []
        self.fetched = []
        self._lock = threading.Lock()

    def list(self, bucket, prefix):
        self.listed.append((bucket, prefix))
        if self.list_error:
            raise self.list_error
        return list(self.objects)

    def fetch_and_decompress(self, bucket, key):
        with self._lock:
            self.fetched.append(key)
        if key in self.gate:
            self.gate[key].wait(timeout=5)
        if key in self.errors:
            raise self.errors[key]
        return self.bodies[key]


@pytest.fixture
def fake_source():
    return FakeObjectSource


class _FakeBody:
    def __init__(self, data: bytes):
        self._data = data

    def read(self):
        return self._data


class _FakePaginator:
    def __init__(self, client):
        self.client = client

    def paginate(self, Bucket, Prefix):
        self.client.calls.append(("list_objects_v2", Bucket, Prefix))
        if self.client.list_error:
            raise self.client.list_error
        for page in self.client.pages:
            yield {"Contents": [o for o in page if o["Key"].startswith(Prefix)]}


class FakeS3Client:
    def __init__(self, pages=(), objects=None, list_error=None):
        self.pages = list(pages)
        self.objects = objects or {}
        self.list_error = list_error
        self.calls = []

    def get_paginator(self, name):
        assert name == "list_objects_v2"
        return _FakePaginator(self)

    def get_object(self, Bucket, Key):
        self.calls.append(("get_object", Bucket, Key))
        if Key not in self.objects:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "The specified key does not exist."}},
                "GetObject",
            )
        return {"Body": _FakeBody(self.objects[Key])}


@pytest.fixture
def fake_s3():
    return FakeS3Client


def gz(text: str) -> bytes:
    return gzip.compress(text.encode("utf-8"))


@pytest.fixture
def clock():
    return at


@pytest.fixture
def gzipped():
    return gz
