import pytest
from pydantic import ValidationError

from elb_logs.config import Settings, load_settings

ENV_VARS = [
    "AWS_REGION", "AWS_ENDPOINT_URL", "ELB_LOGS_LAG_MINUTES", "ELB_LOGS_LOOKBACK_MINUTES",
    "ELB_LOGS_MAX_WORKERS", "ELB_LOGS_DEADLINE_SECONDS", "LOG_LEVEL", "METRICS_PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults():
    s = Settings()
    assert s.lag_minutes == 15
    assert s.lookback_minutes == 20
    assert s.max_workers == 8
    assert s.deadline_seconds is None
    assert s.aws_region is None
    assert s.log_level == "INFO"
    assert s.metrics_port == 0


def test_environment(monkeypatch):
    monkeypatch.setenv("ELB_LOGS_LAG_MINUTES", "5")
    monkeypatch.setenv("ELB_LOGS_LOOKBACK_MINUTES", "10")
    monkeypatch.setenv("ELB_LOGS_MAX_WORKERS", "2")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = Settings()
    assert (s.lag_minutes, s.lookback_minutes, s.max_workers) == (5, 10, 2)
    assert s.aws_region == "eu-west-1"
    assert s.log_level == "DEBUG"


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("ELB_LOGS_MAX_WORKERS=4\nUNRELATED=1\n")
    assert Settings().max_workers == 4


def test_lookback_must_exceed_lag():
    with pytest.raises(ValidationError):
        Settings(lag_minutes=20, lookback_minutes=20)


@pytest.mark.parametrize("field,value", [
    ("max_workers", 0),
    ("log_level", "LOUD"),
    ("deadline_seconds", 0),
    ("s3_addressing_style", "sideways"),
])
def test_invalid_values(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})


def test_load_settings_overrides(monkeypatch):
    monkeypatch.setenv("ELB_LOGS_MAX_WORKERS", "2")
    assert load_settings(max_workers=None).max_workers == 2
    assert load_settings(max_workers=6).max_workers == 6
