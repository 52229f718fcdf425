import pytest

from core.config_validation import validate_config
from core.errors import ConfigurationError
from core.settings import get_settings

_ENV = [
    "PUBLIC_BASE_URL",
    "WEBSITE_HOSTNAME",
    "STORAGE_MODE",
    "STORAGE_PROVIDER",
    "VALET_SIGNING_KEY",
    "QUEUE_PROVIDER",
    "SQS_QUEUE_URL",
    "S3_BUCKET",
    "POLL_INITIAL_BACKOFF_MS",
    "POLL_BACKOFF_CEILING_FACTOR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    s = get_settings()
    assert s.storage.provider == "local"
    assert s.queue.provider == "memory"
    assert s.valet.clock_skew_seconds == 300
    assert s.valet.validity_seconds == 600
    assert s.polling.initial_backoff_ms == 250
    assert s.polling.ceiling_ms == 64000
    assert s.polling.retry_after_seconds == 5


def test_storage_mode_wins_over_storage_provider(monkeypatch):
    monkeypatch.setenv("STORAGE_MODE", "s3")
    monkeypatch.setenv("STORAGE_PROVIDER", "local")
    assert get_settings().storage.provider == "s3"


def test_storage_provider_used_when_mode_missing(monkeypatch):
    monkeypatch.setenv("STORAGE_PROVIDER", "minio")
    assert get_settings().storage.provider == "minio"


def test_base_url_falls_back_to_hostname(monkeypatch):
    monkeypatch.setenv("WEBSITE_HOSTNAME", "ops.example.com")
    assert get_settings().service.base_url == "https://ops.example.com"


def test_explicit_base_url_wins_and_is_trimmed(monkeypatch):
    monkeypatch.setenv("WEBSITE_HOSTNAME", "ops.example.com")
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://localhost:8000/")
    assert get_settings().service.base_url == "http://localhost:8000"


def test_bad_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("POLL_INITIAL_BACKOFF_MS", "soon")
    assert get_settings().polling.initial_backoff_ms == 250


def test_validate_requires_base_url(monkeypatch):
    monkeypatch.setenv("VALET_SIGNING_KEY", "k")
    with pytest.raises(ConfigurationError):
        validate_config()


def test_validate_requires_signing_key_for_local(monkeypatch):
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://localhost:8000")
    with pytest.raises(ConfigurationError):
        validate_config()


def test_validate_requires_queue_url_for_sqs(monkeypatch):
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://localhost:8000")
    monkeypatch.setenv("VALET_SIGNING_KEY", "k")
    monkeypatch.setenv("QUEUE_PROVIDER", "sqs")
    with pytest.raises(ConfigurationError):
        validate_config()


def test_validate_requires_bucket_for_s3(monkeypatch):
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://localhost:8000")
    monkeypatch.setenv("STORAGE_MODE", "s3")
    with pytest.raises(ConfigurationError):
        validate_config()


def test_validate_ok_for_local_dev(monkeypatch):
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://localhost:8000")
    monkeypatch.setenv("VALET_SIGNING_KEY", "k")
    validate_config()
