from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qsl, urlsplit

import pytest

from core import valet
from core.errors import ConfigurationError
from core.settings import ValetSettings
from providers.impl.storage_local_files import LocalFilesStorageProvider

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def _local(tmp_path, key="secret"):
    return LocalFilesStorageProvider(root_dir=str(tmp_path), signing_key=key, public_base_url="http://svc")


def _params(uri: str):
    return dict(parse_qsl(urlsplit(uri).query))


def test_token_window_is_skew_before_and_validity_after(tmp_path):
    token = valet.issue_read_token(_local(tmp_path), "abc.blobdata", ValetSettings(signing_key="secret"), now=NOW)

    assert token.key == "abc.blobdata"
    assert token.permission == "r"
    assert token.starts_at == NOW - timedelta(minutes=5)
    assert token.expires_at == NOW + timedelta(minutes=10)
    assert token.uri.startswith("http://svc/files/abc.blobdata?")


def test_token_can_be_issued_for_missing_object(tmp_path):
    storage = _local(tmp_path)
    token = valet.issue_read_token(storage, "not-yet.blobdata", ValetSettings(signing_key="secret"), now=NOW)
    assert not storage.object_exists("not-yet.blobdata")
    assert token.uri


def test_missing_signing_key_is_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        valet.issue_read_token(_local(tmp_path, key=""), "abc.blobdata", ValetSettings(), now=NOW)


def test_verify_respects_window(tmp_path):
    storage = _local(tmp_path)
    token = valet.issue_read_token(storage, "abc.blobdata", ValetSettings(signing_key="secret"), now=NOW)
    params = _params(token.uri)

    assert storage.verify_download("abc.blobdata", params, now=NOW)
    assert storage.verify_download("abc.blobdata", params, now=NOW - timedelta(minutes=5))
    assert storage.verify_download("abc.blobdata", params, now=NOW + timedelta(minutes=10))

    assert not storage.verify_download("abc.blobdata", params, now=NOW - timedelta(minutes=5, seconds=1))
    assert not storage.verify_download("abc.blobdata", params, now=NOW + timedelta(minutes=10, seconds=1))


def test_token_is_scoped_to_one_key(tmp_path):
    storage = _local(tmp_path)
    token = valet.issue_read_token(storage, "abc.blobdata", ValetSettings(signing_key="secret"), now=NOW)
    assert not storage.verify_download("other.blobdata", _params(token.uri), now=NOW)


def test_tampered_window_or_permission_is_rejected(tmp_path):
    storage = _local(tmp_path)
    token = valet.issue_read_token(storage, "abc.blobdata", ValetSettings(signing_key="secret"), now=NOW)
    params = _params(token.uri)

    extended = dict(params, se=valet.format_ts(NOW + timedelta(days=1)))
    assert not storage.verify_download("abc.blobdata", extended, now=NOW)

    write = dict(params, sp="rw")
    assert not storage.verify_download("abc.blobdata", write, now=NOW)


def test_other_signing_key_is_rejected(tmp_path):
    token = valet.issue_read_token(_local(tmp_path), "abc.blobdata", ValetSettings(signing_key="secret"), now=NOW)
    assert not _local(tmp_path, key="rotated").verify_download("abc.blobdata", _params(token.uri), now=NOW)


def test_custom_window_settings(tmp_path):
    cfg = ValetSettings(signing_key="secret", clock_skew_seconds=0, validity_seconds=30)
    token = valet.issue_read_token(_local(tmp_path), "abc.blobdata", cfg, now=NOW)
    assert token.starts_at == NOW
    assert token.expires_at == NOW + timedelta(seconds=30)
    assert token.to_dict()["expiresAt"] == "2026-10-18T12:00:30Z"
