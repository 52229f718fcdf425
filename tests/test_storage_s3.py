from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlsplit

import boto3
import pytest
from botocore.config import Config
from botocore.exceptions import NoCredentialsError
from botocore.stub import Stubber

from core.errors import ConfigurationError, StoreUnavailable
from core.settings import ValetSettings
from core.valet import issue_read_token
from providers.impl.storage_s3 import S3StorageProvider


def _client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        config=Config(signature_version="s3v4"),
    )


def _provider(client=None):
    return S3StorageProvider(bucket="results", prefix="ops", client=client or _client())


def test_bucket_is_required():
    with pytest.raises(ConfigurationError):
        S3StorageProvider(bucket="", client=_client())


def test_object_exists_true():
    p = _provider()
    with Stubber(p.s3) as stub:
        stub.add_response("head_object", {"ContentLength": 4}, {"Bucket": "results", "Key": "ops/a.blobdata"})
        assert p.object_exists("a.blobdata") is True


def test_object_exists_false_on_404():
    p = _provider()
    with Stubber(p.s3) as stub:
        stub.add_client_error("head_object", service_error_code="404", http_status_code=404)
        assert p.object_exists("a.blobdata") is False


def test_object_exists_raises_store_unavailable_on_5xx():
    p = _provider()
    with Stubber(p.s3) as stub:
        stub.add_client_error("head_object", service_error_code="SlowDown", http_status_code=503)
        with pytest.raises(StoreUnavailable):
            p.object_exists("a.blobdata")


def test_get_object_missing_is_file_not_found():
    p = _provider()
    with Stubber(p.s3) as stub:
        stub.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)
        with pytest.raises(FileNotFoundError):
            p.get_object("a.blobdata")


def test_presigned_read_url_is_scoped_to_key_and_window():
    p = _provider()
    token = issue_read_token(p, "abc.blobdata", ValetSettings(validity_seconds=600))

    parts = urlsplit(token.uri)
    assert parts.path.endswith("/ops/abc.blobdata")
    q = parse_qs(parts.query)
    assert q["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
    assert 590 <= int(q["X-Amz-Expires"][0]) <= 600


def test_presign_without_credentials_is_configuration_error():
    class NoCredsClient:
        def generate_presigned_url(self, **kwargs):
            raise NoCredentialsError()

    p = S3StorageProvider(bucket="results", client=NoCredsClient())
    now = datetime.now(timezone.utc)
    with pytest.raises(ConfigurationError):
        p.presign_url("a.blobdata", starts_at=now - timedelta(minutes=5), expires_at=now + timedelta(minutes=10))
