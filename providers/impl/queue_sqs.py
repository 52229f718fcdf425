from __future__ import annotations

import base64
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config

from core.errors import ConfigurationError
from providers.queue import QueueProvider


class SQSQueueProvider(QueueProvider):
    """
    AWS SQS QueueProvider.

    SQS bodies are text, so the raw payload is base64-encoded and flagged
    with a `payloadEncoding=base64` attribute. Operation metadata travels as
    String message attributes.
    """

    def __init__(self, queue_url: str, region: Optional[str] = None, client: Any = None):
        queue_url = (queue_url or "").strip()
        if not queue_url:
            raise ConfigurationError("SQS_QUEUE_URL is required for SQS queue provider")
        self.queue_url = queue_url

        if client is None:
            cfg = Config(
                retries={"max_attempts": 5, "mode": "standard"},
                region_name=(region or "").strip() or None,
            )
            client = boto3.client("sqs", config=cfg)
        self.sqs = client

    def send_message(self, body: bytes, attributes: Dict[str, str]) -> str:
        attrs: Dict[str, Dict[str, str]] = {
            "payloadEncoding": {"DataType": "String", "StringValue": "base64"},
        }
        for k, v in (attributes or {}).items():
            if v is None or v == "":
                continue
            attrs[str(k)] = {"DataType": "String", "StringValue": str(v)}

        resp = self.sqs.send_message(
            QueueUrl=self.queue_url,
            MessageBody=base64.b64encode(body or b"").decode("ascii"),
            MessageAttributes=attrs,
        )
        return str(resp.get("MessageId") or "")
