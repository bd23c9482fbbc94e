"""S3-compatible storage provider (AWS S3, Cloudflare R2, MinIO)."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from app.adapters.storage.base import (
    ObjectBody,
    ObjectStorageAdapter,
    ObjectStream,
    PutObjectResult,
    read_body,
)
from app.adapters.storage.keys import validate_key
from app.core.errors import StorageAppError, StorageNotFoundError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_RETRYABLE_CODES = {
    "RequestTimeout",
    "RequestTimeTooSkewed",
    "SlowDown",
    "Throttling",
    "ThrottlingException",
    "InternalError",
    "ServiceUnavailable",
}
_TRANSPORT_ERRORS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
)


def _client_error_info(exc: ClientError) -> tuple[str, int | None]:
    response = getattr(exc, "response", {}) or {}
    status_code = (response.get("ResponseMetadata") or {}).get("HTTPStatusCode")
    error_code = str((response.get("Error") or {}).get("Code") or "")
    return error_code, status_code


def _is_not_found(exc: Exception) -> bool:
    if not isinstance(exc, ClientError):
        return False
    error_code, status_code = _client_error_info(exc)
    return status_code == 404 or error_code in _NOT_FOUND_CODES


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, _TRANSPORT_ERRORS):
        return True
    if isinstance(exc, ClientError):
        error_code, status_code = _client_error_info(exc)
        if error_code in _RETRYABLE_CODES:
            return True
        return status_code is not None and (status_code >= 500 or status_code == 429)
    return False


class S3CompatibleStorageAdapter(ObjectStorageAdapter):
    """Storage adapter over the S3 API.

    R2 and MinIO speak the same API; set ``endpoint`` and path-style
    addressing is used.

    Args:
        bucket: Bucket name.
        access_key_id: Access key id.
        secret_access_key: Secret access key.
        region: Bucket region (``auto`` for R2).
        endpoint: Custom endpoint URL.
        provider_name: Name reported in logs (``s3`` or ``r2``).
        client: Pre-built boto3 S3 client (tests inject a mock here).
    """

    def __init__(
        self,
        *,
        bucket: str,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        region: str | None = None,
        endpoint: str | None = None,
        provider_name: str = "s3",
        client: Any | None = None,
    ) -> None:
        self.provider = provider_name
        self.bucket = bucket
        self.endpoint = endpoint
        self._client = client or self._build_client(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            region=region or "auto",
            endpoint=endpoint,
        )

    @staticmethod
    def _build_client(
        *,
        access_key_id: str | None,
        secret_access_key: str | None,
        region: str,
        endpoint: str | None,
    ) -> Any:
        client_kwargs: dict[str, Any] = {
            "service_name": "s3",
            "region_name": region,
        }
        if access_key_id:
            client_kwargs["aws_access_key_id"] = access_key_id
        if secret_access_key:
            client_kwargs["aws_secret_access_key"] = secret_access_key
        if endpoint:
            client_kwargs["endpoint_url"] = endpoint

        addressing_style = "path" if endpoint else "auto"
        client_kwargs["config"] = Config(
            signature_version="s3v4",
            s3={"addressing_style": addressing_style},
        )
        return boto3.client(**client_kwargs)

    def _storage_error(self, exc: Exception, *, code: str, key: str, operation: str) -> StorageAppError:
        retryable = _is_retryable(exc)
        logger.error(
            "storage.provider_error",
            extra={
                "provider": self.provider,
                "operation": operation,
                "error_type": type(exc).__name__,
                "retryable": retryable,
            },
        )
        return StorageAppError(
            code=code,
            message=f"{operation} failed for {key}: {exc}",
            details={"key": key, "provider": self.provider, "operation": operation},
            retryable=retryable,
        )

    def put_object(self, key: str, content_type: str, body: ObjectBody) -> PutObjectResult:
        validate_key(key)
        data = read_body(body)
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as exc:
            raise self._storage_error(exc, code="storage_write_error", key=key, operation="put_object") from exc

        logger.debug("storage.put_object", extra={"provider": self.provider, "size": len(data)})
        return PutObjectResult(size=len(data))

    def get_object_stream(self, key: str) -> ObjectStream:
        validate_key(key)
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            if _is_not_found(exc):
                raise StorageNotFoundError(
                    code="not_found",
                    message=f"Object not found: {key}",
                    details={"key": key, "provider": self.provider},
                ) from exc
            raise self._storage_error(exc, code="storage_read_error", key=key, operation="get_object_stream") from exc

        body = response.get("Body")
        if body is None:
            raise StorageNotFoundError(
                code="not_found",
                message=f"Object not found: {key} (empty response body)",
                details={"key": key, "provider": self.provider},
            )
        return ObjectStream(
            stream=body,
            content_type=response.get("ContentType"),
            content_length=response.get("ContentLength"),
        )

    def delete_object(self, key: str) -> None:
        validate_key(key)
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            # S3 reports success for missing keys; some compatible stores don't.
            if _is_not_found(exc):
                return
            raise self._storage_error(exc, code="storage_delete_error", key=key, operation="delete_object") from exc
