"""Google Cloud Storage provider."""

from __future__ import annotations

import logging
from typing import Any

from google.api_core import exceptions as gcs_exceptions
from google.auth.exceptions import TransportError
from google.cloud import storage as gcs_storage
from google.oauth2 import service_account

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

_TOKEN_URI = "https://oauth2.googleapis.com/token"

_RETRYABLE_ERRORS = (
    gcs_exceptions.TooManyRequests,
    gcs_exceptions.InternalServerError,
    gcs_exceptions.BadGateway,
    gcs_exceptions.ServiceUnavailable,
    gcs_exceptions.GatewayTimeout,
    gcs_exceptions.DeadlineExceeded,
    TransportError,
    ConnectionError,
    TimeoutError,
)
_PROVIDER_ERRORS = (gcs_exceptions.GoogleAPIError, TransportError, OSError)


class GcsStorageAdapter(ObjectStorageAdapter):
    """Storage adapter over a Google Cloud Storage bucket.

    Credentials come from a service account (project id, client email and
    private key). Private keys pasted into env files usually carry literal
    ``\\n`` sequences; they are turned back into newlines.
    """

    provider = "gcs"

    def __init__(
        self,
        *,
        bucket: str,
        project_id: str | None = None,
        client_email: str | None = None,
        private_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.bucket_name = bucket
        self._client = client or self._build_client(
            project_id=project_id,
            client_email=client_email,
            private_key=private_key,
        )

    @staticmethod
    def _build_client(
        *,
        project_id: str | None,
        client_email: str | None,
        private_key: str | None,
    ) -> Any:
        credentials = service_account.Credentials.from_service_account_info(
            {
                "type": "service_account",
                "project_id": project_id,
                "client_email": client_email,
                "private_key": (private_key or "").replace("\\n", "\n"),
                "token_uri": _TOKEN_URI,
            }
        )
        return gcs_storage.Client(project=project_id, credentials=credentials)

    @property
    def bucket(self) -> Any:
        return self._client.bucket(self.bucket_name)

    def _storage_error(self, exc: Exception, *, code: str, key: str, operation: str) -> StorageAppError:
        retryable = isinstance(exc, _RETRYABLE_ERRORS)
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
            blob = self.bucket.blob(key)
            blob.upload_from_string(data, content_type=content_type)
        except _PROVIDER_ERRORS as exc:
            raise self._storage_error(exc, code="storage_write_error", key=key, operation="put_object") from exc

        logger.debug("storage.put_object", extra={"provider": self.provider, "size": len(data)})
        return PutObjectResult(size=len(data))

    def get_object_stream(self, key: str) -> ObjectStream:
        validate_key(key)
        try:
            # get_blob fetches metadata and returns None for missing objects
            blob = self.bucket.get_blob(key)
            if blob is None:
                raise gcs_exceptions.NotFound(f"Object not found: {key}")
            stream = blob.open("rb")
        except gcs_exceptions.NotFound as exc:
            raise StorageNotFoundError(
                code="not_found",
                message=f"Object not found: {key}",
                details={"key": key, "provider": self.provider},
            ) from exc
        except _PROVIDER_ERRORS as exc:
            raise self._storage_error(exc, code="storage_read_error", key=key, operation="get_object_stream") from exc

        return ObjectStream(
            stream=stream,
            content_type=blob.content_type,
            content_length=int(blob.size) if blob.size is not None else None,
        )

    def delete_object(self, key: str) -> None:
        validate_key(key)
        try:
            self.bucket.blob(key).delete()
        except gcs_exceptions.NotFound:
            return
        except _PROVIDER_ERRORS as exc:
            raise self._storage_error(exc, code="storage_delete_error", key=key, operation="delete_object") from exc
