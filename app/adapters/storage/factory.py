"""Factory pattern for creating object storage adapters."""

from __future__ import annotations

import logging

from app.adapters.storage.base import ObjectStorageAdapter
from app.adapters.storage.in_memory import InMemoryStorageAdapter
from app.adapters.storage.local import LocalStorageAdapter
from app.core.config import GcsSettings, StorageSettings
from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("local", "memory", "s3", "r2", "gcs")


def _missing_s3_fields(storage: StorageSettings, provider: str) -> list[str]:
    missing: list[str] = []
    if not storage.bucket:
        missing.append("STORAGE_BUCKET")
    if not storage.access_key_id:
        missing.append("STORAGE_ACCESS_KEY_ID")
    if not storage.secret_access_key:
        missing.append("STORAGE_SECRET_ACCESS_KEY")
    if provider == "r2" and not storage.endpoint:
        missing.append("STORAGE_ENDPOINT")
    return missing


def _missing_gcs_fields(storage: StorageSettings, gcs: GcsSettings) -> list[str]:
    missing: list[str] = []
    if not storage.bucket:
        missing.append("STORAGE_BUCKET")
    if not gcs.project_id:
        missing.append("GCS_PROJECT_ID")
    if not gcs.client_email:
        missing.append("GCS_CLIENT_EMAIL")
    if not gcs.private_key:
        missing.append("GCS_PRIVATE_KEY")
    return missing


def _raise_missing(provider: str, missing: list[str]) -> None:
    if not missing:
        return
    raise ValidationAppError(
        code="storage_config_missing",
        message=(
            f"Missing required environment variables for {provider.upper()} storage: "
            f"{', '.join(missing)}"
        ),
        details={"provider": provider, "missing": missing},
    )


def create_storage_adapter(
    storage: StorageSettings,
    gcs: GcsSettings | None = None,
) -> ObjectStorageAdapter:
    """Instantiate the storage adapter selected by configuration.

    Provider-specific requirements are checked before any client is built, so
    a misconfigured deployment fails at startup with every missing variable
    named.

    Args:
        storage: Storage settings (provider, bucket, credentials, ...).
        gcs: GCS service-account settings (only read for ``gcs``).

    Returns:
        ObjectStorageAdapter: Configured adapter instance.

    Raises:
        ValidationAppError: Unknown provider or missing provider settings.
    """
    provider = (storage.provider or "local").strip().lower() or "local"

    if provider == "local":
        return LocalStorageAdapter(root_dir=storage.local_root_dir)

    if provider == "memory":
        return InMemoryStorageAdapter()

    if provider in ("s3", "r2"):
        _raise_missing(provider, _missing_s3_fields(storage, provider))
        from app.adapters.storage.s3_compatible import S3CompatibleStorageAdapter

        return S3CompatibleStorageAdapter(
            bucket=storage.bucket,
            access_key_id=storage.access_key_id,
            secret_access_key=storage.secret_access_key,
            # R2 has no real regions
            region="auto" if provider == "r2" else storage.region,
            endpoint=storage.endpoint,
            provider_name=provider,
        )

    if provider == "gcs":
        gcs = gcs or GcsSettings()
        _raise_missing(provider, _missing_gcs_fields(storage, gcs))
        from app.adapters.storage.gcs import GcsStorageAdapter

        return GcsStorageAdapter(
            bucket=storage.bucket,
            project_id=gcs.project_id,
            client_email=gcs.client_email,
            private_key=gcs.private_key,
        )

    raise ValidationAppError(
        code="storage_unknown_provider",
        message=(
            f"Invalid STORAGE_PROVIDER: '{provider}'. "
            f"Valid values: {', '.join(SUPPORTED_PROVIDERS)}"
        ),
        details={"provider": provider, "valid_values": list(SUPPORTED_PROVIDERS)},
    )


def create_storage_adapter_from_env() -> ObjectStorageAdapter:
    """Read STORAGE_* / GCS_* from the environment and build the adapter."""
    return create_storage_adapter(StorageSettings(), GcsSettings())


_storage_adapter: ObjectStorageAdapter | None = None


def get_storage_adapter() -> ObjectStorageAdapter:
    """Return the process-wide storage adapter, building it on first use."""
    global _storage_adapter

    if _storage_adapter is None:
        _storage_adapter = create_storage_adapter_from_env()
        logger.info(
            "storage.adapter_initialized",
            extra={"provider": _storage_adapter.provider},
        )
    return _storage_adapter


def reset_storage_adapter() -> None:
    """Drop the cached adapter so the next call rebuilds it (tests)."""
    global _storage_adapter
    _storage_adapter = None


def set_storage_adapter(adapter: ObjectStorageAdapter) -> None:
    """Replace the process-wide adapter (dependency injection in tests)."""
    global _storage_adapter
    _storage_adapter = adapter
