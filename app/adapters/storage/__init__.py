"""Object storage adapter layer - abstracts over local, memory, S3/R2 and GCS."""

from app.adapters.storage.base import (
    ObjectStorageAdapter,
    ObjectStream,
    PutObjectResult,
    iter_stream,
)
from app.adapters.storage.factory import (
    create_storage_adapter,
    create_storage_adapter_from_env,
    get_storage_adapter,
    reset_storage_adapter,
    set_storage_adapter,
)
from app.adapters.storage.in_memory import InMemoryStorageAdapter
from app.adapters.storage.keys import validate_key
from app.adapters.storage.local import LocalStorageAdapter

__all__ = [
    "InMemoryStorageAdapter",
    "LocalStorageAdapter",
    "ObjectStorageAdapter",
    "ObjectStream",
    "PutObjectResult",
    "create_storage_adapter",
    "create_storage_adapter_from_env",
    "get_storage_adapter",
    "iter_stream",
    "reset_storage_adapter",
    "set_storage_adapter",
    "validate_key",
]
