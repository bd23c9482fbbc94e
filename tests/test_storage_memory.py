"""Tests for the in-memory storage provider."""

import io

import pytest

from app.adapters.storage.base import iter_stream
from app.adapters.storage.in_memory import InMemoryStorageAdapter
from app.core.errors import StorageNotFoundError, ValidationAppError


@pytest.fixture
def adapter() -> InMemoryStorageAdapter:
    return InMemoryStorageAdapter()


def test_put_then_get_returns_same_bytes_and_metadata(adapter):
    result = adapter.put_object("uploads/a.png", "image/png", b"\x89PNG-data")

    assert result.size == 9
    stored = adapter.get_object_stream("uploads/a.png")
    assert stored.content_type == "image/png"
    assert stored.content_length == 9
    assert stored.stream.read() == b"\x89PNG-data"


def test_put_accepts_binary_stream(adapter):
    adapter.put_object("uploads/b.bin", "application/octet-stream", io.BytesIO(b"streamed"))

    assert adapter.get_bytes("uploads/b.bin") == b"streamed"


def test_put_overwrites_existing_key(adapter):
    adapter.put_object("k.txt", "text/plain", b"first")
    adapter.put_object("k.txt", "text/markdown", b"second")

    stored = adapter.get_object_stream("k.txt")
    assert stored.stream.read() == b"second"
    assert stored.content_type == "text/markdown"
    assert adapter.size == 1


def test_missing_key_raises_not_found(adapter):
    with pytest.raises(StorageNotFoundError) as exc_info:
        adapter.get_object_stream("uploads/missing.jpg")

    assert exc_info.value.code == "not_found"
    assert exc_info.value.retryable is False


def test_delete_is_idempotent(adapter):
    adapter.put_object("uploads/a.jpg", "image/jpeg", b"x")

    adapter.delete_object("uploads/a.jpg")
    adapter.delete_object("uploads/a.jpg")
    adapter.delete_object("never/existed.jpg")

    assert not adapter.has("uploads/a.jpg")
    with pytest.raises(StorageNotFoundError):
        adapter.get_object_stream("uploads/a.jpg")


def test_rejects_traversal_before_storing(adapter):
    with pytest.raises(ValidationAppError):
        adapter.put_object("../escape.txt", "text/plain", b"x")

    assert adapter.size == 0


def test_empty_adapter_is_still_truthy(adapter):
    assert adapter
    assert adapter.size == 0


def test_clear_removes_everything(adapter):
    adapter.put_object("a", "text/plain", b"1")
    adapter.put_object("b", "text/plain", b"2")

    adapter.clear()

    assert adapter.size == 0
    assert adapter.get_bytes("a") is None


def test_iter_stream_yields_chunks_and_closes():
    stream = io.BytesIO(b"abcdefghij")

    chunks = list(iter_stream(stream, chunk_size=4))

    assert chunks == [b"abcd", b"efgh", b"ij"]
    assert stream.closed
