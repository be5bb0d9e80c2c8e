"""
Upload sources.

An upload body is either a payload already held in memory (RawPayload) or
something that produces bytes over time (StreamSource). Both expose drain(),
an async iterator of byte chunks that the upload request consumes exactly
once. as_upload_source() is the one place where caller objects are sorted
into those two kinds.
"""
from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, Iterable
from typing import Any, AsyncIterator, Callable, Optional, Union

__all__ = ["UploadSource", "RawPayload", "StreamSource", "as_upload_source", "run_io"]

DEFAULT_CHUNK_SIZE = 64 * 1024

RawData = Union[bytes, bytearray, memoryview, str]


class UploadSource(ABC):
    """Something an upload request can drain into its body."""

    @property
    def size(self) -> Optional[int]:
        """Exact byte length when known up front, else None (chunked upload)."""
        return None

    @abstractmethod
    def drain(self) -> AsyncIterator[bytes]:
        ...


class RawPayload(UploadSource):
    """
    Single in-memory payload, forwarded whole on the first drain.

    The caller keeps ownership of the buffer; bytes are passed through
    without copying. After the first drain the payload is exhausted and
    further drains yield nothing.
    """

    def __init__(self, data: RawData):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._data = data
        self._drained = False

    @property
    def size(self) -> Optional[int]:
        return memoryview(self._data).nbytes

    @property
    def exhausted(self) -> bool:
        return self._drained

    async def drain(self) -> AsyncIterator[bytes]:
        if self._drained:
            return
        self._drained = True
        if self.size:
            yield _as_bytes(self._data)


class StreamSource(UploadSource):
    """
    Byte stream read chunk by chunk.

    Accepts a binary file object (anything with read()), a sync iterable of
    bytes, or an async iterable of bytes. Blocking read() calls run in a
    worker thread; async file objects are awaited directly.
    """

    def __init__(self, stream: Any, *, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._stream = stream
        self._chunk_size = chunk_size

    async def drain(self) -> AsyncIterator[bytes]:
        stream = self._stream
        if hasattr(stream, "read"):
            while True:
                chunk = await run_io(stream.read, self._chunk_size)
                if not chunk:
                    break
                yield _as_bytes(chunk)
        elif isinstance(stream, AsyncIterable):
            async for chunk in stream:
                if chunk:
                    yield _as_bytes(chunk)
        else:
            for chunk in stream:
                if chunk:
                    yield _as_bytes(chunk)


def _as_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, bytes):
        return chunk
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)


def as_upload_source(source: Any) -> UploadSource:
    """
    Wrap a caller-provided upload body.

    Args:
        source: An UploadSource, raw bytes/str, a binary file object, or a
            (sync or async) iterable of byte chunks

    Returns:
        An UploadSource ready to drain

    Raises:
        TypeError: If source cannot be read as bytes
    """
    if isinstance(source, UploadSource):
        return source
    if isinstance(source, (bytes, bytearray, memoryview, str)):
        return RawPayload(source)
    if hasattr(source, "read") or isinstance(source, (AsyncIterable, Iterable)):
        return StreamSource(source)
    raise TypeError(f"Cannot upload object of type {type(source).__name__}")


async def run_io(func: Callable[..., Any], *args: Any) -> Any:
    """
    Call a file-like read()/write() without blocking the event loop.

    Coroutine functions are awaited directly; blocking callables run in a
    worker thread.
    """
    if inspect.iscoroutinefunction(func):
        return await func(*args)
    result = await asyncio.to_thread(func, *args)
    if inspect.isawaitable(result):
        result = await result
    return result
