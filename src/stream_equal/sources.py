"""
Pull-based source adapters.

Every producer handed to the comparer is wrapped in a ChunkSource that:
- Yields non-empty byte chunks one at a time on pull()
- Returns None once the producer is exhausted (and keeps doing so)
- Raises the producer's own exception on failure, unwrapped
- Normalizes text and structured records to bytes
- Allows at most one outstanding pull() at a time
"""

import asyncio
import dataclasses
import inspect
import io
import json
import logging
import os
from collections import deque
from typing import Any, AsyncIterator, Deque, Iterable, Iterator, Optional, Union

import aiohttp

from .config import DEFAULT_CHUNK_SIZE, DEFAULT_ENCODING


def check_chunk_size(chunk_size: int) -> int:
    """Reject read sizes that a reader would treat as EOF or read-to-end."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size!r}")
    return chunk_size


def normalize_chunk(value: Any, encoding: str = DEFAULT_ENCODING) -> bytes:
    """
    Convert a chunk emitted by a producer into bytes.

    Binary chunks pass through. Text is encoded. Structured records
    (dicts, lists, tuples, dataclass instances) are serialized to compact
    JSON, keeping key order. Any other value is stringified first.

    Args:
        value: Chunk or record produced by a source
        encoding: Text encoding to apply

    Returns:
        Byte representation of the chunk
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode(encoding)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    if isinstance(value, (dict, list, tuple)):
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
        return text.encode(encoding)
    return str(value).encode(encoding)


class ChunkSource:
    """
    Base class for pull-based chunk producers.

    Subclasses implement _next_chunk(), returning the next raw chunk or
    None at end of stream. pull() takes care of normalization, skipping
    empty chunks, the exhausted latch and the single in-flight guard.

    Args:
        encoding: Text encoding for non-binary chunks
    """

    def __init__(self, encoding: str = DEFAULT_ENCODING):
        self.encoding = encoding
        self.exhausted = False
        self.pull_count = 0
        self._pulling = False
        self._closed = False

    async def _next_chunk(self) -> Any:
        raise NotImplementedError

    async def pull(self) -> Optional[bytes]:
        """
        Fetch the next non-empty chunk.

        Returns:
            The next chunk as bytes, or None if the source is exhausted

        Raises:
            RuntimeError: If another pull() is still outstanding
        """
        if self._pulling:
            raise RuntimeError(f"{type(self).__name__}: pull() already in progress")
        if self.exhausted:
            return None

        self._pulling = True
        self.pull_count += 1
        try:
            while True:
                raw = await self._next_chunk()
                if raw is None:
                    self.exhausted = True
                    return None
                data = normalize_chunk(raw, self.encoding)
                if data:
                    return data
                # Empty chunk: nothing to report yet, wait for the next one
        finally:
            self._pulling = False

    async def _release(self) -> None:
        """Release resources opened by the adapter itself."""

    async def aclose(self) -> None:
        """Release the adapter. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._release()


class IterableSource(ChunkSource):
    """Adapter over a synchronous iterable of chunks or records."""

    def __init__(self, iterable: Iterable[Any], encoding: str = DEFAULT_ENCODING):
        super().__init__(encoding)
        self._iterator: Iterator[Any] = iter(iterable)

    async def _next_chunk(self) -> Any:
        try:
            return next(self._iterator)
        except StopIteration:
            return None


class AsyncIterableSource(ChunkSource):
    """Adapter over an async iterator or async generator."""

    def __init__(self, iterable, encoding: str = DEFAULT_ENCODING):
        super().__init__(encoding)
        self._iterator: AsyncIterator[Any] = iterable.__aiter__()

    async def _next_chunk(self) -> Any:
        try:
            return await self._iterator.__anext__()
        except StopAsyncIteration:
            return None


class StreamReaderSource(ChunkSource):
    """
    Adapter over a reader exposing ``async read(n)``.

    Works with asyncio.StreamReader and aiohttp's StreamReader; an empty
    read marks the end of the stream.
    """

    def __init__(self, reader, chunk_size: int = DEFAULT_CHUNK_SIZE, encoding: str = DEFAULT_ENCODING):
        super().__init__(encoding)
        self._reader = reader
        self.chunk_size = check_chunk_size(chunk_size)

    async def _next_chunk(self) -> Any:
        data = await self._reader.read(self.chunk_size)
        if not data:
            return None
        return data


class FileSource(ChunkSource):
    """
    Adapter over a local file, read in fixed-size blocks.

    Blocking reads run in a worker thread so the event loop keeps
    servicing the other side. When given a path, the file is opened
    lazily on the first pull, so a missing file surfaces as
    FileNotFoundError before any chunk is produced. Files opened here are
    closed on aclose(); file objects passed in are left open.

    Args:
        file: Path or open file object (binary or text)
        chunk_size: Bytes (or characters, for text files) per read
        encoding: Encoding for text-mode file objects
    """

    def __init__(
        self,
        file: Union[str, "os.PathLike[str]", io.IOBase],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        encoding: str = DEFAULT_ENCODING,
    ):
        super().__init__(encoding)
        self.chunk_size = check_chunk_size(chunk_size)
        if isinstance(file, (str, os.PathLike)):
            self.path: Optional[str] = os.fspath(file)
            self._file = None
            self._owns_file = True
        else:
            self.path = getattr(file, "name", None)
            self._file = file
            self._owns_file = False

    async def _next_chunk(self) -> Any:
        if self._file is None:
            self._file = await asyncio.to_thread(open, self.path, 'rb')
            logging.debug(f"Opened {self.path} for streaming")
        data = await asyncio.to_thread(self._file.read, self.chunk_size)
        if not data:
            return None
        return data

    async def _release(self) -> None:
        if self._owns_file and self._file is not None:
            self._file.close()
        self._file = None


class PushSource(ChunkSource):
    """
    Adapter for push-style producers.

    The producer calls write() for each chunk, then end() or fail(). A
    pull() on an empty buffer waits until more data, the end, or a
    failure arrives.

    Example:
        >>> source = PushSource()
        >>> source.write(b"abc")
        >>> source.end()
        >>> await source.pull()
        b'abc'
    """

    def __init__(self, encoding: str = DEFAULT_ENCODING):
        super().__init__(encoding)
        self._buffer: Deque[Any] = deque()
        self._ended = False
        self._error: Optional[BaseException] = None
        self._readable = asyncio.Event()

    def write(self, chunk: Any) -> None:
        if self._ended:
            raise RuntimeError("write() after end()")
        self._buffer.append(chunk)
        self._readable.set()

    def end(self) -> None:
        self._ended = True
        self._readable.set()

    def fail(self, error: BaseException) -> None:
        self._error = error
        self._ended = True
        self._readable.set()

    @property
    def ended(self) -> bool:
        return self._ended

    async def _next_chunk(self) -> Any:
        while True:
            if self._buffer:
                return self._buffer.popleft()
            if self._error is not None:
                raise self._error
            if self._ended:
                return None
            # Re-arm for the next "readable" notification
            self._readable.clear()
            await self._readable.wait()


class ResponseSource(ChunkSource):
    """
    Adapter over an open aiohttp response body.

    The response is released (returned to the connection pool) on
    aclose(); closing the session stays with the caller.
    """

    def __init__(
        self,
        response: aiohttp.ClientResponse,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        encoding: str = DEFAULT_ENCODING,
    ):
        super().__init__(encoding)
        self.response = response
        self._chunks = response.content.iter_chunked(check_chunk_size(chunk_size))

    async def _next_chunk(self) -> Any:
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            return None

    async def _release(self) -> None:
        self.response.release()


def as_source(
    producer: Any,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    encoding: str = DEFAULT_ENCODING,
) -> ChunkSource:
    """
    Wrap an arbitrary producer in the matching ChunkSource.

    Accepted producers, in order of precedence:
        - ChunkSource instances (returned unchanged)
        - str or os.PathLike (treated as a file path)
        - objects with an ``async read(n)`` method (stream readers)
        - objects with a ``read`` method (file objects)
        - async iterables
        - other iterables (excluding bytes-like and mappings)

    Raises:
        TypeError: If the producer matches none of the shapes above
        ValueError: If chunk_size is not positive
    """
    check_chunk_size(chunk_size)
    if isinstance(producer, ChunkSource):
        return producer
    if isinstance(producer, (str, os.PathLike)):
        return FileSource(producer, chunk_size, encoding)
    if isinstance(producer, aiohttp.ClientResponse):
        return ResponseSource(producer, chunk_size, encoding)
    read = getattr(producer, "read", None)
    if read is not None and inspect.iscoroutinefunction(read):
        return StreamReaderSource(producer, chunk_size, encoding)
    if read is not None and callable(read):
        return FileSource(producer, chunk_size, encoding)
    if hasattr(producer, "__aiter__"):
        return AsyncIterableSource(producer, encoding)
    if isinstance(producer, (bytes, bytearray, memoryview, dict)):
        raise TypeError(
            f"Cannot stream a bare {type(producer).__name__}; wrap it in a list of chunks"
        )
    if hasattr(producer, "__iter__"):
        return IterableSource(producer, encoding)
    raise TypeError(f"Unsupported producer type: {type(producer).__name__}")
