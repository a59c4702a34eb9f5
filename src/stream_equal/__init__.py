"""Stream Equal - Streaming equality check for two data sources."""

from .comparer import Cursor, StreamComparer, stream_equal
from .remote import UrlSource, is_url
from .sources import (
    AsyncIterableSource,
    ChunkSource,
    FileSource,
    IterableSource,
    PushSource,
    ResponseSource,
    StreamReaderSource,
    as_source,
    normalize_chunk,
)

__all__ = [
    "stream_equal",
    "StreamComparer",
    "Cursor",
    "ChunkSource",
    "IterableSource",
    "AsyncIterableSource",
    "StreamReaderSource",
    "FileSource",
    "PushSource",
    "ResponseSource",
    "UrlSource",
    "as_source",
    "normalize_chunk",
    "is_url",
]
