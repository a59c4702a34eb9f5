"""
Pytest configuration and shared fixtures.
"""

import asyncio
from typing import Iterable, List

import pytest

from stream_equal.sources import IterableSource, PushSource


# 10 KiB of non-repeating-looking bytes
SAMPLE_PAYLOAD = bytes((i * 37 + i // 256) % 256 for i in range(10240))


class RecordingSource(IterableSource):
    """IterableSource that remembers how often it was released."""

    def __init__(self, chunks: Iterable, encoding: str = "utf-8"):
        super().__init__(chunks, encoding)
        self.close_calls = 0

    async def aclose(self) -> None:
        self.close_calls += 1
        await super().aclose()


class BrokenReleaseSource(RecordingSource):
    """RecordingSource whose release always fails."""

    async def _release(self) -> None:
        raise OSError("close failed")


class RecordingPushSource(PushSource):
    """PushSource that remembers how often it was released."""

    def __init__(self, encoding: str = "utf-8"):
        super().__init__(encoding)
        self.close_calls = 0

    async def aclose(self) -> None:
        self.close_calls += 1
        await super().aclose()


def split(data: bytes, size: int) -> List[bytes]:
    """Split data into pieces of at most size bytes."""
    return [data[i:i + size] for i in range(0, len(data), size)]


async def feed(source: PushSource, pieces: Iterable) -> None:
    """Write pieces to a push source one event-loop turn apart, then end it."""
    for piece in pieces:
        source.write(piece)
        await asyncio.sleep(0)
    source.end()


@pytest.fixture
def sample_payload() -> bytes:
    """Binary payload shared by file-based tests."""
    return SAMPLE_PAYLOAD


@pytest.fixture
def sample_file(tmp_path, sample_payload):
    """Path to a file holding sample_payload."""
    path = tmp_path / "sample.bin"
    path.write_bytes(sample_payload)
    return path


@pytest.fixture
def text_file(tmp_path):
    """Path to a UTF-8 text file with multi-byte characters."""
    path = tmp_path / "sample.txt"
    path.write_text("naïve café – déjà vu\n" * 200, encoding="utf-8")
    return path
