"""
Streaming equality check for two chunked sources.

This module provides a comparer that:
- Pulls from two sources without buffering either one in full
- Always reads from the side that is behind, so surplus data is held by
  at most one side at a time
- Aligns chunks of different sizes and compares only overlapping bytes
- Stops reading the moment a mismatch or length difference is certain
- Passes source failures through to the caller unchanged
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import DEFAULT_CHUNK_SIZE, DEFAULT_ENCODING
from .sources import ChunkSource, as_source


@dataclass
class Cursor:
    """Per-side read state."""

    name: str
    source: ChunkSource
    pending_tail: bytes = b""  # read but not yet matched against the peer
    position: int = 0
    exhausted: bool = False


class StreamComparer:
    """
    Decides whether two sources produce the same bytes.

    Each side has at most one pull outstanding. Completed pulls are applied
    one at a time, in first/second order when both finish together, and no
    await happens while a chunk is being applied. Once a verdict or failure
    is reached, outstanding pulls are cancelled and both sources are
    released exactly once. A comparer instance runs a single comparison.

    Example:
        >>> comparer = StreamComparer(as_source("a.bin"), as_source("b.bin"))
        >>> equal = await comparer.compare()

    Args:
        first: Source for the first stream
        second: Source for the second stream
    """

    def __init__(self, first: ChunkSource, second: ChunkSource):
        self.first = Cursor("first", first)
        self.second = Cursor("second", second)
        self.bytes_compared = 0

        self._pulls: Dict[str, asyncio.Task] = {}
        self._verdict: Optional[bool] = None
        self._started = False
        self._finished = False

    @property
    def verdict(self) -> Optional[bool]:
        return self._verdict

    @property
    def finished(self) -> bool:
        return self._finished

    def _peer(self, cursor: Cursor) -> Cursor:
        return self.second if cursor is self.first else self.first

    async def compare(self) -> bool:
        """
        Run the comparison to completion.

        Returns:
            True if both sources produced identical content and length

        Raises:
            RuntimeError: If the comparer has already been used
            Exception: Whatever either source raised, unchanged
        """
        if self._started:
            raise RuntimeError("StreamComparer instances are single-use")
        self._started = True
        logging.debug("Starting stream comparison")

        try:
            # Both sides start level, so read from both
            self._request(self.first)
            self._request(self.second)

            while self._verdict is None:
                if not self._pulls:
                    raise RuntimeError("Comparison stalled with no outstanding reads")
                done, _ = await asyncio.wait(
                    set(self._pulls.values()), return_when=asyncio.FIRST_COMPLETED
                )
                for cursor in (self.first, self.second):
                    if self._verdict is not None:
                        break
                    task = self._pulls.get(cursor.name)
                    if task is None or task not in done:
                        continue
                    del self._pulls[cursor.name]
                    data = task.result()
                    if data is None:
                        self._on_exhausted(cursor)
                    else:
                        self._on_data(cursor, data)

            logging.debug(
                f"Comparison finished: equal={self._verdict}, "
                f"first={self.first.position} bytes, second={self.second.position} bytes"
            )
            return self._verdict
        finally:
            await self._teardown()

    def _request(self, cursor: Cursor) -> None:
        """Start a pull on the cursor unless one is running or it has ended."""
        if self._finished or self._verdict is not None:
            return
        if cursor.exhausted or cursor.name in self._pulls:
            return
        self._pulls[cursor.name] = asyncio.ensure_future(cursor.source.pull())

    def _finalize(self, verdict: bool) -> None:
        if self._verdict is None:
            self._verdict = verdict

    def _on_data(self, cursor: Cursor, data: bytes) -> None:
        peer = self._peer(cursor)
        new_pos = cursor.position + len(data)

        if cursor.position < peer.position:
            # The peer's tail covers exactly the bytes this side has yet to see
            overlap = min(len(data), len(peer.pending_tail))
            if data[:overlap] != peer.pending_tail[:overlap]:
                logging.debug(f"Content mismatch between {cursor.name} and {peer.name}")
                self._finalize(False)
                return
            self.bytes_compared += overlap
            cursor.pending_tail = data[overlap:]
            peer.pending_tail = peer.pending_tail[overlap:]
        else:
            cursor.pending_tail += data

        cursor.position = new_pos

        if new_pos > peer.position:
            if peer.exhausted:
                logging.debug(f"{cursor.name} continues past the end of {peer.name}")
                self._finalize(False)
                return
            self._request(peer)
        elif new_pos == peer.position:
            # Either side may be at its end now
            self._request(cursor)
            self._request(peer)
        else:
            self._request(cursor)

    def _on_exhausted(self, cursor: Cursor) -> None:
        peer = self._peer(cursor)
        cursor.exhausted = True

        if peer.exhausted:
            self._finalize(cursor.position == peer.position)
        elif cursor.position < peer.position:
            logging.debug(
                f"{cursor.name} ended at {cursor.position} bytes, "
                f"{peer.name} already has {peer.position}"
            )
            self._finalize(False)
        else:
            self._request(peer)

    async def _teardown(self) -> None:
        """Cancel outstanding reads and release both sources, once."""
        if self._finished:
            return
        self._finished = True

        pending = list(self._pulls.values())
        self._pulls.clear()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        cursors = (self.first, self.second)
        for cursor in cursors:
            cursor.pending_tail = b""
        # Both sides are released even if one release fails
        results = await asyncio.gather(
            *(cursor.source.aclose() for cursor in cursors), return_exceptions=True
        )
        for cursor, result in zip(cursors, results):
            if isinstance(result, Exception):
                logging.warning(
                    f"Failed to release {cursor.name} source: {type(result).__name__}: {result}"
                )

    def stats(self) -> Dict[str, Any]:
        """Summary of the last run, for logging."""
        return {
            "equal": self._verdict,
            "bytes_compared": self.bytes_compared,
            "first_position": self.first.position,
            "second_position": self.second.position,
            "first_exhausted": self.first.exhausted,
            "second_exhausted": self.second.exhausted,
        }


async def stream_equal(
    first: Any,
    second: Any,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    encoding: str = DEFAULT_ENCODING,
) -> bool:
    """
    Check whether two producers emit identical content.

    Producers can be paths, file objects, stream readers, aiohttp
    responses, (async) iterables of chunks or records, or ChunkSource
    instances. See sources.as_source for the exact rules.

    Args:
        first: First producer
        second: Second producer
        chunk_size: Read size for file-like and reader producers
        encoding: Encoding for text and structured chunks

    Returns:
        True if both produce the same bytes, False otherwise
    """
    comparer = StreamComparer(
        as_source(first, chunk_size, encoding),
        as_source(second, chunk_size, encoding),
    )
    return await comparer.compare()
