"""
HTTP(S) sources backed by aiohttp.

The request is sent on the first pull, so connection errors and non-2xx
statuses surface through the comparison like any other source failure.
"""

import logging
from typing import Any, Optional
from urllib.parse import urlparse

import aiohttp

from .config import DEFAULT_CHUNK_SIZE, DEFAULT_ENCODING
from .sources import ChunkSource, check_chunk_size


def is_url(value: str) -> bool:
    """Return True if value looks like an http(s) URL."""
    return urlparse(value).scheme.lower() in ("http", "https")


class UrlSource(ChunkSource):
    """
    Stream the body of a GET request in chunks.

    Args:
        session: Open aiohttp session (owned by the caller)
        url: URL to fetch
        chunk_size: Maximum bytes per chunk
        verify_ssl: Whether to verify TLS certificates
        encoding: Encoding for non-binary chunks
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        verify_ssl: bool = True,
        encoding: str = DEFAULT_ENCODING,
    ):
        super().__init__(encoding)
        self.session = session
        self.url = url
        self.chunk_size = check_chunk_size(chunk_size)
        self.verify_ssl = verify_ssl
        self.status: Optional[int] = None
        self._response: Optional[aiohttp.ClientResponse] = None
        self._chunks = None

    async def _open(self) -> None:
        logging.debug(f"Requesting URL: {self.url}")
        response = await self.session.get(self.url, ssl=self.verify_ssl)
        self._response = response
        self.status = response.status
        if response.status != 200:
            logging.warning(f"Non-200 response from {self.url}: {response.status}")
        response.raise_for_status()
        self._chunks = response.content.iter_chunked(self.chunk_size)

    async def _next_chunk(self) -> Any:
        if self._chunks is None:
            await self._open()
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            return None

    async def _release(self) -> None:
        if self._response is not None:
            self._response.release()
            self._response = None
