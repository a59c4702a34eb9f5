"""
Main execution logic for Stream Equal.

Opens the two operands given on the command line (local files, stdin or
http(s) URLs), runs the comparison under an overall timeout, logs the
outcome and maps it to an exit status.
"""

import asyncio
import logging
import sys
from datetime import datetime

import aiohttp

from .comparer import StreamComparer
from .config import CompareConfig, FetchConfig, RuntimeConfig
from .remote import UrlSource, is_url
from .sources import ChunkSource, FileSource

EXIT_EQUAL = 0
EXIT_DIFFERENT = 1
EXIT_ERROR = 2

STDIN_OPERAND = "-"


def open_operand(
    operand: str,
    session: aiohttp.ClientSession,
    chunk_size: int,
    config: RuntimeConfig,
) -> ChunkSource:
    """
    Build the source for one command-line operand.

    Args:
        operand: File path, "-" for stdin, or an http(s) URL
        session: Session used for URL operands
        chunk_size: Read size for this side
        config: Runtime configuration

    Returns:
        A ChunkSource that has not been read from yet
    """
    encoding = config.compare.encoding
    if operand == STDIN_OPERAND:
        return FileSource(sys.stdin.buffer, chunk_size, encoding)
    if is_url(operand):
        return UrlSource(
            session,
            operand,
            chunk_size=chunk_size,
            verify_ssl=config.fetch.verify_ssl,
            encoding=encoding,
        )
    return FileSource(operand, chunk_size, encoding)


async def run_compare(first: str, second: str, config: RuntimeConfig) -> bool:
    """
    Compare two operands.

    Args:
        first: First operand
        second: Second operand
        config: Runtime configuration

    Returns:
        True if both operands have identical content

    Raises:
        asyncio.TimeoutError: If the comparison exceeds config.timeout
        Exception: Any failure reported by either source, unchanged
    """
    if first == STDIN_OPERAND and second == STDIN_OPERAND:
        raise ValueError("Only one operand may read from stdin")

    first_size, second_size = config.compare.chunk_sizes()
    logging.info(f"Comparing streams:\n  First:  {first}\n  Second: {second}")
    logging.debug(f"Chunk sizes: first={first_size}, second={second_size}")

    async with aiohttp.ClientSession() as session:
        comparer = StreamComparer(
            open_operand(first, session, first_size, config),
            open_operand(second, session, second_size, config),
        )
        start_time = datetime.now()
        # 0 or less disables the deadline
        timeout = config.timeout if config.timeout and config.timeout > 0 else None
        equal = await asyncio.wait_for(comparer.compare(), timeout=timeout)
        duration = (datetime.now() - start_time).total_seconds()

    stats = comparer.stats()
    logging.debug(f"Comparison stats: {stats}")
    logging.info(f"Runtime: {duration:.2f}s")
    return equal


def build_config(args) -> RuntimeConfig:
    """Create the runtime configuration from parsed arguments."""
    compare = CompareConfig(
        chunk_size=args.chunk_size,
        first_chunk_size=args.first_chunk_size,
        second_chunk_size=args.second_chunk_size,
        encoding=args.encoding,
    )
    fetch = FetchConfig(verify_ssl=not args.insecure)
    return RuntimeConfig(
        compare=compare,
        fetch=fetch,
        timeout=args.timeout,
        verbose=args.verbose,
    )


def run_main(args) -> int:
    """
    Main entry point for a parsed command line.

    Args:
        args: Parsed command line arguments

    Returns:
        Process exit status
    """
    return asyncio.run(_async_main(args))


async def _async_main(args) -> int:
    """Async main function."""
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s %(levelname)s: %(message)s'
    )

    try:
        config = build_config(args)
        equal = await run_compare(args.first, args.second, config)
    except asyncio.TimeoutError:
        logging.error(f"Timed out after {args.timeout}s")
        return EXIT_ERROR
    except Exception as e:
        logging.error(f"Error comparing streams: {type(e).__name__}: {e}")
        return EXIT_ERROR

    if equal:
        logging.info("Result: streams are identical")
        return EXIT_EQUAL
    logging.info("Result: streams differ")
    return EXIT_DIFFERENT

