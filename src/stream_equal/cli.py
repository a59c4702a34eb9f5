"""
Command-line interface for Stream Equal.

Provides argument parsing and CLI entry point.
"""

import argparse
import sys

from .config import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_ENCODING,
    DEFAULT_TIMEOUT,
    get_config_value,
)


class CustomHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter for prettier help output."""

    def __init__(self, prog, indent_increment=2, max_help_position=40, width=100):
        super().__init__(prog, indent_increment, max_help_position, width)

    def _format_action_invocation(self, action):
        if not action.option_strings:
            return super()._format_action_invocation(action)
        return ', '.join(action.option_strings)


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    description = """
  Check whether two streams carry exactly the same bytes.

  Both inputs are read incrementally and side by side; neither is loaded
  into memory in full. Reading stops as soon as a difference is certain.

┌─────────────────────────────────────────────────────────────────────────────┐
│  OPERANDS                                                                   │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                             │
│  Each operand may be:                                                       │
│    • a local file path                                                      │
│    • an http:// or https:// URL (streamed with a GET request)               │
│    • "-" for standard input (at most one operand)                           │
│                                                                             │
└─────────────────────────────────────────────────────────────────────────────┘
"""

    epilog = """
┌─────────────────────────────────────────────────────────────────────────────┐
│  EXAMPLES                                                                   │
└─────────────────────────────────────────────────────────────────────────────┘

  Compare two local files:
  ────────────────────────
    %(prog)s backup/data.bin data.bin

  Verify a download against a local copy:
  ───────────────────────────────────────
    %(prog)s https://example.com/release.tar.gz release.tar.gz

  Compare a pipeline's output with a reference file:
  ──────────────────────────────────────────────────
    ./export.sh | %(prog)s - expected.csv

┌─────────────────────────────────────────────────────────────────────────────┐
│  EXIT STATUS                                                                │
└─────────────────────────────────────────────────────────────────────────────┘

  0  streams are identical
  1  streams differ (content or length)
  2  an input failed, the timeout expired, or arguments were invalid
"""

    parser = argparse.ArgumentParser(
        prog='stream-equal',
        description=description,
        epilog=epilog,
        formatter_class=CustomHelpFormatter,
        add_help=False,
    )

    parser.add_argument('first', metavar='FIRST', help='First input (path, URL or "-")')
    parser.add_argument('second', metavar='SECOND', help='Second input (path, URL or "-")')

    # Help group
    help_group = parser.add_argument_group(
        '📖 Help',
        'Display help information'
    )
    help_group.add_argument(
        '-h', '--help',
        action='help',
        default=argparse.SUPPRESS,
        help='Show this help message and exit'
    )

    # Reading
    read_group = parser.add_argument_group(
        '📥 Reading',
        'How the inputs are read'
    )
    default_chunk_size = get_config_value('chunk_size', DEFAULT_CHUNK_SIZE)
    read_group.add_argument(
        '--chunk-size', '-b',
        type=_positive_int,
        default=default_chunk_size,
        metavar='BYTES',
        help=f'Bytes requested per read from each input.\n'
             f'(default: {default_chunk_size})'
    )
    read_group.add_argument(
        '--first-chunk-size',
        type=_positive_int,
        default=None,
        metavar='BYTES',
        help='Read size for the first input only.\n'
             '(default: --chunk-size)'
    )
    read_group.add_argument(
        '--second-chunk-size',
        type=_positive_int,
        default=None,
        metavar='BYTES',
        help='Read size for the second input only.\n'
             '(default: --chunk-size)'
    )
    read_group.add_argument(
        '--encoding', '-e',
        type=str,
        default=get_config_value('encoding', DEFAULT_ENCODING),
        metavar='ENC',
        help=f'Encoding applied to text read from the inputs.\n'
             f'(default: {DEFAULT_ENCODING})'
    )

    # Network
    net_group = parser.add_argument_group(
        '🌐 Network',
        'Settings for URL inputs and the overall deadline'
    )
    net_group.add_argument(
        '--timeout', '-t',
        type=int,
        default=get_config_value('timeout', DEFAULT_TIMEOUT),
        metavar='SECS',
        help=f'Give up after this many seconds (0 = never).\n'
             f'(default: {DEFAULT_TIMEOUT} = 15 minutes)'
    )
    net_group.add_argument(
        '--insecure', '-k',
        action='store_true',
        help='Skip TLS certificate verification for URL inputs.'
    )

    # Debugging
    debug_group = parser.add_argument_group(
        '🔍 Debugging',
        'Options for troubleshooting and verbose output'
    )
    debug_group.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose/debug output.\n'
             'Shows chunk sizes, byte counts and timing info.'
    )

    return parser


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    from .main import run_main

    parser = create_parser()
    args = parser.parse_args(argv)
    return run_main(args)


if __name__ == "__main__":
    sys.exit(main())
