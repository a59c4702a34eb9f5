"""
Configuration and constants for Stream Equal.

All configurable values are centralized here for easy customization.
Users can create a local config file (.stream-equal.json) to override defaults.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


# ============================================================================
# DEFAULT VALUES
# ============================================================================

# Bytes requested per read from file and HTTP sources
DEFAULT_CHUNK_SIZE: int = 65536

# Encoding used to turn text chunks into bytes
DEFAULT_ENCODING: str = "utf-8"

# Overall timeout for a CLI comparison in seconds (15 minutes)
DEFAULT_TIMEOUT: int = 900

# Local config file name (should be gitignored)
LOCAL_CONFIG_FILENAME: str = ".stream-equal.json"


def find_local_config(start: Optional[Path] = None) -> Optional[Path]:
    """
    Search for local config file in the start directory and its parents.

    Args:
        start: Directory to start from (defaults to the current directory)

    Returns:
        Path to config file if found, None otherwise
    """
    current = start or Path.cwd()

    # Check current directory and parents up to home or root
    for directory in [current] + list(current.parents):
        config_path = directory / LOCAL_CONFIG_FILENAME
        if config_path.exists():
            return config_path
        # Stop at home directory
        if directory == Path.home():
            break

    return None


def load_local_config(start: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from local .stream-equal.json file.

    Returns:
        Dictionary of configuration values, empty dict if no config found
    """
    config_path = find_local_config(start)
    if config_path is None:
        return {}

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            logging.warning(f"Ignoring {config_path}: top-level value is not an object")
            return {}
    except (json.JSONDecodeError, IOError) as e:
        logging.warning(f"Error loading {config_path}: {e}")
        return {}


# Load local config once at module import
_LOCAL_CONFIG: Dict[str, Any] = load_local_config()


def get_config_value(key: str, default: Any = None) -> Any:
    """Get a config value, checking local config first."""
    return _LOCAL_CONFIG.get(key, default)


def _positive(name: str, value: int) -> int:
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return value


@dataclass
class CompareConfig:
    """Configuration for a single comparison."""

    chunk_size: int = field(
        default_factory=lambda: get_config_value("chunk_size", DEFAULT_CHUNK_SIZE)
    )
    first_chunk_size: Optional[int] = None  # None = use chunk_size
    second_chunk_size: Optional[int] = None
    encoding: str = field(
        default_factory=lambda: get_config_value("encoding", DEFAULT_ENCODING)
    )

    def __post_init__(self) -> None:
        _positive("chunk_size", self.chunk_size)
        if self.first_chunk_size is not None:
            _positive("first_chunk_size", self.first_chunk_size)
        if self.second_chunk_size is not None:
            _positive("second_chunk_size", self.second_chunk_size)

    def chunk_sizes(self) -> tuple:
        """Return the effective (first, second) read sizes."""
        return (
            self.first_chunk_size or self.chunk_size,
            self.second_chunk_size or self.chunk_size,
        )


@dataclass
class FetchConfig:
    """Configuration for HTTP(S) sources."""

    verify_ssl: bool = field(
        default_factory=lambda: get_config_value("verify_ssl", True)
    )


@dataclass
class RuntimeConfig:
    """Runtime configuration combining all settings."""

    compare: CompareConfig = field(default_factory=CompareConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)

    timeout: int = field(
        default_factory=lambda: get_config_value("timeout", DEFAULT_TIMEOUT)
    )
    verbose: bool = False
