# mediadrive/config.py - Storage config file reading and atomic writing
"""
SINGLE SOURCE OF TRUTH for storage config file I/O.

This module provides:
- Atomic config file writes (temp file + fsync + replace)
- Forgiving config reads (absent or corrupt file -> empty mapping)

The whole file is always rewritten; there is no partial patching. Readers
never observe a half-written file because the final step is a single
os.replace() of the complete temp file.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from mediadrive.constants import FileNames

_config_logger = logging.getLogger("MediaDrive.config")


# =============================================================================
# Atomic Config Write
# =============================================================================


def write_config_atomic(config_path: Path, config: Dict[str, Any]) -> None:
    """
    Write configuration to file atomically.

    Uses write-to-temp + replace strategy to prevent partial writes.

    Args:
        config_path: Path to the config file
        config: Configuration dictionary to write

    Raises:
        OSError: If write fails
        TypeError: If config is not JSON serializable
    """
    config_path = Path(config_path)

    # Create parent directory if needed
    config_path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = None

    try:
        # Temp file in same directory (ensures same filesystem for replace)
        temp_fd, temp_path_str = tempfile.mkstemp(
            suffix=FileNames.ATOMIC_SUFFIX,
            prefix=FileNames.ATOMIC_PREFIX,
            dir=str(config_path.parent),
        )
        os.close(temp_fd)  # Close fd, we'll use open() instead for testability
        temp_path = Path(temp_path_str)

        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())

        # os.replace overwrites atomically on Windows and POSIX
        os.replace(temp_path, config_path)
        temp_path = None

        _config_logger.info(f"Config written atomically to {config_path}")

    finally:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass


# =============================================================================
# Forgiving Config Read
# =============================================================================


def read_config(config_path: Path) -> Dict[str, Any]:
    """
    Read a JSON config mapping.

    Absence or corruption of the file means "nothing configured": the
    caller always rewrites the file from its merged source of truth, so an
    empty mapping here never causes silent data loss on its own.

    Args:
        config_path: Path to the config file

    Returns:
        Parsed mapping, or {} if the file is absent, unreadable or not a JSON object
    """
    config_path = Path(config_path)

    if not config_path.exists():
        _config_logger.debug(f"No config file at {config_path}")
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        _config_logger.warning(f"Ignoring unreadable config {config_path}: {e}")
        return {}

    if not isinstance(data, dict):
        _config_logger.warning(
            f"Ignoring config {config_path}: expected an object, got {type(data).__name__}"
        )
        return {}

    return data
