"""Utility functions for photo reconciliation."""

import glob
import psutil
from datetime import datetime
from pathlib import Path
from typing import Generator, Iterable, Optional, Tuple
import logging

from .exceptions import BadPathError

logger = logging.getLogger(__name__)


def get_file_size(file_path: Path) -> int:
    """
    Get file size in bytes.

    Args:
        file_path: Path to file

    Returns:
        File size in bytes, 0 if error
    """
    try:
        return file_path.stat().st_size
    except OSError as e:
        logger.error(f"Failed to get size for {file_path}: {e}")
        return 0


def format_bytes(bytes_value: int) -> str:
    """
    Format bytes as human-readable string.

    Args:
        bytes_value: Size in bytes

    Returns:
        Formatted string like "1.2GB"
    """
    if bytes_value == 0:
        return "0B"

    units = ['B', 'KB', 'MB', 'GB', 'TB']
    unit_index = 0
    size = float(bytes_value)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    return f"{size:.1f}{units[unit_index]}"


def get_available_space(path: Path) -> int:
    """
    Get available disk space for a path in bytes.

    Args:
        path: Path to check

    Returns:
        Available space in bytes
    """
    try:
        usage = psutil.disk_usage(str(path))
        return usage.free
    except Exception as e:
        logger.error(f"Failed to get disk space for {path}: {e}")
        return 0


def ensure_directory(path: Path) -> bool:
    """
    Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure

    Returns:
        True if directory exists or was created successfully
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
        return True
    except OSError as e:
        logger.error(f"Failed to create directory {path}: {e}")
        return False


def iter_files(directory: Path, recurse: bool = False,
               exclude_dirs: Iterable[str] = ()) -> Generator[Path, None, None]:
    """
    List files inside a directory, optionally recursively.

    Order is whatever the filesystem returns. Directories named in
    ``exclude_dirs`` are not descended into.

    Args:
        directory: Directory to list
        recurse: Descend into subdirectories
        exclude_dirs: Directory names to skip while recursing

    Yields:
        Paths of regular files
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise BadPathError(directory, "not a directory")

    excluded = set(exclude_dirs)
    for entry in directory.iterdir():
        if entry.is_file():
            yield entry
        elif recurse and entry.is_dir() and entry.name not in excluded:
            yield from iter_files(entry, recurse=True, exclude_dirs=excluded)


def expand_path_patterns(patterns: Iterable[str]) -> Generator[Tuple[str, Optional[Path], Optional[BadPathError]], None, None]:
    """
    Expand glob-style input patterns into file paths.

    Each pattern is validated on its own: a pattern that matches nothing
    produces a single ``(pattern, None, BadPathError)`` item instead of
    stopping the sequence.

    Yields:
        Tuples of (pattern, path, error) with exactly one of path/error set
    """
    for pattern in patterns:
        matches = sorted(glob.glob(str(pattern))) if glob.has_magic(str(pattern)) else [str(pattern)]
        files = [Path(m) for m in matches if Path(m).is_file()]
        if not files:
            yield pattern, None, BadPathError(pattern)
            continue
        for file_path in files:
            yield pattern, file_path, None


def get_current_timestamp():
    """Get current timestamp as ISO string."""
    return datetime.now().isoformat()
