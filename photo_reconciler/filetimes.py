"""Filesystem timestamps: reading file records and rewriting created/modified times."""

import os
import shutil
import subprocess
import sys
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class FileRecord:
    """Timestamps and naming for one file. Identity is the path."""
    path: Path
    created_time: datetime
    modified_time: datetime
    accessed_time: datetime
    captured_time: Optional[datetime] = None

    @property
    def base_name(self) -> str:
        """File name without extension."""
        return self.path.stem

    @property
    def extension(self) -> str:
        """Extension including the dot, as found on disk."""
        return self.path.suffix

    @property
    def name(self) -> str:
        return self.path.name


def _created_timestamp(stat_result: os.stat_result) -> float:
    # st_birthtime exists on macOS/BSD (and Windows on 3.12+); st_ctime is
    # the creation time on older Windows builds and the closest thing elsewhere.
    birthtime = getattr(stat_result, 'st_birthtime', None)
    if birthtime is not None:
        return birthtime
    return stat_result.st_ctime


def get_created_time(path: Union[str, Path]) -> datetime:
    return datetime.fromtimestamp(_created_timestamp(os.stat(path)))


def get_modified_time(path: Union[str, Path]) -> datetime:
    return datetime.fromtimestamp(os.stat(path).st_mtime)


def read_file_record(path: Union[str, Path]) -> FileRecord:
    """
    Build a FileRecord from a stat of the file.

    Args:
        path: File to stat

    Returns:
        FileRecord without a captured time (filled in by callers that need it)
    """
    path = Path(path)
    stat_result = path.stat()
    return FileRecord(
        path=path,
        created_time=datetime.fromtimestamp(_created_timestamp(stat_result)),
        modified_time=datetime.fromtimestamp(stat_result.st_mtime),
        accessed_time=datetime.fromtimestamp(stat_result.st_atime),
    )


def restore_times(path: Union[str, Path], stat_result: os.stat_result) -> None:
    """Put back accessed/modified times captured by an earlier stat."""
    os.utime(path, ns=(stat_result.st_atime_ns, stat_result.st_mtime_ns))


def _set_created_time_windows(path: Path, created: datetime) -> None:
    import ctypes
    from ctypes import wintypes

    # FILETIME counts 100ns intervals since 1601-01-01
    intervals = int((created.timestamp() + 11644473600) * 10_000_000)
    filetime = wintypes.FILETIME(intervals & 0xFFFFFFFF, intervals >> 32)

    kernel32 = ctypes.windll.kernel32
    kernel32.CreateFileW.restype = wintypes.HANDLE
    handle = kernel32.CreateFileW(
        str(path), 0x100,  # FILE_WRITE_ATTRIBUTES
        0x1 | 0x2 | 0x4, None, 3,  # share all, OPEN_EXISTING
        0x02000000, None,  # FILE_FLAG_BACKUP_SEMANTICS
    )
    if handle == wintypes.HANDLE(-1).value:
        raise ctypes.WinError()
    try:
        if not kernel32.SetFileTime(handle, ctypes.byref(filetime), None, None):
            raise ctypes.WinError()
    finally:
        kernel32.CloseHandle(handle)


def _set_created_time_macos(path: Path, created: datetime) -> None:
    setfile = shutil.which('SetFile')
    if setfile is None:
        raise OSError("SetFile not available (install Xcode command line tools)")
    try:
        subprocess.run(
            [setfile, '-d', created.strftime('%m/%d/%Y %H:%M:%S'), str(path)],
            check=True, capture_output=True, text=True, timeout=30,
        )
    except subprocess.SubprocessError as e:
        raise OSError(f"SetFile failed for {path}: {e}") from e


def set_created_time(path: Union[str, Path], created: datetime) -> bool:
    """
    Set the filesystem created (birth) time of a file.

    Returns:
        True if written, False when the platform has no settable birth time
    """
    path = Path(path)
    if sys.platform == 'win32':
        _set_created_time_windows(path, created)
        return True
    if sys.platform == 'darwin':
        _set_created_time_macos(path, created)
        return True

    logger.debug(f"Created time is not settable on {sys.platform}, skipping {path}")
    return False
