"""Embedded capture-time metadata: reading with exifread/exiftool, writing with exiftool."""

import shutil
import string
import subprocess
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import exifread

from .config import Config
from .exceptions import ExternalCapabilityFailure, TimestampParseError

logger = logging.getLogger(__name__)

EXIF_DATE_TAGS = ('EXIF DateTimeOriginal', 'EXIF DateTimeDigitized', 'Image DateTime')

# Raw values are cut to this many characters before filtering.
RAW_VALUE_LIMIT = 21

CAPTURE_TIME_FORMATS = (
    '%Y:%m:%d %H:%M:%S',
    '%Y:%m:%d %H:%M',
    '%Y/%m/%d %H:%M:%S',
    '%Y/%m/%d %H:%M',
    '%m/%d/%Y %H:%M:%S',
    '%m/%d/%Y %H:%M',
    '%Y:%m:%d',
)

_KEPT_PUNCTUATION = set(string.digits) | {'/', ':'}


def sanitize_capture_time(raw_value: str) -> str:
    """
    Strip artifacts (zero-width marks, control characters) from a raw capture time.

    Only digits, whitespace, ``/`` and ``:`` from the first 21 characters
    survive; runs of whitespace collapse to one space.
    """
    kept = ''.join(
        ch for ch in raw_value[:RAW_VALUE_LIMIT]
        if ch in _KEPT_PUNCTUATION or ch.isspace()
    )
    return ' '.join(kept.split())


def parse_capture_time(raw_value: str, path: Union[str, Path] = '') -> Optional[datetime]:
    """
    Sanitize and parse a raw capture-time string.

    Args:
        raw_value: Value as returned by the metadata reader
        path: File the value belongs to, for error messages

    Returns:
        Parsed datetime, or None when the value carries no digits at all

    Raises:
        TimestampParseError: sanitized value does not parse
    """
    sanitized = sanitize_capture_time(raw_value)
    # Placeholder values such as "    :  :     :  :  " mean no capture time was recorded
    if not any(ch.isdigit() for ch in sanitized):
        return None

    for fmt in CAPTURE_TIME_FORMATS:
        try:
            return datetime.strptime(sanitized, fmt)
        except ValueError:
            continue

    raise TimestampParseError(path, raw_value, sanitized)


class MetadataReader:
    """Reads and writes the embedded capture time of media files."""

    def __init__(self, config: Optional[Config] = None):
        config = config or Config()
        self.exiftool = config.get_exiftool_path()
        self.timeout = config.get_metadata_timeout()
        self._exiftool_available: Optional[bool] = None

    def has_exiftool(self) -> bool:
        """Check (once) whether exiftool can be run."""
        if self._exiftool_available is None:
            self._exiftool_available = shutil.which(self.exiftool) is not None
            if not self._exiftool_available:
                logger.debug(f"exiftool not found at {self.exiftool!r}")
        return self._exiftool_available

    def _read_with_exifread(self, path: Path) -> Optional[str]:
        try:
            with open(path, 'rb') as f:
                tags = exifread.process_file(f, stop_tag='DateTimeDigitized', details=False)
        except Exception as e:
            raise ExternalCapabilityFailure(f"exifread failed for {path}: {e}") from e

        for tag_name in EXIF_DATE_TAGS:
            tag = tags.get(tag_name)
            if tag is not None and str(tag).strip():
                return str(tag)
        return None

    def _read_with_exiftool(self, path: Path) -> Optional[str]:
        cmd = [self.exiftool, '-s3', '-d', '%Y:%m:%d %H:%M:%S', '-DateTimeOriginal', str(path)]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ExternalCapabilityFailure(f"exiftool failed for {path}: {e}") from e

        if result.returncode != 0:
            raise ExternalCapabilityFailure(
                f"exiftool failed for {path}: returncode={result.returncode}, stderr={result.stderr.strip()}"
            )
        return result.stdout.strip() or None

    def read_raw_capture_time(self, path: Union[str, Path]) -> Optional[str]:
        """
        Return the raw embedded capture-time string, or None if the file has none.

        Raises:
            ExternalCapabilityFailure: the reader failed on this file
        """
        path = Path(path)
        raw = self._read_with_exifread(path)
        if raw is None and self.has_exiftool():
            raw = self._read_with_exiftool(path)
        return raw

    def try_get_capture_time(self, path: Union[str, Path]) -> Optional[datetime]:
        """
        Read and parse the capture time.

        Raises:
            ExternalCapabilityFailure: the reader failed on this file
            TimestampParseError: the value is present but unparseable
        """
        raw = self.read_raw_capture_time(path)
        if raw is None:
            return None
        return parse_capture_time(raw, path)

    def set_capture_time(self, path: Union[str, Path], value: datetime) -> None:
        """
        Write the embedded capture time with exiftool.

        The file is updated in place so its created time survives, but its
        modified time changes; callers that must keep it restore it afterwards.

        Raises:
            ExternalCapabilityFailure: exiftool missing or the write failed
        """
        if not self.has_exiftool():
            raise ExternalCapabilityFailure(
                f"Cannot write capture time to {path}: exiftool not available"
            )

        date_str = value.strftime('%Y:%m:%d %H:%M:%S')
        cmd = [
            self.exiftool, '-overwrite_original_in_place', '-m',
            f'-DateTimeOriginal={date_str}',
            f'-CreateDate={date_str}',
            str(path),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ExternalCapabilityFailure(f"exiftool write failed for {path}: {e}") from e

        if result.returncode != 0:
            raise ExternalCapabilityFailure(
                f"exiftool write failed for {path}: returncode={result.returncode}, "
                f"stderr={result.stderr.strip()}"
            )
        logger.debug(f"Capture time of {path} set to {date_str}")
