"""Best-available timestamps and canonical date selection."""

import os
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .config import Config
from .exceptions import ExternalCapabilityFailure, ReconcileError
from .filetimes import (
    get_created_time,
    get_modified_time,
    read_file_record,
    restore_times,
    set_created_time,
)
from .metadata import MetadataReader, parse_capture_time
from .utils import expand_path_patterns, get_current_timestamp

logger = logging.getLogger(__name__)


class TimestampResolver:
    """Resolves the best-available semantic timestamp for a file."""

    def __init__(self, metadata: Optional[MetadataReader] = None):
        self.metadata = metadata or MetadataReader()

    def resolve(self, path: Union[str, Path], prefer_exif: bool = True,
                default_to_modified: bool = False) -> datetime:
        """
        Resolve the timestamp that best represents when a file was taken.

        The embedded capture time wins when present. Otherwise the filesystem
        created time is used, or the modified time with default_to_modified.

        Args:
            path: File to resolve
            prefer_exif: Query embedded metadata before the filesystem
            default_to_modified: Fall back to modified time instead of created time

        Returns:
            Resolved datetime

        Raises:
            TimestampParseError: a capture time is present but unparseable
        """
        path = Path(path)
        if prefer_exif:
            captured = self._capture_time(path)
            if captured is not None:
                return captured

        if default_to_modified:
            return get_modified_time(path)
        return get_created_time(path)

    def _capture_time(self, path: Path) -> Optional[datetime]:
        try:
            raw = self.metadata.read_raw_capture_time(path)
        except ExternalCapabilityFailure as e:
            logger.debug(f"No capture time for {path}, using filesystem: {e}")
            return None

        if raw is None or not raw.strip():
            return None
        return parse_capture_time(raw, path)


def select_canonical(created: Optional[datetime], modified: datetime,
                     captured: Optional[datetime] = None, use_latest: bool = False,
                     ignore_created: bool = False) -> datetime:
    """
    Pick the canonical date among a file's candidate dates.

    Absent candidates are left out of the comparison entirely.

    Args:
        created: Filesystem created time
        modified: Filesystem modified time (always a candidate)
        captured: Embedded capture time, if any
        use_latest: Pick the latest candidate instead of the earliest
        ignore_created: Leave the created time out of the candidates

    Returns:
        The earliest (or latest) candidate
    """
    candidates = [modified]
    if created is not None and not ignore_created:
        candidates.append(created)
    if captured is not None:
        candidates.append(captured)

    return max(candidates) if use_latest else min(candidates)


@dataclass
class CanonicalDate:
    """Selected canonical date and which stored dates must be rewritten."""
    value: datetime
    rewrite_created: bool
    rewrite_captured: bool


def select_canonical_date(created: Optional[datetime], modified: datetime,
                          captured: Optional[datetime] = None, use_latest: bool = False,
                          ignore_created: bool = False,
                          capture_bearing: bool = False) -> CanonicalDate:
    """Select the canonical date and work out which stored dates differ from it."""
    value = select_canonical(created, modified, captured, use_latest, ignore_created)
    return CanonicalDate(
        value=value,
        rewrite_created=created != value,
        rewrite_captured=capture_bearing and captured != value,
    )


class CanonicalDateSetter:
    """Writes the canonical date of files back to the filesystem and metadata.

    Date modified is never changed: it is restored after the metadata write.
    """

    def __init__(self, config: Config, metadata: Optional[MetadataReader] = None):
        self.config = config
        self.metadata = metadata or MetadataReader(config)
        self.capture_extensions = set(config.get_capture_extensions())

    def is_capture_bearing(self, path: Path) -> bool:
        return path.suffix.lower().lstrip('.') in self.capture_extensions

    def set_canonical_date(self, path: Union[str, Path], use_latest: bool = False,
                           ignore_created: bool = False,
                           dry_run: bool = False) -> CanonicalDate:
        """
        Compute and apply the canonical date of one file.

        Raises:
            TimestampParseError: embedded capture time is unparseable
            ExternalCapabilityFailure: the capture-time write failed
            OSError: filesystem times could not be written
        """
        path = Path(path)
        record = read_file_record(path)
        capture_bearing = self.is_capture_bearing(path)

        if capture_bearing:
            try:
                record.captured_time = self.metadata.try_get_capture_time(path)
            except ExternalCapabilityFailure as e:
                logger.warning(f"Could not read capture time of {path}: {e}")

        canonical = select_canonical_date(
            record.created_time, record.modified_time, record.captured_time,
            use_latest=use_latest, ignore_created=ignore_created,
            capture_bearing=capture_bearing,
        )

        if dry_run:
            logger.info(f"DRY RUN: {path} canonical date {canonical.value}")
            return canonical

        original_stat = os.stat(path)
        try:
            if canonical.rewrite_created:
                if set_created_time(path, canonical.value):
                    record.created_time = canonical.value
            if canonical.rewrite_captured:
                self.metadata.set_capture_time(path, canonical.value)
                record.captured_time = canonical.value
        finally:
            restore_times(path, original_stat)

        logger.debug(f"{path}: canonical date {canonical.value}")
        return canonical

    def set_canonical_dates(self, patterns: Iterable[str], use_latest: bool = False,
                            ignore_created: bool = False,
                            dry_run: Optional[bool] = None) -> Dict[str, Any]:
        """Apply set_canonical_date to every file matched by the input patterns."""
        if dry_run is None:
            dry_run = self.config.is_dry_run()

        results: Dict[str, Any] = {
            'operation': 'set-date',
            'dry_run': dry_run,
            'timestamp': get_current_timestamp(),
            'affected': [],
            'dates': {},
            'errors': [],
        }

        for pattern, path, error in expand_path_patterns(patterns):
            if error is not None:
                logger.warning(str(error))
                results['errors'].append(str(error))
                continue
            try:
                canonical = self.set_canonical_date(path, use_latest, ignore_created, dry_run)
            except (ReconcileError, OSError) as e:
                msg = f"Failed to set canonical date for {path}: {e}"
                logger.error(msg)
                results['errors'].append(msg)
                continue

            results['affected'].append(str(path))
            results['dates'][str(path)] = canonical.value.isoformat()

        logger.info(
            f"{'DRY RUN: ' if dry_run else ''}Canonical dates set on "
            f"{len(results['affected'])} files, {len(results['errors'])} errors"
        )
        return results


def resolve_many(resolver: TimestampResolver, patterns: Iterable[str],
                 prefer_exif: bool = True,
                 default_to_modified: bool = False) -> List[Dict[str, Any]]:
    """Resolve timestamps for every file matched by the input patterns."""
    rows = []
    for pattern, path, error in expand_path_patterns(patterns):
        if error is not None:
            logger.warning(str(error))
            rows.append({'path': str(pattern), 'timestamp': None, 'error': str(error)})
            continue
        try:
            value = resolver.resolve(path, prefer_exif, default_to_modified)
        except (ReconcileError, OSError) as e:
            logger.error(f"Failed to resolve timestamp for {path}: {e}")
            rows.append({'path': str(path), 'timestamp': None, 'error': str(e)})
            continue
        rows.append({'path': str(path), 'timestamp': value, 'error': None})
    return rows
