"""Bulk archival copy of a file tree with per-file retries."""

import fnmatch
import shutil
import time
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from tqdm import tqdm

from .config import Config
from .exceptions import BadPathError
from .utils import ensure_directory, format_bytes, get_available_space, get_file_size, iter_files

logger = logging.getLogger(__name__)


@dataclass
class BulkCopyResult:
    """Outcome of one bulk copy run. Only ``ok`` matters to callers."""
    ok: bool = True
    copied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    log: List[str] = field(default_factory=list)

    @property
    def status_code(self) -> int:
        return 0 if self.ok else 1

    def add_log(self, message: str) -> None:
        self.log.append(message)


class BulkCopier:
    """Copies a file tree into a destination, keeping relative paths and timestamps."""

    def __init__(self, config: Config):
        self.config = config
        bulk = config.get_bulk_copy_config()
        self.retries = bulk['retries']
        self.wait_seconds = bulk['wait_seconds']
        self.min_free_space_bytes = bulk['min_free_space_mb'] * 1024 * 1024

    def _matching_files(self, source_dir: Path, pattern: str, recurse: bool) -> List[Path]:
        pattern = pattern.lower()
        return [
            path for path in iter_files(source_dir, recurse)
            if fnmatch.fnmatch(path.name.lower(), pattern)
        ]

    def _copy_with_retry(self, source: Path, destination: Path, retries: int,
                         wait_seconds: float, result: BulkCopyResult) -> bool:
        for attempt in range(retries + 1):
            try:
                ensure_directory(destination.parent)
                shutil.copy2(source, destination)
                return True
            except OSError as e:
                result.add_log(f"ERROR attempt {attempt + 1}: {source} ({e})")
                logger.debug(f"Copy attempt {attempt + 1} failed for {source}: {e}")
                if attempt < retries:
                    time.sleep(wait_seconds)
        return False

    def copy_tree(
        self,
        source_dir: Union[str, Path],
        dest_dir: Union[str, Path],
        pattern: str = '*',
        recurse: bool = True,
        retries: Optional[int] = None,
        wait_seconds: Optional[float] = None,
        dry_run: Optional[bool] = None,
    ) -> BulkCopyResult:
        """Copy every file matching pattern from source_dir into dest_dir.

        Files already present in the destination with the same size and
        modified time are skipped. Each failing file is retried ``retries``
        times, ``wait_seconds`` apart.

        Returns BulkCopyResult.
        """
        if dry_run is None:
            dry_run = self.config.is_dry_run()
        if retries is None:
            retries = self.retries
        if wait_seconds is None:
            wait_seconds = self.wait_seconds

        source_dir = Path(source_dir)
        dest_dir = Path(dest_dir)
        if not source_dir.is_dir():
            raise BadPathError(source_dir, "source is not a directory")

        result = BulkCopyResult()
        files = self._matching_files(source_dir, pattern, recurse)
        source_size = sum(get_file_size(f) for f in files)
        result.add_log(f"Source: {source_dir} ({len(files):,} files, {format_bytes(source_size)})")
        result.add_log(f"Dest: {dest_dir}  Pattern: {pattern}  Retries: {retries}  Wait: {wait_seconds}s")

        if not dry_run:
            ensure_directory(dest_dir)
            available = get_available_space(dest_dir)
            needed = source_size + self.min_free_space_bytes
            if needed > available:
                msg = (
                    f"Insufficient space in {dest_dir}: "
                    f"need {format_bytes(needed)}, have {format_bytes(available)}"
                )
                logger.error(msg)
                result.add_log(msg)
                result.ok = False
                return result

        for source in tqdm(files, desc="Copying", unit="files", disable=len(files) < 100):
            relative = source.relative_to(source_dir)
            destination = dest_dir / relative

            if destination.exists():
                src_stat, dst_stat = source.stat(), destination.stat()
                if src_stat.st_size == dst_stat.st_size and int(src_stat.st_mtime) == int(dst_stat.st_mtime):
                    result.skipped.append(str(relative))
                    continue

            if dry_run:
                result.add_log(f"DRY RUN: would copy {relative}")
                result.copied.append(str(relative))
                continue

            if self._copy_with_retry(source, destination, retries, wait_seconds, result):
                result.copied.append(str(relative))
            else:
                logger.warning(f"Failed to copy {source} after {retries + 1} attempts")
                result.failed.append(str(relative))

        result.ok = not result.failed
        summary = (
            f"{'DRY RUN: ' if dry_run else ''}Bulk copy complete: {len(result.copied):,} copied, "
            f"{len(result.skipped):,} skipped, {len(result.failed):,} failed"
        )
        result.add_log(summary)
        logger.info(summary)
        return result
