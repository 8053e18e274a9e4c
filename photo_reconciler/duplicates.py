"""Duplicate detection over ``_N`` renamed copies."""

import shutil
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from tqdm import tqdm

from .config import Config
from .exceptions import CollisionCreateError, ReconcileError
from .filetimes import FileRecord, read_file_record
from .naming import has_suffix, strip_suffix
from .utils import ensure_directory, get_current_timestamp, iter_files

logger = logging.getLogger(__name__)


@dataclass
class DuplicateMatch:
    """A suffixed file confirmed as a copy of its unsuffixed parent."""
    path: Path
    parent: Path
    matched_on: str
    destination: Optional[Path] = None

    @property
    def name(self) -> str:
        return self.path.name


class DuplicateDetector:
    """Finds renamed copies (``name_N.ext``) whose dates match their parent file.

    A suffixed file is a duplicate of ``name.ext`` in the same folder when
    their modified times or their created times are equal. Confirmed
    duplicates are deleted, or moved into a ``Duplicates`` folder when kept.
    """

    def __init__(self, config: Config):
        """
        Initialize duplicate detector with configuration.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.duplicates_dir_name = config.get_duplicates_dir_name()
        self._records: Dict[Path, FileRecord] = {}
        self._siblings: Dict[Path, Dict[str, Path]] = {}

    def _record(self, path: Path) -> FileRecord:
        record = self._records.get(path)
        if record is None:
            record = read_file_record(path)
            self._records[path] = record
        return record

    def _find_parent(self, directory: Path, name: str) -> Optional[Path]:
        """Find a file in directory by name, ignoring case ('IMG.JPG' for 'IMG.jpg')."""
        exact = directory / name
        if exact.is_file():
            return exact

        siblings = self._siblings.get(directory)
        if siblings is None:
            siblings = {p.name.casefold(): p for p in directory.iterdir() if p.is_file()}
            self._siblings[directory] = siblings
        found = siblings.get(name.casefold())
        if found is not None and found.is_file():
            return found
        return None

    def _dates_match(self, candidate: Path, parent: Path) -> Optional[str]:
        """Return which date confirms the match ('modified'/'created'), or None."""
        candidate_record = self._record(candidate)
        parent_record = self._record(parent)
        if candidate_record.modified_time == parent_record.modified_time:
            return 'modified'
        if candidate_record.created_time == parent_record.created_time:
            return 'created'
        return None

    def check_file(self, path: Path) -> Optional[DuplicateMatch]:
        """
        Walk up the suffix chain of one file looking for a matching parent.

        ``name_2_1.jpg`` is checked against ``name_2.jpg`` and then
        ``name.jpg``; the first parent with a matching date wins.

        Args:
            path: File to check

        Returns:
            DuplicateMatch, or None if the file is not a confirmed duplicate
        """
        base = path.stem
        while has_suffix(base):
            base, _ = strip_suffix(base)
            # a bare "_1" strips to an empty name
            if not base + path.suffix:
                break
            parent = self._find_parent(path.parent, base + path.suffix)
            if parent is None:
                continue

            matched_on = self._dates_match(path, parent)
            if matched_on:
                return DuplicateMatch(path=path, parent=parent, matched_on=matched_on)

            logger.debug(f"{path.name}: suffix sibling of {parent.name} but dates differ")
        return None

    def find_duplicates(self, directory: Union[str, Path], recurse: bool = False) -> List[DuplicateMatch]:
        """Report confirmed duplicates without touching any file."""
        directory = Path(directory)
        self._records.clear()
        self._siblings.clear()
        files = list(iter_files(directory, recurse, exclude_dirs=[self.duplicates_dir_name]))

        matches = []
        for path in files:
            match = self.check_file(path)
            if match:
                matches.append(match)
        return matches

    def _resolve(self, match: DuplicateMatch, directory: Path, keep: bool) -> None:
        if not keep:
            match.path.unlink()
            logger.debug(f"Removed {match.path} (duplicate of {match.parent.name})")
            return

        duplicates_dir = directory / self.duplicates_dir_name
        ensure_directory(duplicates_dir)
        target = duplicates_dir / match.path.name
        if target.exists():
            raise CollisionCreateError(match.path, target)
        shutil.move(str(match.path), str(target))
        match.destination = target
        logger.debug(f"Moved {match.path} -> {target}")

    def find_and_resolve(
        self,
        directory: Union[str, Path],
        recurse: bool = False,
        keep: bool = False,
        dry_run: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Find duplicates in a directory and delete or relocate them.

        Args:
            directory: Directory to scan
            recurse: Include subdirectories
            keep: Move duplicates into the Duplicates folder instead of deleting
            dry_run: Report only (defaults to config setting)

        Returns:
            Dictionary with affected files and per-file errors
        """
        if dry_run is None:
            dry_run = self.config.is_dry_run()

        directory = Path(directory)
        self._records.clear()
        self._siblings.clear()
        files = list(iter_files(directory, recurse, exclude_dirs=[self.duplicates_dir_name]))
        logger.info(f"{'DRY RUN: ' if dry_run else ''}Checking {len(files):,} files in {directory} for duplicates")

        results: Dict[str, Any] = {
            'operation': 'dedupe',
            'dry_run': dry_run,
            'timestamp': get_current_timestamp(),
            'directory': str(directory),
            'keep': keep,
            'total_files': len(files),
            'affected': [],
            'matches': [],
            'errors': [],
        }

        for path in tqdm(files, desc="Checking duplicates", unit="files", disable=len(files) < 100):
            try:
                match = self.check_file(path)
                if match is None:
                    continue
                if not dry_run:
                    self._resolve(match, directory, keep)
            except (ReconcileError, OSError) as e:
                msg = f"Failed to resolve duplicate {path}: {e}"
                logger.error(msg)
                results['errors'].append(msg)
                continue

            results['affected'].append(str(match.path))
            results['matches'].append({
                'path': str(match.path),
                'parent': str(match.parent),
                'matched_on': match.matched_on,
                'destination': str(match.destination) if match.destination else None,
            })

        action = 'kept' if keep else 'removed'
        logger.info(
            f"{'DRY RUN: ' if dry_run else ''}Duplicate scan complete: "
            f"{len(results['affected']):,} duplicates {action}, {len(results['errors']):,} errors"
        )
        return results
