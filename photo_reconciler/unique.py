"""Copy-unique: files present in one directory but missing from another."""

import bisect
import logging
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from tqdm import tqdm

from .config import Config
from .exceptions import BadPathError, ReconcileError
from .file_copier import transfer_file
from .metadata import MetadataReader
from .timestamps import TimestampResolver
from .utils import get_current_timestamp, iter_files

logger = logging.getLogger(__name__)


class NamePrefixIndex:
    """Sorted index of file names supporting literal prefix lookups.

    Matching is case-insensitive, so ``IMG_0001`` finds ``img_00012.JPG``.
    """

    def __init__(self, paths: List[Path]):
        by_name = defaultdict(list)
        for path in paths:
            by_name[path.name.casefold()].append(path)
        self._by_name = dict(by_name)
        self._names = sorted(self._by_name)

    def __len__(self) -> int:
        return sum(len(paths) for paths in self._by_name.values())

    def starting_with(self, prefix: str) -> List[Path]:
        """All indexed files whose name starts with prefix."""
        key = prefix.casefold()
        start = bisect.bisect_left(self._names, key)
        matches = []
        for name in self._names[start:]:
            if not name.startswith(key):
                break
            matches.extend(self._by_name[name])
        return matches


class UniqueCopier:
    """Computes P - Q by name prefix and capture time, and copies the result."""

    def __init__(self, config: Config, resolver: Optional[TimestampResolver] = None):
        self.config = config
        self.resolver = resolver or TimestampResolver(MetadataReader(config))
        self._timestamps: Dict[Path, Optional[datetime]] = {}

    def _timestamp(self, path: Path) -> Optional[datetime]:
        if path not in self._timestamps:
            try:
                self._timestamps[path] = self.resolver.resolve(path, default_to_modified=True)
            except ReconcileError as e:
                logger.warning(f"Cannot compare {path}: {e}")
                self._timestamps[path] = None
        return self._timestamps[path]

    def is_unique(self, path: Path, index: NamePrefixIndex) -> bool:
        """
        Decide whether a file of P is missing from Q.

        A file is present in Q when some file there starts with its base name
        and resolves to the exact same timestamp.

        Raises:
            TimestampParseError: the file's own capture time is unparseable
        """
        matches = index.starting_with(path.stem)
        if not matches:
            return True

        taken = self.resolver.resolve(path, default_to_modified=True)
        for other in matches:
            if self._timestamp(other) == taken:
                logger.debug(f"{path.name} present in target as {other.name}")
                return False
        return True

    def _list(self, directory: Path, recurse: bool) -> List[Path]:
        if not directory.is_dir():
            raise BadPathError(directory, "not a directory")
        return list(iter_files(directory, recurse))

    def compute_difference(self, dir_p: Union[str, Path], dir_q: Union[str, Path],
                           recurse: bool = False) -> Dict[str, Any]:
        """
        Find files of dir_p missing from dir_q.

        Returns:
            Dictionary with the unique files and per-file errors
        """
        dir_p, dir_q = Path(dir_p), Path(dir_q)
        files_p = self._list(dir_p, recurse)
        index = NamePrefixIndex(self._list(dir_q, recurse))
        self._timestamps.clear()

        logger.info(f"Comparing {len(files_p):,} files in {dir_p} against {len(index):,} in {dir_q}")

        unique: List[Path] = []
        errors: List[str] = []
        for path in tqdm(files_p, desc="Comparing", unit="files", disable=len(files_p) < 100):
            try:
                if self.is_unique(path, index):
                    unique.append(path)
            except (ReconcileError, OSError) as e:
                msg = f"Failed to compare {path}: {e}"
                logger.error(msg)
                errors.append(msg)

        logger.info(f"{len(unique):,} of {len(files_p):,} files in {dir_p} are missing from {dir_q}")
        return {'total_files': len(files_p), 'unique': unique, 'errors': errors}

    def compute_and_copy(
        self,
        dir_p: Union[str, Path],
        dir_q: Union[str, Path],
        dest: Union[str, Path],
        recurse: bool = False,
        dry_run: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Copy every file of dir_p that is missing from dir_q into dest.

        Copies go through the rename-on-collision path, so unique files with
        equal names from different subfolders all land in dest.

        Returns dict with copy results.
        """
        if dry_run is None:
            dry_run = self.config.is_dry_run()

        dest = Path(dest)
        if not dest.is_dir():
            raise BadPathError(dest, "destination is not a directory")

        difference = self.compute_difference(dir_p, dir_q, recurse)
        results: Dict[str, Any] = {
            'operation': 'unique',
            'dry_run': dry_run,
            'timestamp': get_current_timestamp(),
            'total_files': difference['total_files'],
            'affected': [],
            'transfers': [],
            'errors': list(difference['errors']),
        }

        for source in difference['unique']:
            try:
                dest_path = transfer_file(source, dest, strip_existing_suffix=False, dry_run=dry_run)
            except OSError as e:
                msg = f"Failed to copy: {source} ({e})"
                logger.warning(msg)
                results['errors'].append(msg)
                continue
            results['affected'].append(str(dest_path))
            results['transfers'].append({'source': str(source), 'destination': str(dest_path)})

        logger.info(
            f"{'DRY RUN: ' if dry_run else ''}Copy-unique complete: "
            f"{len(results['affected']):,} files copied to {dest}"
        )
        return results
