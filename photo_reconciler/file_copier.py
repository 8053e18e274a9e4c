"""Copying and moving files with collision-avoiding rename."""

import shutil
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from tqdm import tqdm

from .config import Config
from .exceptions import BadPathError, ReconcileError
from .naming import allocate_path
from .metadata import MetadataReader
from .timestamps import TimestampResolver
from .utils import expand_path_patterns, get_current_timestamp, iter_files

logger = logging.getLogger(__name__)


def transfer_file(source: Path, destination_dir: Path, strip_existing_suffix: bool = True,
                  new_timestamps: bool = False, move: bool = False,
                  dry_run: bool = False) -> Path:
    """
    Copy or move one file into a directory under a collision-free name.

    Args:
        source: File to transfer
        destination_dir: Existing target directory
        strip_existing_suffix: Drop one ``_N`` layer before allocating
        new_timestamps: Give the copy fresh timestamps instead of the source's
        move: Move instead of copy
        dry_run: Only compute the destination name

    Returns:
        Destination path
    """
    destination = allocate_path(source, destination_dir, strip_existing_suffix)
    if dry_run:
        logger.debug(f"DRY RUN: would {'move' if move else 'copy'} {source} -> {destination}")
        return destination

    if move:
        shutil.move(str(source), str(destination))
    elif new_timestamps:
        shutil.copy(source, destination)
    else:
        shutil.copy2(source, destination)

    logger.debug(f"{'Moved' if move else 'Copied'} {source} -> {destination}")
    return destination


class FileCopier:
    """Copies or moves files into a flat destination, renaming on collision."""

    def __init__(self, config: Config, resolver: Optional[TimestampResolver] = None):
        self.config = config
        self.resolver = resolver or TimestampResolver(MetadataReader(config))

    def _new_results(self, operation: str, dry_run: bool) -> Dict[str, Any]:
        return {
            'operation': operation,
            'dry_run': dry_run,
            'timestamp': get_current_timestamp(),
            'affected': [],
            'transfers': [],
            'errors': [],
        }

    def copy_with_rename(
        self,
        patterns: Iterable[str],
        destination: Union[str, Path],
        keep_numbering: bool = False,
        new_timestamps: bool = False,
        move: bool = False,
        dry_run: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Copy (or move) every file matched by the input patterns into destination.

        Patterns may be globs; a pattern that matches nothing is reported as a
        warning and the remaining inputs are still processed. Unless
        keep_numbering is set, one ``_N`` layer is dropped from each source
        name before a free name is allocated.

        Returns dict with transfer results.
        """
        if dry_run is None:
            dry_run = self.config.is_dry_run()

        destination = Path(destination)
        if not destination.is_dir():
            raise BadPathError(destination, "destination is not a directory")

        results = self._new_results('move' if move else 'copy', dry_run)

        for pattern, source, error in expand_path_patterns(patterns):
            if error is not None:
                logger.warning(str(error))
                results['errors'].append(str(error))
                continue
            try:
                dest_path = transfer_file(
                    source, destination,
                    strip_existing_suffix=not keep_numbering,
                    new_timestamps=new_timestamps, move=move, dry_run=dry_run,
                )
            except OSError as e:
                msg = f"Failed to {'move' if move else 'copy'}: {source} ({e})"
                logger.warning(msg)
                results['errors'].append(msg)
                continue

            results['affected'].append(str(dest_path))
            results['transfers'].append({'source': str(source), 'destination': str(dest_path)})

        logger.info(
            f"{'DRY RUN: ' if dry_run else ''}{results['operation'].capitalize()} complete: "
            f"{len(results['affected']):,} files, {len(results['errors']):,} errors"
        )
        return results

    def copy_since(
        self,
        source_dir: Union[str, Path],
        destination: Union[str, Path],
        cutoff: Optional[datetime] = None,
        first_file: Optional[Union[str, Path]] = None,
        recurse: bool = False,
        dry_run: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Copy files whose resolved timestamp is at or after a cutoff.

        The cutoff is either given directly or taken from a reference file
        (the first file of the new batch). Without either, every file is copied.

        Returns dict with transfer results.
        """
        if dry_run is None:
            dry_run = self.config.is_dry_run()

        source_dir = Path(source_dir)
        destination = Path(destination)
        if not destination.is_dir():
            raise BadPathError(destination, "destination is not a directory")

        if cutoff is None and first_file is not None:
            first_file = Path(first_file)
            if not first_file.is_file():
                raise BadPathError(first_file, "reference file not found")
            cutoff = self.resolver.resolve(first_file, default_to_modified=True)
            logger.info(f"Using cutoff from {first_file.name}: {cutoff}")

        results = self._new_results('copy-since', dry_run)
        results['cutoff'] = cutoff.isoformat() if cutoff else None

        files: List[Path] = list(iter_files(source_dir, recurse))
        for source in tqdm(files, desc="Checking dates", unit="files", disable=len(files) < 100):
            try:
                taken = self.resolver.resolve(source, default_to_modified=True)
                if cutoff is not None and taken < cutoff:
                    continue
                dest_path = transfer_file(source, destination, strip_existing_suffix=False,
                                          dry_run=dry_run)
            except (ReconcileError, OSError) as e:
                msg = f"Failed to copy: {source} ({e})"
                logger.warning(msg)
                results['errors'].append(msg)
                continue

            results['affected'].append(str(dest_path))
            results['transfers'].append({'source': str(source), 'destination': str(dest_path)})

        logger.info(
            f"{'DRY RUN: ' if dry_run else ''}Copied {len(results['affected']):,} files "
            f"taken since {cutoff}"
        )
        return results
