"""The ``_N`` suffix convention and collision-avoiding name allocation.

Copies that land on an existing name get an integer suffix appended to their
base name (``Photo.jpg`` -> ``Photo_1.jpg`` -> ``Photo_2.jpg``). Duplicate
detection and copy-unique parse the same suffixes back off, so generation and
parsing live together here.
"""

import logging
import re
from pathlib import Path
from typing import Optional, Tuple, Union

logger = logging.getLogger(__name__)

# One or two digits after an underscore, at the very end of the base name.
# ``_100`` and longer tails are ordinary numbering, not our suffix.
SUFFIX_PATTERN = re.compile(r'(?P<root>.*?)_(?P<number>[0-9]{1,2})', re.DOTALL)


def split_suffix(base_name: str) -> Tuple[str, Optional[int]]:
    """
    Decompose a base name into its root and trailing suffix.

    Only the rightmost suffix is removed: ``Img_1_2`` -> ``('Img_1', 2)``.

    Args:
        base_name: File name without extension

    Returns:
        Tuple of (root, suffix) where suffix is None when there is no ``_N``
    """
    match = SUFFIX_PATTERN.fullmatch(base_name)
    if not match:
        return base_name, None
    return match.group('root'), int(match.group('number'))


def strip_suffix(base_name: str) -> Tuple[str, bool]:
    """Remove exactly one trailing ``_N`` group. Returns (root, matched)."""
    root, number = split_suffix(base_name)
    return root, number is not None


def has_suffix(base_name: str) -> bool:
    return SUFFIX_PATTERN.fullmatch(base_name) is not None


def iterative_strip(base_name: str) -> str:
    """Strip ``_N`` groups until none remain, returning the unsuffixed root."""
    root, matched = strip_suffix(base_name)
    while matched:
        root, matched = strip_suffix(root)
    return root


def with_suffix(base_name: str, counter: int) -> str:
    """Generate the suffixed base name for a counter. Counter 0 means no suffix."""
    if counter < 0:
        raise ValueError(f"Suffix counter must be non-negative, got {counter}")
    if counter == 0:
        return base_name
    return f"{base_name}_{counter}"


def allocate_name(desired_base_name: str, extension: str,
                  target_dir: Union[str, Path],
                  strip_existing_suffix: bool = False) -> str:
    """
    Find a file name that does not exist yet in a target directory.

    The plain name is returned when it is free; otherwise ``_1``, ``_2``, ...
    are tried in order. Nothing is created, so a concurrent writer can still
    claim the name before the caller does.

    Args:
        desired_base_name: Base name without extension
        extension: Extension including the dot (may be empty)
        target_dir: Directory the file will be written to
        strip_existing_suffix: Remove one ``_N`` layer first so that
            re-copying ``name_1`` does not produce ``name_1_1``

    Returns:
        File name (base + extension) that is free in target_dir
    """
    target_dir = Path(target_dir)
    base_name = desired_base_name
    if strip_existing_suffix:
        base_name, _ = strip_suffix(base_name)

    counter = 0
    while True:
        candidate = with_suffix(base_name, counter) + extension
        if not (target_dir / candidate).exists():
            if counter:
                logger.debug(f"Name collision in {target_dir}: using {candidate}")
            return candidate
        counter += 1


def allocate_path(source: Union[str, Path], target_dir: Union[str, Path],
                  strip_existing_suffix: bool = False) -> Path:
    """Allocate a free destination path in target_dir for a source file."""
    source = Path(source)
    name = allocate_name(source.stem, source.suffix, target_dir, strip_existing_suffix)
    return Path(target_dir) / name
