"""
Photo Backup Reconciler

Utilities for deduplicating and reconciling photo backups across directories:
collision-avoiding copy/move, canonical date fixing, removal of renamed
duplicate copies and copying of files missing from another backup.
"""

__version__ = "1.0.0"
__author__ = "Homelab Team"

from .config import Config
from .exceptions import (
    BadPathError,
    CollisionCreateError,
    ExternalCapabilityFailure,
    ReconcileError,
    TimestampParseError,
)
from .naming import allocate_name, has_suffix, iterative_strip, strip_suffix
from .metadata import MetadataReader
from .timestamps import CanonicalDateSetter, TimestampResolver, select_canonical
from .file_copier import FileCopier
from .duplicates import DuplicateDetector
from .unique import UniqueCopier
from .bulk_copy import BulkCopier
from .reporter import ReconcileReporter

__all__ = [
    'Config',
    'BadPathError',
    'CollisionCreateError',
    'ExternalCapabilityFailure',
    'ReconcileError',
    'TimestampParseError',
    'allocate_name',
    'has_suffix',
    'iterative_strip',
    'strip_suffix',
    'MetadataReader',
    'CanonicalDateSetter',
    'TimestampResolver',
    'select_canonical',
    'FileCopier',
    'DuplicateDetector',
    'UniqueCopier',
    'BulkCopier',
    'ReconcileReporter',
]
