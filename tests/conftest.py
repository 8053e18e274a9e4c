"""Shared fixtures for photo reconciliation tests."""

import os
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import yaml

from photo_reconciler.filetimes import FileRecord
from photo_reconciler.metadata import MetadataReader
from photo_reconciler.timestamps import TimestampResolver


T1 = datetime(2021, 3, 14, 9, 26, 53)
T2 = datetime(2022, 6, 1, 12, 0, 0)
T3 = datetime(2023, 1, 2, 3, 4, 5)
T4 = datetime(2019, 11, 30, 18, 45, 0)


@pytest.fixture
def sample_config(tmp_path):
    """Create a Config backed by a temp config file."""
    config_data = {
        'reconcile': {
            'capture_extensions': ['jpg', 'jpeg', 'heic', 'png'],
            'duplicates_dir': 'Duplicates',
            'metadata': {
                'exiftool': 'exiftool',
                'timeout_seconds': 30,
            },
            'bulk_copy': {
                'retries': 2,
                'wait_seconds': 0,
                'min_free_space_mb': 0,
            },
            'process': {
                'dry_run': False,
                'recurse': False,
            },
        },
        'logging': {
            'level': 'INFO',
            'report_dir': str(tmp_path / 'reports'),
        },
    }

    config_path = tmp_path / 'config.yml'
    with open(config_path, 'w') as f:
        yaml.dump(config_data, f)

    from photo_reconciler.config import Config
    return Config(str(config_path))


@pytest.fixture
def make_file(tmp_path):
    """Factory fixture: create a file with an optional modified time."""

    def _create(relative_path, content=b'test-content', modified=None, base=None):
        full_path = Path(base or tmp_path) / relative_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_bytes(content)
        if modified is not None:
            ts = modified.timestamp()
            os.utime(full_path, (ts, ts))
        return full_path

    return _create


@pytest.fixture
def fake_metadata():
    """A metadata reader that never finds an embedded capture time."""
    metadata = MagicMock(spec=MetadataReader)
    metadata.read_raw_capture_time.return_value = None
    metadata.try_get_capture_time.return_value = None
    return metadata


@pytest.fixture
def filesystem_resolver(fake_metadata):
    """Resolver that always falls back to filesystem times."""
    return TimestampResolver(fake_metadata)


@pytest.fixture
def fake_records():
    """Factory fixture: stand-in for read_file_record with chosen times.

    Maps file name -> (created, modified).
    """

    def _build(times):
        def _read(path):
            path = Path(path)
            created, modified = times[path.name]
            return FileRecord(path=path, created_time=created,
                              modified_time=modified, accessed_time=modified)
        return _read

    return _build
