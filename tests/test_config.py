#!/usr/bin/env python3
"""Tests for reconciliation configuration using should/when pattern."""

from pathlib import Path

import yaml

from photo_reconciler.config import DEFAULT_CAPTURE_EXTENSIONS, Config


def _write_config(tmp_path, data):
    config_path = tmp_path / 'custom.yml'
    with open(config_path, 'w') as f:
        yaml.dump(data, f)
    return str(config_path)


def test_should_load_configuration_when_project_config_exists():
    """Should find the project config.yml when no path is given."""
    # When loading configuration
    config = Config()

    # Should have a valid config path
    assert config.config_path is not None, "Config path should not be None"
    assert Path(config.config_path).exists(), "Config file should exist"


def test_should_provide_capture_extensions_when_configuration_loaded(sample_config):
    """Should provide lowercase extensions without dots."""
    # When configuration is loaded
    extensions = sample_config.get_capture_extensions()

    # Should list the configured extensions
    assert extensions == ['jpg', 'jpeg', 'heic', 'png']


def test_should_normalize_extensions_when_written_with_dots(tmp_path):
    """Should accept '.JPG' style entries."""
    config = Config(_write_config(tmp_path, {'reconcile': {'capture_extensions': ['.JPG', 'Heic']}}))

    assert config.get_capture_extensions() == ['jpg', 'heic']


def test_should_fall_back_to_defaults_when_keys_missing(tmp_path):
    """Should use built-in defaults for absent keys."""
    # When an empty configuration is loaded
    config = Config(_write_config(tmp_path, {}))

    # Should provide defaults
    assert config.get_capture_extensions() == DEFAULT_CAPTURE_EXTENSIONS
    assert config.get_duplicates_dir_name() == 'Duplicates'
    assert config.get_exiftool_path() == 'exiftool'
    assert config.get_bulk_copy_config() == {'retries': 3, 'wait_seconds': 1, 'min_free_space_mb': 0}
    assert config.is_dry_run() is False
    assert config.should_recurse() is False
    assert config.get_report_dir() == 'reports'


def test_should_read_nested_values_when_using_dot_notation(sample_config):
    """Should resolve dotted key paths."""
    assert sample_config.get('reconcile.metadata.timeout_seconds') == 30
    assert sample_config.get('reconcile.missing.key', 'fallback') == 'fallback'


def test_should_use_log_dir_for_reports_when_report_dir_missing(tmp_path):
    """Should save reports next to logs when no report dir is configured."""
    config = Config(_write_config(tmp_path, {'logging': {'log_dir': '/var/log/reconcile'}}))

    assert config.get_report_dir() == '/var/log/reconcile'


def test_should_pass_validation_when_configuration_is_sane(sample_config):
    """Should report no errors for the test configuration."""
    assert sample_config.validate_config() == []


def test_should_report_errors_when_values_invalid(tmp_path):
    """Should flag every invalid setting."""
    # When configuration has invalid values
    config = Config(_write_config(tmp_path, {
        'reconcile': {
            'capture_extensions': [],
            'duplicates_dir': 'a/b',
            'bulk_copy': {'retries': -1, 'wait_seconds': -2},
            'metadata': {'timeout_seconds': 0},
        },
        'logging': {'level': 'LOUD'},
    }))

    # Should return one error per problem
    errors = config.validate_config()
    assert len(errors) == 6
    assert any('duplicates_dir' in e for e in errors)
    assert any('LOUD' in e for e in errors)


def test_should_import_all_modules_when_package_loaded():
    """Should successfully import all modules when package is loaded."""
    import importlib

    modules = [
        'photo_reconciler.config',
        'photo_reconciler.naming',
        'photo_reconciler.metadata',
        'photo_reconciler.filetimes',
        'photo_reconciler.timestamps',
        'photo_reconciler.file_copier',
        'photo_reconciler.duplicates',
        'photo_reconciler.unique',
        'photo_reconciler.bulk_copy',
        'photo_reconciler.reporter',
    ]

    for module_name in modules:
        importlib.import_module(module_name)
