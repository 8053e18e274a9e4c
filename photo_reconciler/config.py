"""Configuration management for photo reconciliation."""

import yaml
from pathlib import Path
from typing import Dict, List, Any, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_CAPTURE_EXTENSIONS = [
    'jpg', 'jpeg', 'tif', 'tiff', 'heic', 'heif', 'png', 'dng', 'cr2', 'nef', 'arw'
]


class Config:
    """Manages configuration for photo reconciliation from YAML files."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config file. If None, searches for config files
                and falls back to built-in defaults when none is found.
        """
        self.config_path = config_path or self._find_config_file()
        self.config: Dict[str, Any] = {}
        if self.config_path:
            self._load_config()
        else:
            logger.debug("No configuration file found, using defaults")

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in standard locations."""
        # Look for config files in order of preference
        search_roots = [Path.cwd(), Path(__file__).parent.parent]
        names = ["config.local.yml", "config.yml"]

        for root in search_roots:
            for name in names:
                config_file = root / name
                if config_file.exists():
                    logger.info(f"Found config file: {config_file}")
                    return str(config_file.resolve())

        return None

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path, 'r') as f:
                self.config = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {self.config_path}")
        except Exception as e:
            logger.error(f"Failed to load config from {self.config_path}: {e}")
            raise

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path like 'reconcile.metadata.exiftool'
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def get_capture_extensions(self) -> List[str]:
        """Get extensions (lowercase, without dots) that carry an embedded capture time."""
        extensions = self.get('reconcile.capture_extensions', DEFAULT_CAPTURE_EXTENSIONS)
        return [ext.lower().lstrip('.') for ext in extensions or []]

    def get_duplicates_dir_name(self) -> str:
        """Get name of the folder that receives kept duplicates."""
        return self.get('reconcile.duplicates_dir', 'Duplicates')

    def get_exiftool_path(self) -> str:
        return self.get('reconcile.metadata.exiftool', 'exiftool')

    def get_metadata_timeout(self) -> int:
        return self.get('reconcile.metadata.timeout_seconds', 30)

    def get_bulk_copy_config(self) -> Dict[str, Any]:
        """Get bulk copy retry/wait configuration."""
        bulk = self.get('reconcile.bulk_copy', {}) or {}
        return {
            'retries': bulk.get('retries', 3),
            'wait_seconds': bulk.get('wait_seconds', 1),
            'min_free_space_mb': bulk.get('min_free_space_mb', 0),
        }

    def is_dry_run(self) -> bool:
        """Check if this is a dry run."""
        return self.get('reconcile.process.dry_run', False)

    def should_recurse(self) -> bool:
        """Check if directory scans recurse by default."""
        return self.get('reconcile.process.recurse', False)

    def get_log_level(self) -> str:
        """Get logging level."""
        return self.get('logging.level', 'INFO')

    def get_log_dir(self) -> Optional[str]:
        return self.get('logging.log_dir')

    def get_report_dir(self) -> str:
        """Get directory that saved reports are written to."""
        return self.get('logging.report_dir') or self.get_log_dir() or 'reports'

    def validate_config(self) -> List[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of validation error messages
        """
        errors = []

        if not self.get_capture_extensions():
            errors.append("No capture-time extensions configured")

        duplicates_dir = self.get_duplicates_dir_name()
        if not duplicates_dir or '/' in duplicates_dir or '\\' in duplicates_dir:
            errors.append(f"Invalid duplicates_dir value: {duplicates_dir!r} (must be a plain folder name)")

        bulk = self.get_bulk_copy_config()
        if bulk['retries'] < 0:
            errors.append(f"Invalid bulk_copy.retries value: {bulk['retries']} (must be >= 0)")
        if bulk['wait_seconds'] < 0:
            errors.append(f"Invalid bulk_copy.wait_seconds value: {bulk['wait_seconds']} (must be >= 0)")

        timeout = self.get_metadata_timeout()
        if timeout < 1:
            errors.append(f"Invalid metadata.timeout_seconds value: {timeout} (must be >= 1)")

        level = str(self.get_log_level()).upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR'):
            errors.append(f"Invalid logging level: {level}")

        return errors

    def __str__(self) -> str:
        """String representation of configuration."""
        return f"Config(path={self.config_path}, capture_extensions={len(self.get_capture_extensions())})"
