"""
Configuration management using dataclasses for type safety and validation.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any
import tempfile
import yaml
import json
import os
import jsonschema
import logging

from s3_photo_sync.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class ObjectStoreConfig:
    """Object store (S3-compatible) configuration."""
    bucket: str
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    identity_pool_id: Optional[str] = None
    key_prefix: str = "uploads"
    connect_timeout: float = 10.0
    read_timeout: float = 60.0

    def __post_init__(self):
        """Validate object store configuration."""
        if not self.bucket:
            raise ValueError("bucket is required for the object store")
        self.key_prefix = (self.key_prefix or "").strip('/')
        if not self.key_prefix:
            raise ValueError("key_prefix cannot be empty")
        if bool(self.access_key_id) != bool(self.secret_access_key):
            raise ValueError("access_key_id and secret_access_key must be set together")


@dataclass
class StagingConfig:
    """Staging (private cache) configuration."""
    cache_dir: str = field(default_factory=lambda: str(Path(tempfile.gettempdir()) / "s3_photo_sync"))

    @property
    def cache_path(self) -> Path:
        """Get cache directory as Path object."""
        return Path(self.cache_dir).expanduser()


@dataclass
class SyncConfig:
    """Batch execution configuration."""
    max_workers: int = 3
    max_retries: int = 0
    retry_delay: float = 1.0

    def __post_init__(self):
        """Validate sync configuration."""
        if not 1 <= self.max_workers <= 16:
            raise ValueError("max_workers must be between 1 and 16")
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.retry_delay < 0:
            raise ValueError("retry_delay cannot be negative")


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    json: bool = False

    def __post_init__(self):
        """Validate logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid logging level: {self.level}. Must be one of {valid_levels}")


@dataclass
class SyncAppConfig:
    """Main application configuration."""
    object_store: ObjectStoreConfig
    staging: StagingConfig = field(default_factory=StagingConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, config_path: str, validate: bool = True) -> 'SyncAppConfig':
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file
            validate: Whether to validate against JSON schema

        Returns:
            SyncAppConfig instance
        """
        try:
            with open(config_path, 'r') as f:
                config_dict = yaml.safe_load(f)
        except (yaml.YAMLError, IOError, OSError) as e:
            raise ConfigurationError(f"Failed to load configuration file '{config_path}': {e}") from e

        if config_dict is None:
            raise ConfigurationError(f"Configuration file '{config_path}' is empty or invalid")

        config_dict = cls._apply_env_overrides(config_dict)

        if validate:
            cls._validate_schema(config_dict)

        return cls.from_dict(config_dict)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'SyncAppConfig':
        """
        Create configuration from dictionary.

        Args:
            config_dict: Configuration dictionary

        Returns:
            SyncAppConfig instance
        """
        object_store_dict = config_dict.get('object_store', {})
        staging_dict = config_dict.get('staging') or {}
        sync_dict = config_dict.get('sync') or {}
        logging_dict = config_dict.get('logging') or {}

        try:
            return cls(
                object_store=ObjectStoreConfig(**object_store_dict),
                staging=StagingConfig(**staging_dict),
                sync=SyncConfig(**sync_dict),
                logging=LoggingConfig(**logging_dict),
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @staticmethod
    def _validate_schema(config_dict: Dict[str, Any]) -> None:
        """Validate configuration against JSON schema."""
        schema_path = Path(__file__).parent / 'config_schema.json'
        try:
            with open(schema_path, 'r') as f:
                schema = json.load(f)
        except (IOError, OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load configuration schema for validation: {e}")
            return

        try:
            jsonschema.validate(instance=config_dict, schema=schema)
            logger.debug("Configuration validated against schema")
        except jsonschema.ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e.message}\n"
                f"Path: {'.'.join(str(p) for p in e.path)}"
            ) from e

    @staticmethod
    def _apply_env_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration dictionary."""
        config = json.loads(json.dumps(config_dict))

        if not config.get('object_store'):
            config['object_store'] = {}
        object_store = config['object_store']

        overrides = {
            'bucket': 'S3_SYNC_BUCKET',
            'region': 'AWS_REGION',
            'endpoint_url': 'S3_SYNC_ENDPOINT_URL',
            'access_key_id': 'AWS_ACCESS_KEY_ID',
            'secret_access_key': 'AWS_SECRET_ACCESS_KEY',
            'identity_pool_id': 'S3_SYNC_IDENTITY_POOL_ID',
        }
        for key, env_name in overrides.items():
            value = os.getenv(env_name)
            if value:
                object_store[key] = value

        return config
