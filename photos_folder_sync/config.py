"""
Configuration management using dataclasses for type safety and validation.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, List
import yaml
import json
import os
import jsonschema
import logging

logger = logging.getLogger(__name__)

# Photos Library API limits for both list page size and batchCreate size
MAX_PAGE_SIZE = 50
MAX_BATCH_SIZE = 50

DEFAULT_MEDIA_EXTENSIONS = [
    '.png', '.jpg', '.jpeg', '.bmp', '.gif',
    '.wav', '.mid', '.midi', '.wma', '.mp3', '.ogg', '.rma',
    '.avi', '.mp4', '.divx', '.wmv',
]

MATCHERS = {"filename_contains", "filename_exact"}


@dataclass
class GooglePhotosConfig:
    """Google Photos Library API configuration."""
    credentials_file: str
    token_file: Optional[str] = None
    base_url: str = "https://photoslibrary.googleapis.com"
    timeout_seconds: float = 60.0
    exclude_non_app_created: bool = True

    def __post_init__(self):
        """Validate Google Photos configuration."""
        if not self.credentials_file:
            raise ValueError("credentials_file is required for Google Photos")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        creds_path = Path(self.credentials_file)
        if not creds_path.exists():
            logger.warning(f"Credentials file not found: {self.credentials_file}")


@dataclass
class SyncConfig:
    """Sync behaviour configuration."""
    root_dir: str
    page_size: int = MAX_PAGE_SIZE
    batch_size: int = MAX_BATCH_SIZE
    directory_workers: int = 1
    upload_workers: int = 1
    media_extensions: List[str] = field(default_factory=lambda: list(DEFAULT_MEDIA_EXTENSIONS))
    matcher: str = "filename_contains"
    include_root_files: bool = True
    description: str = ""

    def __post_init__(self):
        """Validate sync configuration."""
        if not self.root_dir:
            raise ValueError("root_dir is required")
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        if self.directory_workers < 1 or self.upload_workers < 1:
            raise ValueError("worker counts must be at least 1")
        if self.matcher not in MATCHERS:
            raise ValueError(f"Unknown matcher: {self.matcher}. Must be one of {sorted(MATCHERS)}")
        # Normalise to lowercase, dot-prefixed
        self.media_extensions = [
            ext.lower() if ext.startswith('.') else f".{ext.lower()}"
            for ext in self.media_extensions
        ]

    @property
    def root_path(self) -> Path:
        """Get sync root as Path object."""
        return Path(self.root_dir).expanduser()


@dataclass
class RetryConfig:
    """Backoff settings for idempotent read calls."""
    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: str = "photos_sync.log"
    enable_json: bool = False

    def __post_init__(self):
        """Validate logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Invalid logging level: {self.level}. Must be one of {valid_levels}")


@dataclass
class AppConfig:
    """Main sync configuration."""
    google_photos: GooglePhotosConfig
    sync: SyncConfig
    retry: RetryConfig = field(default_factory=RetryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, config_path: str, validate: bool = True,
                  overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> 'AppConfig':
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file
            validate: Whether to validate against JSON schema
            overrides: Per-section values (e.g. from the command line) that
                      take precedence over the file and the environment

        Returns:
            AppConfig instance
        """
        try:
            with open(config_path, 'r') as f:
                config_dict = yaml.safe_load(f)
        except (yaml.YAMLError, IOError, OSError) as e:
            raise ValueError(f"Failed to load configuration file '{config_path}': {e}") from e

        if config_dict is None:
            raise ValueError(f"Configuration file '{config_path}' is empty or invalid")

        if validate:
            cls._validate_schema(config_dict)

        config_dict = cls._apply_env_overrides(config_dict)
        for section, values in (overrides or {}).items():
            config_dict.setdefault(section, {}).update(
                {key: value for key, value in values.items() if value is not None}
            )

        return cls.from_dict(config_dict)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'AppConfig':
        """
        Create configuration from dictionary.

        Args:
            config_dict: Configuration dictionary

        Returns:
            AppConfig instance
        """
        google_photos_dict = config_dict.get('google_photos', {})
        sync_dict = config_dict.get('sync', {})
        retry_dict = config_dict.get('retry', {})
        logging_dict = config_dict.get('logging', {})

        return cls(
            google_photos=GooglePhotosConfig(**google_photos_dict),
            sync=SyncConfig(**sync_dict),
            retry=RetryConfig(**retry_dict),
            logging=LoggingConfig(**logging_dict)
        )

    @staticmethod
    def _validate_schema(config_dict: Dict[str, Any]) -> None:
        """Validate configuration against JSON schema."""
        try:
            schema_path = Path(__file__).parent / 'config_schema.json'
            if schema_path.exists():
                with open(schema_path, 'r') as f:
                    schema = json.load(f)

                jsonschema.validate(instance=config_dict, schema=schema)
                logger.debug("Configuration validated against schema")
        except jsonschema.ValidationError as e:
            raise ValueError(
                f"Configuration validation failed: {e.message}\n"
                f"Path: {'.'.join(str(p) for p in e.path)}"
            ) from e
        except (IOError, OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load configuration schema for validation: {e}")

    @staticmethod
    def _apply_env_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration dictionary."""
        config = json.loads(json.dumps(config_dict))

        config.setdefault('google_photos', {})
        config.setdefault('sync', {})

        env_credentials = os.getenv('GOOGLE_PHOTOS_CREDENTIALS_FILE')
        if env_credentials:
            config['google_photos']['credentials_file'] = env_credentials

        env_token = os.getenv('GOOGLE_PHOTOS_TOKEN_FILE')
        if env_token:
            config['google_photos']['token_file'] = env_token

        env_root = os.getenv('PHOTOS_SYNC_ROOT')
        if env_root:
            config['sync']['root_dir'] = env_root

        return config
