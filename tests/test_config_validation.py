"""
Tests for configuration validation.
"""
import pytest
import yaml

from photos_folder_sync.config import (
    AppConfig,
    GooglePhotosConfig,
    SyncConfig,
    RetryConfig,
    LoggingConfig,
    DEFAULT_MEDIA_EXTENSIONS,
)


class TestGooglePhotosConfig:
    """Tests for GooglePhotosConfig."""

    def test_google_photos_config_defaults(self):
        """Test default API settings."""
        config = GooglePhotosConfig(credentials_file="credentials.json")
        assert config.base_url == "https://photoslibrary.googleapis.com"
        assert config.exclude_non_app_created is True
        assert config.token_file is None

    def test_google_photos_config_empty_credentials(self):
        """Test config validation with empty credentials file."""
        with pytest.raises(ValueError, match="credentials_file is required"):
            GooglePhotosConfig(credentials_file="")

    def test_google_photos_config_bad_timeout(self):
        with pytest.raises(ValueError, match="timeout_seconds"):
            GooglePhotosConfig(credentials_file="credentials.json", timeout_seconds=0)


class TestSyncConfig:
    """Tests for SyncConfig."""

    def test_sync_config_defaults(self, tmp_path):
        config = SyncConfig(root_dir=str(tmp_path))
        assert config.batch_size == 50
        assert config.page_size == 50
        assert config.directory_workers == 1
        assert config.upload_workers == 1
        assert config.matcher == "filename_contains"
        assert config.media_extensions == DEFAULT_MEDIA_EXTENSIONS
        assert config.root_path == tmp_path

    def test_sync_config_requires_root(self):
        with pytest.raises(ValueError, match="root_dir is required"):
            SyncConfig(root_dir="")

    @pytest.mark.parametrize("batch_size", [0, 51])
    def test_sync_config_batch_size_bounds(self, batch_size):
        with pytest.raises(ValueError, match="batch_size"):
            SyncConfig(root_dir="photos", batch_size=batch_size)

    def test_sync_config_page_size_bounds(self):
        with pytest.raises(ValueError, match="page_size"):
            SyncConfig(root_dir="photos", page_size=100)

    def test_sync_config_workers(self):
        with pytest.raises(ValueError, match="worker counts"):
            SyncConfig(root_dir="photos", upload_workers=0)

    def test_sync_config_unknown_matcher(self):
        with pytest.raises(ValueError, match="Unknown matcher"):
            SyncConfig(root_dir="photos", matcher="content_hash")

    def test_sync_config_normalises_extensions(self):
        config = SyncConfig(root_dir="photos", media_extensions=["JPG", ".HEIC", ".png"])
        assert config.media_extensions == [".jpg", ".heic", ".png"]

    def test_sync_config_expands_user(self):
        config = SyncConfig(root_dir="~/Pictures")
        assert "~" not in str(config.root_path)


class TestRetryAndLoggingConfig:

    def test_retry_negative(self):
        with pytest.raises(ValueError):
            RetryConfig(max_retries=-1)

    def test_logging_config_invalid_level(self):
        """Test config validation with invalid level."""
        with pytest.raises(ValueError, match="Invalid logging level"):
            LoggingConfig(level="INVALID")

    def test_logging_config_case_insensitive(self):
        config = LoggingConfig(level="debug")
        assert config.level == "debug"


class TestAppConfig:
    """Tests for AppConfig."""

    def test_from_yaml(self, config_file, sample_config):
        config = AppConfig.from_yaml(str(config_file))

        assert config.sync.root_dir == sample_config['sync']['root_dir']
        assert config.sync.upload_workers == 2
        assert config.retry.max_retries == 2
        assert config.google_photos.timeout_seconds == 30

    def test_from_dict_minimal(self, tmp_path):
        config = AppConfig.from_dict({
            'google_photos': {'credentials_file': 'credentials.json'},
            'sync': {'root_dir': str(tmp_path)},
        })
        assert isinstance(config.retry, RetryConfig)
        assert config.logging.level == "INFO"

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="Failed to load configuration file"):
            AppConfig.from_yaml(str(tmp_path / 'missing.yaml'))

    def test_from_yaml_empty_file(self, tmp_path):
        config_path = tmp_path / 'empty.yaml'
        config_path.write_text("")
        with pytest.raises(ValueError, match="empty or invalid"):
            AppConfig.from_yaml(str(config_path))

    def test_schema_rejects_unknown_keys(self, tmp_path, sample_config):
        sample_config['sync']['delete_remote'] = True
        config_path = tmp_path / 'bad.yaml'
        config_path.write_text(yaml.dump(sample_config))
        with pytest.raises(ValueError, match="Configuration validation failed"):
            AppConfig.from_yaml(str(config_path))

    def test_schema_rejects_oversized_batch(self, tmp_path, sample_config):
        sample_config['sync']['batch_size'] = 500
        config_path = tmp_path / 'bad.yaml'
        config_path.write_text(yaml.dump(sample_config))
        with pytest.raises(ValueError, match="Configuration validation failed"):
            AppConfig.from_yaml(str(config_path))

    def test_env_overrides(self, config_file, monkeypatch, tmp_path):
        monkeypatch.setenv('PHOTOS_SYNC_ROOT', str(tmp_path / 'elsewhere'))
        monkeypatch.setenv('GOOGLE_PHOTOS_TOKEN_FILE', str(tmp_path / 'token.json'))

        config = AppConfig.from_yaml(str(config_file))

        assert config.sync.root_dir == str(tmp_path / 'elsewhere')
        assert config.google_photos.token_file == str(tmp_path / 'token.json')

    def test_overrides_beat_file_and_environment(self, config_file, monkeypatch, tmp_path):
        monkeypatch.setenv('PHOTOS_SYNC_ROOT', str(tmp_path / 'from-env'))

        config = AppConfig.from_yaml(
            str(config_file),
            overrides={'sync': {'root_dir': str(tmp_path / 'from-cli'), 'upload_workers': 4}}
        )

        assert config.sync.root_dir == str(tmp_path / 'from-cli')
        assert config.sync.upload_workers == 4

    def test_unset_overrides_are_ignored(self, config_file, sample_config, monkeypatch):
        monkeypatch.delenv('PHOTOS_SYNC_ROOT', raising=False)
        config = AppConfig.from_yaml(str(config_file), overrides={'sync': {'root_dir': None}})

        assert config.sync.root_dir == sample_config['sync']['root_dir']

    def test_override_supplies_missing_root_dir(self, tmp_path, sample_config, monkeypatch):
        monkeypatch.delenv('PHOTOS_SYNC_ROOT', raising=False)
        del sample_config['sync']['root_dir']
        path = tmp_path / 'no_root.yaml'
        path.write_text(yaml.dump(sample_config))

        config = AppConfig.from_yaml(str(path), overrides={'sync': {'root_dir': str(tmp_path)}})

        assert config.sync.root_dir == str(tmp_path)
