"""Tests for koncur logging configuration and setup."""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from koncur.logging import (
    CONFIG_DIR,
    LoggingError,
    apply_level_override,
    create_log_directories,
    get_config_path,
    load_config,
    setup_logging,
)


def _write_config(directory: Path, config: dict) -> Path:
    path = directory / "logging-custom.yaml"
    path.write_text(yaml.safe_dump(config))
    return path


def _handler_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "handlers": {"console": {"class": "logging.StreamHandler", "level": level}},
        "loggers": {"koncur_test_logger": {"level": level, "handlers": ["console"]}},
    }


class TestLoggingConfiguration:
    """Test logging configuration file selection and loading."""

    def test_config_dir_ships_with_package(self):
        """Test that the configuration files are part of the package."""
        assert (CONFIG_DIR / "logging.yaml").is_file()
        assert (CONFIG_DIR / "logging-dev.yaml").is_file()
        assert (CONFIG_DIR / "logging-test.yaml").is_file()

    def test_get_config_path_default(self):
        """Test default config path selection without an environment."""
        with patch.dict("os.environ", {}, clear=True):
            assert get_config_path() == CONFIG_DIR / "logging.yaml"

    @pytest.mark.parametrize(
        ("environment", "config_name"),
        [
            ("dev", "logging-dev.yaml"),
            ("development", "logging-dev.yaml"),
            ("test", "logging-test.yaml"),
            ("production", "logging.yaml"),
            ("staging", "logging.yaml"),
        ],
    )
    def test_get_config_path_from_environment(self, environment, config_name):
        """Test environment-specific selection with fallback to the default."""
        with patch.dict("os.environ", {"KONCUR_ENV": environment}):
            assert get_config_path() == CONFIG_DIR / config_name

    def test_explicit_environment_overrides_env_var(self):
        """Test that an explicit environment wins over KONCUR_ENV."""
        with patch.dict("os.environ", {"KONCUR_ENV": "dev"}):
            assert get_config_path(environment="test") == CONFIG_DIR / "logging-test.yaml"

    def test_missing_config_dir_raises_error(self, tmp_path):
        """Test that a directory without configs raises LoggingError."""
        with pytest.raises(LoggingError, match="No logging configuration found"):
            get_config_path(config_dir=tmp_path / "nowhere")

    def test_load_config_valid_yaml(self):
        """Test loading the shipped default configuration."""
        config = load_config(CONFIG_DIR / "logging.yaml")

        assert config["version"] == 1
        assert "koncur" in config["loggers"]

    def test_load_config_invalid_yaml_raises_error(self, tmp_path):
        """Test that invalid YAML raises LoggingError."""
        path = tmp_path / "broken.yaml"
        path.write_text("invalid: yaml: content: [")

        with pytest.raises(LoggingError, match="Failed to parse YAML config"):
            load_config(path)

    def test_load_config_non_mapping_raises_error(self, tmp_path):
        """Test that a configuration must be a mapping."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(LoggingError, match="Invalid configuration format"):
            load_config(path)

    def test_load_config_nonexistent_file_raises_error(self):
        """Test that a nonexistent file raises LoggingError."""
        with pytest.raises(LoggingError, match="Failed to read config file"):
            load_config(Path("/nonexistent/config.yaml"))

    def test_create_log_directories_creates_missing_dirs(self, tmp_path):
        """Test that log directories are created when missing."""
        log_file = tmp_path / "logs" / "koncur.log"
        config = {"handlers": {"file": {"filename": str(log_file)}}}

        create_log_directories(config)

        assert log_file.parent.is_dir()


class TestLevelOverride:
    """Test apply_level_override."""

    def test_lowers_handler_levels(self):
        """Test that a more verbose level reaches the handlers."""
        config = _handler_config("INFO")

        apply_level_override(config, "debug")

        assert config["loggers"]["koncur_test_logger"]["level"] == "DEBUG"
        assert config["handlers"]["console"]["level"] == "DEBUG"

    def test_never_raises_handler_levels(self):
        """Test that a quieter level leaves verbose handlers alone."""
        config = _handler_config("DEBUG")

        apply_level_override(config, "WARNING")

        assert config["loggers"]["koncur_test_logger"]["level"] == "WARNING"
        assert config["handlers"]["console"]["level"] == "DEBUG"

    def test_invalid_level_raises_error(self):
        """Test that an unknown level name is rejected."""
        with pytest.raises(LoggingError, match="Invalid log level"):
            apply_level_override(_handler_config("INFO"), "LOUD")


class TestLoggingSetup:
    """Test setup_logging."""

    def test_setup_logging_applies_level_override(self, tmp_path):
        """Test that the override reaches the configured logger."""
        config_path = _write_config(tmp_path, _handler_config("INFO"))

        setup_logging(config_path=config_path, level="DEBUG")

        assert logging.getLogger("koncur_test_logger").level == logging.DEBUG

    def test_setup_logging_with_test_environment(self):
        """Test that the test environment lets koncur records propagate."""
        setup_logging(environment="test")

        koncur_logger = logging.getLogger("koncur")
        assert koncur_logger.propagate
        assert koncur_logger.level == logging.DEBUG

    def test_setup_logging_fallback_on_config_error(self, capsys):
        """Test fallback to basic logging when the config cannot be loaded."""
        root_logger = logging.getLogger()
        original_handlers = root_logger.handlers[:]
        original_level = root_logger.level

        try:
            setup_logging(config_path="/nonexistent/config.yaml", level="INFO")

            captured = capsys.readouterr()
            assert "using basic console logging" in captured.err
        finally:
            root_logger.handlers = original_handlers
            root_logger.level = original_level

    def test_setup_logging_force_basic_mode(self):
        """Test that force_basic bypasses config loading."""
        root_logger = logging.getLogger()
        original_handlers = root_logger.handlers[:]
        original_level = root_logger.level

        try:
            setup_logging(force_basic=True, level="DEBUG")

            assert root_logger.level == logging.DEBUG
        finally:
            root_logger.handlers = original_handlers
            root_logger.level = original_level
