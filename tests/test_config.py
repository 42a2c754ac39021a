"""Tests for configuration management."""

import json
import logging
from pathlib import Path

import pytest
import yaml

from wblocks.config import (
    DEFAULT_CONFIG_DIR,
    DEFAULT_CONFIG_FILE,
    DEFAULT_SCRIPTS_DIR,
    ConfigLoadError,
    ValidationError,
    WBlocksConfig,
    _config_to_dict,
    clear_config_cache,
    export_config_json,
    export_config_yaml,
    get_config,
    get_config_path,
    load_config,
    save_config,
    set_config,
    set_config_value,
    validate_config,
)


class TestConfigConstants:
    """Test configuration constants."""

    def test_default_config_dir(self):
        """Test default config directory."""
        assert DEFAULT_CONFIG_DIR == Path.home() / ".config" / "wblocks"

    def test_default_config_file(self):
        """Test default config file."""
        assert DEFAULT_CONFIG_FILE == "config.toml"

    def test_config_path_default(self, monkeypatch):
        """Test the config path without an override."""
        monkeypatch.delenv("WBLOCKS_CONFIG_DIR", raising=False)

        assert get_config_path() == DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE

    def test_config_path_env_override(self, tmp_path, monkeypatch):
        """Test that WBLOCKS_CONFIG_DIR moves the config file."""
        monkeypatch.setenv("WBLOCKS_CONFIG_DIR", str(tmp_path))

        assert get_config_path() == tmp_path / "config.toml"

    def test_default_scripts_dir(self):
        """Test scripts load from ./blocks by default."""
        assert DEFAULT_SCRIPTS_DIR == Path("blocks")


class TestValidationError:
    """Test ValidationError dataclass."""

    def test_validation_error_str(self):
        """Test ValidationError string representation."""
        error = ValidationError(field="shell.program", message="missing", severity="warning")
        assert str(error) == "[WARNING] shell.program: missing"


class TestDefaults:
    """Test default configuration values."""

    def test_default_config(self):
        """Test the default configuration values."""
        config = WBlocksConfig()

        assert config.scripts.directory == Path("blocks")
        assert config.scripts.hidden_marker == "."
        assert config.scripts.pattern == "*"
        assert config.scripts.fatal_missing_dir is True
        assert config.timers.heartbeat_enabled is True
        assert config.timers.heartbeat_interval == 0.01
        assert config.shell.program == "powershell"
        assert config.shell.args == ["-Command"]
        assert config.shell.timeout is None

    def test_sections_not_shared(self):
        """Test that mutable defaults are per instance."""
        first = WBlocksConfig()
        second = WBlocksConfig()
        first.shell.args.append("-NoProfile")
        first.scripts.settings["x"] = 1

        assert second.shell.args == ["-Command"]
        assert second.scripts.settings == {}


class TestLoadConfig:
    """Test loading configuration."""

    def test_load_missing_file_gives_defaults(self, tmp_path):
        """Test that a missing file yields defaults."""
        config = load_config(tmp_path / "nope.toml")

        assert config.scripts.directory == Path("blocks")

    def test_load_from_file(self, tmp_path):
        """Test loading every section from TOML."""
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            '[scripts]\n'
            'directory = "/opt/blocks"\n'
            'pattern = "*.py"\n'
            'fatal_missing_dir = false\n'
            '\n'
            '[scripts.settings]\n'
            'city = "Bergen"\n'
            '\n'
            '[timers]\n'
            'heartbeat_interval = 0.05\n'
            '\n'
            '[shell]\n'
            'program = "pwsh"\n'
            'args = ["-NoProfile", "-Command"]\n'
            'timeout = 30.0\n'
            '\n'
            '[logging]\n'
            'level = "DEBUG"\n'
            'file = "/tmp/wblocks.log"\n'
        )

        config = load_config(config_file)

        assert config.scripts.directory == Path("/opt/blocks")
        assert config.scripts.pattern == "*.py"
        assert config.scripts.fatal_missing_dir is False
        assert config.scripts.settings == {"city": "Bergen"}
        assert config.timers.heartbeat_interval == 0.05
        assert config.shell.program == "pwsh"
        assert config.shell.args == ["-NoProfile", "-Command"]
        assert config.shell.timeout == 30.0
        assert config.logging.level == "DEBUG"
        assert config.logging.file == Path("/tmp/wblocks.log")

    def test_unknown_key_ignored(self, tmp_path, caplog):
        """Test that unknown keys are ignored with a warning."""
        config_file = tmp_path / "config.toml"
        config_file.write_text('[shell]\ncolour = "blue"\n')

        with caplog.at_level(logging.WARNING, logger="wblocks.config"):
            config = load_config(config_file)

        assert not hasattr(config.shell, "colour")
        assert "Ignoring unknown configuration key: colour" in caplog.text

    def test_broken_file_warns(self, tmp_path, caplog):
        """Test that a broken file falls back to defaults when not strict."""
        config_file = tmp_path / "config.toml"
        config_file.write_text("[scripts\n")

        with caplog.at_level(logging.WARNING, logger="wblocks.config"):
            config = load_config(config_file)

        assert config.scripts.directory == Path("blocks")
        assert "Failed to load config" in caplog.text

    def test_broken_file_strict(self, tmp_path):
        """Test that a broken file raises in strict mode."""
        config_file = tmp_path / "config.toml"
        config_file.write_text("[scripts\n")

        with pytest.raises(ConfigLoadError) as exc_info:
            load_config(config_file, strict=True)

        assert exc_info.value.path == config_file

    def test_config_dir_env_selects_file(self, tmp_path, monkeypatch):
        """Test that WBLOCKS_CONFIG_DIR picks the default file."""
        (tmp_path / "config.toml").write_text('[shell]\nprogram = "bash"\n')
        monkeypatch.setenv("WBLOCKS_CONFIG_DIR", str(tmp_path))

        config = load_config()

        assert config.shell.program == "bash"
        assert config.config_dir == tmp_path


class TestEnvironmentOverrides:
    """Test environment variable overrides."""

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        """Test that environment variables win over the file."""
        config_file = tmp_path / "config.toml"
        config_file.write_text('[scripts]\ndirectory = "from-file"\n')
        monkeypatch.setenv("WBLOCKS_SCRIPTS_DIR", "from-env")

        config = load_config(config_file)

        assert config.scripts.directory == Path("from-env")

    def test_env_booleans(self, monkeypatch, tmp_path):
        """Test boolean parsing."""
        monkeypatch.setenv("WBLOCKS_FATAL_MISSING_DIR", "no")
        monkeypatch.setenv("WBLOCKS_HEARTBEAT_ENABLED", "0")

        config = load_config(tmp_path / "none.toml")

        assert config.scripts.fatal_missing_dir is False
        assert config.timers.heartbeat_enabled is False

    def test_env_numbers(self, monkeypatch, tmp_path):
        """Test numeric parsing."""
        monkeypatch.setenv("WBLOCKS_HEARTBEAT_INTERVAL", "0.2")
        monkeypatch.setenv("WBLOCKS_SHELL_TIMEOUT", "15")

        config = load_config(tmp_path / "none.toml")

        assert config.timers.heartbeat_interval == 0.2
        assert config.shell.timeout == 15.0

    def test_env_invalid_number_ignored(self, monkeypatch, tmp_path, caplog):
        """Test that an invalid number keeps the default."""
        monkeypatch.setenv("WBLOCKS_HEARTBEAT_INTERVAL", "fast")

        with caplog.at_level(logging.WARNING, logger="wblocks.config"):
            config = load_config(tmp_path / "none.toml")

        assert config.timers.heartbeat_interval == 0.01
        assert "WBLOCKS_HEARTBEAT_INTERVAL" in caplog.text

    def test_env_shell_and_logging(self, monkeypatch, tmp_path):
        """Test string overrides."""
        monkeypatch.setenv("WBLOCKS_SHELL", "pwsh")
        monkeypatch.setenv("WBLOCKS_LOG_LEVEL", "debug")
        monkeypatch.setenv("WBLOCKS_SCRIPTS_PATTERN", "*.py")

        config = load_config(tmp_path / "none.toml")

        assert config.shell.program == "pwsh"
        assert config.logging.level == "DEBUG"
        assert config.scripts.pattern == "*.py"


class TestSaveConfig:
    """Test saving configuration."""

    def test_save_and_load_roundtrip(self, tmp_path):
        """Test that a saved config loads back with the same values."""
        config = WBlocksConfig()
        config.scripts.directory = tmp_path / "blocks"
        config.scripts.settings = {"units": "metric"}
        config.shell.program = "pwsh"
        config_file = tmp_path / "out" / "config.toml"

        save_config(config, config_file)
        loaded = load_config(config_file)

        assert config_file.read_text().startswith("# wblocks configuration")
        assert loaded.scripts.directory == tmp_path / "blocks"
        assert loaded.scripts.settings == {"units": "metric"}
        assert loaded.shell.program == "pwsh"
        assert loaded.shell.timeout is None
        assert loaded.logging.file is None

    def test_save_default_path(self, tmp_path):
        """Test saving to config_dir when no path is given."""
        config = WBlocksConfig()
        config.config_dir = tmp_path

        save_config(config)

        assert (tmp_path / "config.toml").exists()


class TestSetConfigValue:
    """Test setting single values."""

    def test_set_boolean_value(self, tmp_path):
        """Test setting a boolean."""
        config_file = tmp_path / "config.toml"

        set_config_value("timers", "heartbeat_enabled", "false", config_file)

        assert load_config(config_file).timers.heartbeat_enabled is False

    def test_set_float_value(self, tmp_path):
        """Test setting a float, including the optional timeout."""
        config_file = tmp_path / "config.toml"

        set_config_value("timers", "heartbeat_interval", "0.5", config_file)
        set_config_value("shell", "timeout", "12", config_file)

        loaded = load_config(config_file)
        assert loaded.timers.heartbeat_interval == 0.5
        assert loaded.shell.timeout == 12.0

    def test_set_path_value(self, tmp_path):
        """Test setting the scripts directory."""
        config_file = tmp_path / "config.toml"

        set_config_value("scripts", "directory", "/srv/blocks", config_file)

        assert load_config(config_file).scripts.directory == Path("/srv/blocks")

    def test_set_list_value(self, tmp_path):
        """Test setting the shell arguments."""
        config_file = tmp_path / "config.toml"

        set_config_value("shell", "args", "-NoProfile, -Command", config_file)

        assert load_config(config_file).shell.args == ["-NoProfile", "-Command"]

    def test_set_default_path_follows_env(self, tmp_path):
        """Test that without a path the value lands in the WBLOCKS_CONFIG_DIR file."""
        set_config_value("shell", "program", "pwsh")

        assert get_config_path() == tmp_path / "config" / "config.toml"
        assert load_config(get_config_path()).shell.program == "pwsh"

    def test_set_invalid_section(self, tmp_path):
        """Test that an unknown section raises ValueError."""
        with pytest.raises(ValueError, match="Unknown configuration section"):
            set_config_value("nope", "key", "value", tmp_path / "config.toml")

    def test_set_invalid_key(self, tmp_path):
        """Test that an unknown key raises ValueError."""
        with pytest.raises(ValueError, match="Unknown configuration key"):
            set_config_value("shell", "nope", "value", tmp_path / "config.toml")


class TestValidateConfig:
    """Test configuration validation."""

    def _valid_config(self, tmp_path) -> WBlocksConfig:
        config = WBlocksConfig()
        config.scripts.directory = tmp_path
        config.shell.program = "sh"
        return config

    def test_valid_config(self, tmp_path, monkeypatch):
        """Test that a valid configuration has no errors."""
        monkeypatch.setattr("wblocks.config.shutil.which", lambda name: f"/usr/bin/{name}")

        assert validate_config(self._valid_config(tmp_path)) == []

    def test_missing_scripts_dir_is_error(self, tmp_path, monkeypatch):
        """Test that a missing scripts directory is an error when fatal."""
        monkeypatch.setattr("wblocks.config.shutil.which", lambda name: f"/usr/bin/{name}")
        config = self._valid_config(tmp_path)
        config.scripts.directory = tmp_path / "missing"

        errors = validate_config(config)

        assert [(e.field, e.severity) for e in errors] == [("scripts.directory", "error")]

    def test_missing_scripts_dir_warning_when_not_fatal(self, tmp_path, monkeypatch):
        """Test that a missing directory is only a warning when not fatal."""
        monkeypatch.setattr("wblocks.config.shutil.which", lambda name: f"/usr/bin/{name}")
        config = self._valid_config(tmp_path)
        config.scripts.directory = tmp_path / "missing"
        config.scripts.fatal_missing_dir = False

        errors = validate_config(config)

        assert [(e.field, e.severity) for e in errors] == [("scripts.directory", "warning")]

    def test_scripts_path_is_file(self, tmp_path, monkeypatch):
        """Test that a file in place of the directory is an error."""
        monkeypatch.setattr("wblocks.config.shutil.which", lambda name: f"/usr/bin/{name}")
        config = self._valid_config(tmp_path)
        config.scripts.directory = tmp_path / "file.txt"
        config.scripts.directory.write_text("x")

        errors = validate_config(config)

        assert errors[0].message.startswith("Scripts path is not a directory")

    def test_shell_not_found_warning(self, tmp_path, monkeypatch):
        """Test that a shell missing from PATH is a warning."""
        monkeypatch.setattr("wblocks.config.shutil.which", lambda name: None)

        errors = validate_config(self._valid_config(tmp_path))

        assert [(e.field, e.severity) for e in errors] == [("shell.program", "warning")]

    def test_invalid_values(self, tmp_path, monkeypatch):
        """Test negative heartbeat, bad timeout and bad log level."""
        monkeypatch.setattr("wblocks.config.shutil.which", lambda name: f"/usr/bin/{name}")
        config = self._valid_config(tmp_path)
        config.timers.heartbeat_interval = -1
        config.shell.timeout = 0
        config.logging.level = "LOUD"

        fields = {e.field for e in validate_config(config) if e.severity == "error"}

        assert fields == {"timers.heartbeat_interval", "shell.timeout", "logging.level"}

    def test_empty_shell_program(self, tmp_path):
        """Test that an empty shell program is an error."""
        config = self._valid_config(tmp_path)
        config.shell.program = ""

        errors = validate_config(config)

        assert [(e.field, e.severity) for e in errors] == [("shell.program", "error")]


class TestExport:
    """Test configuration export."""

    def test_config_to_dict_structure(self):
        """Test the dictionary has every section."""
        data = _config_to_dict(WBlocksConfig())

        assert set(data) == {"config_dir", "scripts", "timers", "shell", "logging"}
        assert data["scripts"]["directory"] == "blocks"

    def test_export_config_json(self):
        """Test JSON export."""
        data = json.loads(export_config_json(WBlocksConfig()))

        assert data["shell"]["program"] == "powershell"
        assert data["shell"]["timeout"] is None

    def test_export_config_yaml(self):
        """Test YAML export."""
        data = yaml.safe_load(export_config_yaml(WBlocksConfig()))

        assert data["timers"]["heartbeat_interval"] == 0.01


class TestGlobalConfig:
    """Test the cached global configuration."""

    def test_get_config_cached(self):
        """Test that get_config returns the same instance until cleared."""
        first = get_config()

        assert get_config() is first

        clear_config_cache()
        assert get_config() is not first

    def test_set_config(self):
        """Test replacing the global configuration."""
        config = WBlocksConfig()
        set_config(config)

        assert get_config() is config
