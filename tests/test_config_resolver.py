"""
Tests for deploy configuration resolution.
"""
import json
import logging

import pytest

from iis_deploy.api.exceptions import ConfigError, ConfigErrorKind
from iis_deploy.constants import ErrorCode
from iis_deploy.core.config_resolver import ConfigResolver, config_file_name, read_configuration

from conftest import VALID_CONFIG


class TestConfigFileName:

    def test_blank_name_is_base_file(self):
        assert config_file_name(None) == "deploy.config.json"
        assert config_file_name("  ") == "deploy.config.json"

    def test_named_variant(self):
        assert config_file_name(" prod ") == "deploy.prod.config.json"


class TestReadConfiguration:
    """Loading a single configuration file."""

    def test_valid_file(self, tmp_path, write_config):
        path = write_config(tmp_path)

        config = read_configuration(path)

        assert config.server == "web01"
        assert config.exclude_from_cleanup == ("web.config", "logs", "App_Data")
        assert config.exclude_from_copy == ("appsettings.json",)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            read_configuration(tmp_path / "deploy.config.json")

        assert exc_info.value.kind == ConfigErrorKind.FILE_MISSING
        assert exc_info.value.error_code == ErrorCode.CONFIG_FILE_MISSING

    def test_malformed_json(self, tmp_path):
        """Should report a parse error for malformed JSON."""
        path = tmp_path / "deploy.config.json"
        path.write_text("{ server: ", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            read_configuration(path)

        assert exc_info.value.kind == ConfigErrorKind.PARSE_ERROR
        assert exc_info.value.path == str(path)

    def test_non_object_json(self, tmp_path, write_config):
        path = write_config(tmp_path, data=["server"])

        with pytest.raises(ConfigError) as exc_info:
            read_configuration(path)

        assert exc_info.value.kind == ConfigErrorKind.PARSE_ERROR

    def test_missing_required_field(self, tmp_path, write_config):
        """Should name the missing field."""
        data = dict(VALID_CONFIG)
        del data["poolName"]
        path = write_config(tmp_path, data=data)

        with pytest.raises(ConfigError) as exc_info:
            read_configuration(path)

        assert exc_info.value.kind == ConfigErrorKind.VALIDATION_ERROR
        assert "poolName is required" in exc_info.value.message

    def test_wrong_type(self, tmp_path, write_config):
        data = dict(VALID_CONFIG, ServerName=1, SERVER=42)
        del data["server"]
        path = write_config(tmp_path, data=data)

        with pytest.raises(ConfigError) as exc_info:
            read_configuration(path)

        assert exc_info.value.kind == ConfigErrorKind.VALIDATION_ERROR
        assert "server" in exc_info.value.message

    def test_utf8_bom_accepted(self, tmp_path):
        path = tmp_path / "deploy.config.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps(VALID_CONFIG).encode("utf-8"))

        assert read_configuration(path).pool_name == "AppPool"


class TestConfigResolver:
    """Configuration selection with fallback."""

    def test_blank_name_uses_base(self, tmp_path, write_config):
        write_config(tmp_path)

        resolution = ConfigResolver(tmp_path).resolve("")

        assert resolution.file_name == "deploy.config.json"
        assert not resolution.fell_back
        assert resolution.notice is None

    def test_named_variant_used_when_present(self, tmp_path, write_config):
        write_config(tmp_path)
        write_config(tmp_path, data=dict(VALID_CONFIG, server="web02"), name="deploy.prod.config.json")

        resolution = ConfigResolver(tmp_path).resolve("prod")

        assert resolution.config.server == "web02"
        assert resolution.file_name == "deploy.prod.config.json"
        assert resolution.requested_name == "prod"
        assert not resolution.fell_back

    def test_missing_variant_falls_back_with_notice(self, tmp_path, write_config, caplog):
        """Should use the base file and produce exactly one notice."""
        write_config(tmp_path)

        with caplog.at_level(logging.WARNING):
            resolution = ConfigResolver(tmp_path).resolve("staging")

        assert resolution.fell_back
        assert resolution.file_name == "deploy.config.json"
        assert resolution.notice == (
            "Configuration 'staging' not found. File 'deploy.staging.config.json' does not exist. "
            "Using default: deploy.config.json"
        )
        assert sum("staging" in r.getMessage() for r in caplog.records) == 1

    def test_fallback_without_base_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            ConfigResolver(tmp_path).resolve("staging")

        assert exc_info.value.kind == ConfigErrorKind.FILE_MISSING

    def test_invalid_named_variant_does_not_fall_back(self, tmp_path, write_config):
        """A present but broken variant is an error, not a fallback."""
        write_config(tmp_path)
        (tmp_path / "deploy.prod.config.json").write_text("not json", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            ConfigResolver(tmp_path).resolve("prod")

        assert exc_info.value.kind == ConfigErrorKind.PARSE_ERROR

    def test_create_default(self, tmp_path):
        resolver = ConfigResolver(tmp_path)

        path = resolver.create_default()

        assert path == tmp_path / "deploy.config.json"
        assert json.loads(path.read_text(encoding="utf-8"))["poolName"] == ""
        with pytest.raises(FileExistsError):
            resolver.create_default()

    def test_create_named_default_with_force(self, tmp_path):
        resolver = ConfigResolver(tmp_path)
        target = tmp_path / "deploy.qa.config.json"
        target.write_text("{}", encoding="utf-8")

        path = resolver.create_default("qa", force=True)

        assert path == target
        assert "server" in json.loads(target.read_text(encoding="utf-8"))
