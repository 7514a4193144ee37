"""Deploy configuration resolution"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema

from ..api.exceptions import ConfigError, ConfigErrorKind
from ..constants import (
    CONFIG_FILE_NAME,
    MSG_CONFIG_FALLBACK,
    MSG_CONFIG_SELECTED,
    NAMED_CONFIG_FILE_PATTERN,
)
from ..models.config import DeployConfiguration
from ..models.result import ConfigResolution

_STRING_OR_LIST = {
    "anyOf": [
        {"type": "string"},
        {"type": "array", "items": {"type": ["string", "null"]}},
        {"type": "null"},
    ]
}

# Keys are lower-cased before validation
CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "server": {"type": ["string", "null"]},
        "poolname": {"type": ["string", "null"]},
        "appfolderlocation": {"type": ["string", "null"]},
        "backupfolderlocation": {"type": ["string", "null"]},
        "excludefromcleanup": _STRING_OR_LIST,
        "excludefromcopy": _STRING_OR_LIST,
        "defaultconfiguration": {"type": ["string", "null"]},
    },
}


def config_file_name(config_name: Optional[str] = None) -> str:
    """File name for a configuration variant; blank means the base file"""
    if config_name is None or not config_name.strip():
        return CONFIG_FILE_NAME
    return NAMED_CONFIG_FILE_PATTERN.format(name=config_name.strip())


def read_configuration(config_path: Union[str, Path]) -> DeployConfiguration:
    """
    Load and validate one configuration file

    Args:
        config_path: Path to a deploy.*.config.json file

    Returns:
        Validated DeployConfiguration

    Raises:
        ConfigError: FILE_MISSING, PARSE_ERROR or VALIDATION_ERROR
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise ConfigError(
            ConfigErrorKind.FILE_MISSING,
            f"Configuration file not found: {config_path}",
            str(config_path),
        )

    try:
        with open(config_path, "r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(
            ConfigErrorKind.PARSE_ERROR,
            f"Invalid JSON in configuration file: {e}",
            str(config_path),
        )
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(
            ConfigErrorKind.PARSE_ERROR,
            f"Failed to read configuration file: {e}",
            str(config_path),
        )

    if not isinstance(data, dict):
        raise ConfigError(
            ConfigErrorKind.PARSE_ERROR,
            "Failed to deserialize configuration file: expected a JSON object",
            str(config_path),
        )

    lowered: Dict[str, Any] = {str(k).lower(): v for k, v in data.items()}
    try:
        jsonschema.validate(lowered, CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        field_name = ".".join(str(p) for p in e.absolute_path) or "configuration"
        raise ConfigError(
            ConfigErrorKind.VALIDATION_ERROR,
            f"Invalid value for {field_name} in {config_path.name}: {e.message}",
            str(config_path),
        )

    config = DeployConfiguration.from_dict(data, source_path=str(config_path))
    issues = config.validate()
    if issues:
        raise ConfigError(ConfigErrorKind.VALIDATION_ERROR, "; ".join(issues), str(config_path))

    return config


class ConfigResolver:
    """Selects and loads the deploy configuration for a project directory"""

    def __init__(self, base_dir: Union[str, Path]):
        """Initialize resolver

        Args:
            base_dir: Project directory holding deploy.config.json
        """
        self.base_dir = Path(base_dir)
        self.base_path = self.base_dir / CONFIG_FILE_NAME
        self.logger = logging.getLogger(self.__class__.__name__)

    def path_for(self, config_name: Optional[str] = None) -> Path:
        return self.base_dir / config_file_name(config_name)

    def base_exists(self) -> bool:
        return self.base_path.is_file()

    def resolve(self, config_name: Optional[str] = None) -> ConfigResolution:
        """
        Resolve the configuration for a run

        A blank name loads deploy.config.json. A name loads
        deploy.<name>.config.json when it exists; otherwise the base file is
        used and the resolution carries a fallback notice.

        Args:
            config_name: Optional configuration variant name

        Returns:
            ConfigResolution

        Raises:
            ConfigError: If the selected file is missing, malformed or invalid
        """
        name = config_name.strip() if config_name else None

        if not name:
            config = read_configuration(self.base_path)
            return ConfigResolution(config=config, config_path=self.base_path)

        named_path = self.path_for(name)
        if named_path.is_file():
            config = read_configuration(named_path)
            self.logger.info(MSG_CONFIG_SELECTED.format(file=named_path.name))
            return ConfigResolution(
                config=config,
                config_path=named_path,
                requested_name=name,
            )

        config = read_configuration(self.base_path)
        notice = MSG_CONFIG_FALLBACK.format(name=name, file=named_path.name)
        self.logger.warning(notice)
        return ConfigResolution(
            config=config,
            config_path=self.base_path,
            requested_name=name,
            fell_back=True,
            notice=notice,
        )

    def create_default(self, config_name: Optional[str] = None, force: bool = False) -> Path:
        """
        Write an empty configuration template

        Args:
            config_name: Variant name, or None for deploy.config.json
            force: Overwrite an existing file

        Returns:
            Path of the written file
        """
        path = self.path_for(config_name)
        if path.exists() and not force:
            raise FileExistsError(f"File already exists: {path}")

        self.base_dir.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(DeployConfiguration.template(), f, indent=2)
            f.write("\n")

        self.logger.info(f"Created {path}")
        return path
