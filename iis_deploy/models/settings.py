"""Tool settings model

Locates the external programs the pipeline drives. Values come from
defaults, then ``.iis-deploy.yaml`` in the project directory, then
``IIS_DEPLOY_*`` environment variables, then explicit overrides.
"""

import os
import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..constants import (
    DEFAULT_DEPLOY_SCRIPT,
    DEFAULT_DOTNET,
    DEFAULT_MSBUILD,
    DEFAULT_SCRIPTS_DIR,
    DEFAULT_SHELL,
    DEFAULT_VALIDATE_SCRIPT,
    ENV_DEPLOY_SCRIPT,
    ENV_DOTNET,
    ENV_MSBUILD,
    ENV_SCRIPTS_DIR,
    ENV_SHELL,
    ENV_VALIDATE_SCRIPT,
    SETTINGS_FILE_NAME,
)


def _as_command(value: Union[str, List[str], None], default: List[str]) -> List[str]:
    if value is None or value == "" or value == []:
        return list(default)
    if isinstance(value, str):
        return shlex.split(value, posix=(os.name != "nt"))
    return [str(v) for v in value]


@dataclass
class ToolSettings:
    """Paths and commands for the scripts and build tools"""

    scripts_dir: Path = field(default_factory=lambda: Path(DEFAULT_SCRIPTS_DIR))
    validate_script: str = DEFAULT_VALIDATE_SCRIPT
    deploy_script: str = DEFAULT_DEPLOY_SCRIPT
    shell: List[str] = field(default_factory=lambda: list(DEFAULT_SHELL))
    dotnet: List[str] = field(default_factory=lambda: list(DEFAULT_DOTNET))
    msbuild: List[str] = field(default_factory=lambda: list(DEFAULT_MSBUILD))

    @property
    def validate_script_path(self) -> Path:
        path = Path(self.validate_script)
        return path if path.is_absolute() else self.scripts_dir / path

    @property
    def deploy_script_path(self) -> Path:
        path = Path(self.deploy_script)
        return path if path.is_absolute() else self.scripts_dir / path

    def missing_scripts(self) -> List[Path]:
        """Scripts that do not exist on disk"""
        return [p for p in (self.validate_script_path, self.deploy_script_path) if not p.is_file()]

    def with_overrides(self, **overrides: Any) -> 'ToolSettings':
        """Copy with non-None overrides applied"""
        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            if value is None:
                continue
            if key == "scripts_dir":
                changes[key] = Path(value).expanduser()
            elif key in ("shell", "dotnet", "msbuild"):
                changes[key] = _as_command(value, getattr(self, key))
            else:
                changes[key] = value
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scripts_dir": str(self.scripts_dir),
            "validate_script": self.validate_script,
            "deploy_script": self.deploy_script,
            "shell": self.shell,
            "dotnet": self.dotnet,
            "msbuild": self.msbuild,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> 'ToolSettings':
        """Create from a settings mapping; relative scripts_dir resolves against base_dir"""
        settings = cls() if base_dir is None else cls(scripts_dir=base_dir / DEFAULT_SCRIPTS_DIR)
        scripts_dir = data.get("scripts_dir")
        if scripts_dir:
            scripts_dir = Path(os.path.expandvars(str(scripts_dir))).expanduser()
            if base_dir is not None and not scripts_dir.is_absolute():
                scripts_dir = base_dir / scripts_dir
        return settings.with_overrides(
            scripts_dir=scripts_dir,
            validate_script=data.get("validate_script"),
            deploy_script=data.get("deploy_script"),
            shell=data.get("shell"),
            dotnet=data.get("dotnet"),
            msbuild=data.get("msbuild"),
        )

    @classmethod
    def load(cls, project_dir: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> 'ToolSettings':
        """Load settings for a project directory

        Args:
            project_dir: Directory searched for the settings file
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Merged settings

        Raises:
            ValueError: If the settings file is not a YAML mapping
        """
        environ = os.environ if environ is None else environ
        settings = cls()

        if project_dir is not None:
            settings = cls(scripts_dir=Path(project_dir) / DEFAULT_SCRIPTS_DIR)
            settings_path = Path(project_dir) / SETTINGS_FILE_NAME
            if settings_path.is_file():
                try:
                    with open(settings_path, "r", encoding="utf-8") as f:
                        data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid settings file: {settings_path}: {e}") from e
                if not isinstance(data, dict):
                    raise ValueError(f"Invalid settings file: {settings_path}")
                settings = cls.from_dict(data, base_dir=Path(project_dir))

        return settings.with_overrides(
            scripts_dir=environ.get(ENV_SCRIPTS_DIR) or None,
            validate_script=environ.get(ENV_VALIDATE_SCRIPT) or None,
            deploy_script=environ.get(ENV_DEPLOY_SCRIPT) or None,
            shell=environ.get(ENV_SHELL) or None,
            dotnet=environ.get(ENV_DOTNET) or None,
            msbuild=environ.get(ENV_MSBUILD) or None,
        )
