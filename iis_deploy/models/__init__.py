# iis_deploy/models/__init__.py
"""Data models for iis-deploy"""

from .config import DeployConfiguration, normalize_exclusions
from .credentials import Credentials
from .result import (
    ExecutionResult,
    ExecutionResultBuilder,
    BuildArtifact,
    ConfigResolution,
    PipelineResult,
)
from .settings import ToolSettings

__all__ = [
    # Config models
    "DeployConfiguration",
    "normalize_exclusions",
    "ToolSettings",

    # Credentials
    "Credentials",

    # Result models
    "ExecutionResult",
    "ExecutionResultBuilder",
    "BuildArtifact",
    "ConfigResolution",
    "PipelineResult",
]
