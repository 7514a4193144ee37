# iis_deploy/api/__init__.py
"""API layer for iis-deploy"""

from .exceptions import (
    IISDeployError,
    ConfigError,
    ConfigErrorKind,
    CredentialError,
    CredentialErrorKind,
    BuildError,
    BuildErrorKind,
    DeployError,
    DeployErrorKind,
    ScriptNotFoundError,
    UserCancelledError,
)
from .deployer import Deployer, deploy

__all__ = [
    # Main classes
    "Deployer",

    # Convenience functions
    "deploy",

    # Exceptions
    "IISDeployError",
    "ConfigError",
    "ConfigErrorKind",
    "CredentialError",
    "CredentialErrorKind",
    "BuildError",
    "BuildErrorKind",
    "DeployError",
    "DeployErrorKind",
    "ScriptNotFoundError",
    "UserCancelledError",
]
