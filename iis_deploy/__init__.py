"""IIS Deploy - Build a .NET project and deploy it to an IIS server.

Validates operator credentials against the target server, publishes the
project, then runs the backup/copy/cleanup deployment script and streams
its progress back to the caller.
"""

from .__version__ import __version__, __version_info__, __license__

# Exceptions
from .api.exceptions import (
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

# Core API
from .api.deployer import Deployer, deploy
from .core import (
    ConfigResolver,
    CredentialValidator,
    BuildOrchestrator,
    DeployExecutor,
)
from .services import PipelineCoordinator, PipelineRun, CredentialRequest

# Data models
from .constants import BuildStyle, PipelineState, PipelineStage
from .models import (
    DeployConfiguration,
    Credentials,
    ExecutionResult,
    BuildArtifact,
    ConfigResolution,
    PipelineResult,
    ToolSettings,
)
from .utils.secret_utils import SecretBuffer

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__license__",

    # Main classes
    "Deployer",
    "ConfigResolver",
    "CredentialValidator",
    "BuildOrchestrator",
    "DeployExecutor",
    "PipelineCoordinator",
    "PipelineRun",
    "CredentialRequest",

    # Core API functions
    "deploy",

    # Data models
    "BuildStyle",
    "PipelineState",
    "PipelineStage",
    "DeployConfiguration",
    "Credentials",
    "ExecutionResult",
    "BuildArtifact",
    "ConfigResolution",
    "PipelineResult",
    "ToolSettings",
    "SecretBuffer",

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
