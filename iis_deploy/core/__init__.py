"""Core functionality for iis-deploy"""

from .script_runner import ScriptRunner
from .config_resolver import ConfigResolver, read_configuration, config_file_name
from .credential_validator import CredentialValidator
from .solution_host import SolutionHost, MSBuildSolutionHost
from .build_orchestrator import BuildOrchestrator, publish_directory
from .deploy_executor import DeployExecutor, join_exclusions

__all__ = [
    "ScriptRunner",
    "ConfigResolver",
    "read_configuration",
    "config_file_name",
    "CredentialValidator",
    "SolutionHost",
    "MSBuildSolutionHost",
    "BuildOrchestrator",
    "publish_directory",
    "DeployExecutor",
    "join_exclusions",
]
