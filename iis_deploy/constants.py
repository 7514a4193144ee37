"""Global constants for iis-deploy"""

from enum import Enum

APP_NAME = "iis-deploy"

# Deploy configuration files
CONFIG_FILE_NAME = "deploy.config.json"
NAMED_CONFIG_FILE_PATTERN = "deploy.{name}.config.json"

# Tool settings file, looked up in the project directory
SETTINGS_FILE_NAME = ".iis-deploy.yaml"

# Required deploy configuration fields (wire names)
REQUIRED_CONFIG_FIELDS = [
    "server",
    "poolName",
    "appFolderLocation",
    "backupFolderLocation",
]

# Exclusion list delimiters accepted in string form
EXCLUDE_DELIMITERS = (",", ";")

# Build defaults
DEFAULT_BUILD_CONFIGURATION = "Release"
PUBLISH_DIR_PARTS = ("bin", "{configuration}", "publish")

# SDK-style project markers
SDK_PROJECT_MARKERS = [
    '<Project Sdk="',
    'Sdk="Microsoft.NET.Sdk',
]
WEB_SDK_MARKER = "Microsoft.NET.Sdk.Web"
RUNNABLE_OUTPUT_TYPES = ["exe", "winexe", "0", "1"]

# External programs
DEFAULT_SCRIPTS_DIR = "Scripts"
DEFAULT_VALIDATE_SCRIPT = "test-credentials.ps1"
DEFAULT_DEPLOY_SCRIPT = "deploy-template.ps1"
DEFAULT_SHELL = ["powershell.exe", "-NoProfile", "-ExecutionPolicy", "Bypass", "-File"]
DEFAULT_DOTNET = ["dotnet"]
DEFAULT_MSBUILD = ["msbuild"]

# Script parameter flags
PARAM_SERVER = "-Server"
PARAM_USERNAME = "-Username"
PARAM_PASSWORD = "-PasswordBase64"
PARAM_TEST_PATH = "-TestPath"
PARAM_APP_POOL = "-AppPoolName"
PARAM_APP_FOLDER = "-AppFolderLocation"
PARAM_NEW_FILES = "-NewFilesPath"
PARAM_BACKUP_FOLDER = "-BackupFolder"
PARAM_EXCLUDE_CLEANUP = "-ExcludeFromCleanup"
PARAM_EXCLUDE_COPY = "-ExcludeFromCopy"

SECRET_MASK = "********"

# Prefixes for diagnostics relayed through the line sink
ERROR_LINE_PREFIX = "ERROR: "
EXCEPTION_LINE_PREFIX = "EXCEPTION: "

# Environment variables
ENV_SCRIPTS_DIR = "IIS_DEPLOY_SCRIPTS_DIR"
ENV_VALIDATE_SCRIPT = "IIS_DEPLOY_VALIDATE_SCRIPT"
ENV_DEPLOY_SCRIPT = "IIS_DEPLOY_DEPLOY_SCRIPT"
ENV_SHELL = "IIS_DEPLOY_SHELL"
ENV_DOTNET = "IIS_DEPLOY_DOTNET"
ENV_MSBUILD = "IIS_DEPLOY_MSBUILD"
ENV_USERNAME = "IIS_DEPLOY_USERNAME"

# Logging
LOG_FORMAT = "%(message)s"


class BuildStyle(Enum):
    """Project descriptor style, decides the build strategy"""
    SDK = "sdk"
    LEGACY = "legacy"


class PipelineState(Enum):
    """Pipeline coordinator states"""
    IDLE = "idle"
    CONFIG_RESOLVED = "config_resolved"
    CREDENTIALS_VALIDATED = "credentials_validated"
    BUILT = "built"
    DEPLOYING = "deploying"
    DEPLOYED = "deployed"
    FAILED = "failed"


class PipelineStage(Enum):
    """Pipeline stages, used to tag failures"""
    CONFIG = "config"
    CREDENTIALS = "credentials"
    BUILD = "build"
    DEPLOY = "deploy"


# Error codes
class ErrorCode:
    CONFIG_FILE_MISSING = "ID001"
    CONFIG_PARSE_ERROR = "ID002"
    CONFIG_VALIDATION_ERROR = "ID003"
    CREDENTIAL_PROCESS_FAILURE = "ID004"
    INVALID_CREDENTIALS = "ID005"
    BUILD_EXIT_CODE = "ID006"
    BUILD_ARTIFACT_MISSING = "ID007"
    BUILD_CONFIGURATION_NOT_FOUND = "ID008"
    BUILD_UNEXPECTED = "ID009"
    DEPLOY_PROCESS_FAILURE = "ID010"
    DEPLOY_NON_ZERO_EXIT = "ID011"
    SCRIPT_NOT_FOUND = "ID012"
    USER_CANCELLED = "ID013"


# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_WARNING = "⚠"
EMOJI_INFO = "ℹ"
EMOJI_ROCKET = "🚀"
EMOJI_SERVER = "🖥️"
EMOJI_LOCK = "🔒"

BANNER_RULE = "=" * 40

# Messages templates
MSG_CONFIG_FALLBACK = (
    "Configuration '{name}' not found. File '{file}' does not exist. "
    "Using default: " + CONFIG_FILE_NAME
)
MSG_CONFIG_SELECTED = "Using configuration file: {file}"
MSG_UNKNOWN_AUTH_ERROR = "Unknown authentication error occurred."
MSG_EXIT_CODE = "Exit code: {code}"
MSG_EXCEPTION = "Exception: {message}"
