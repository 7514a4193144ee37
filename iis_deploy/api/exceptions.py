"""Exception definitions for iis-deploy API"""

from enum import Enum
from typing import Optional

from ..constants import ErrorCode


class IISDeployError(Exception):
    """Base exception for iis-deploy"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ConfigErrorKind(Enum):
    FILE_MISSING = "file_missing"
    PARSE_ERROR = "parse_error"
    VALIDATION_ERROR = "validation_error"


class ConfigError(IISDeployError):
    """Deploy configuration could not be loaded"""

    _codes = {
        ConfigErrorKind.FILE_MISSING: ErrorCode.CONFIG_FILE_MISSING,
        ConfigErrorKind.PARSE_ERROR: ErrorCode.CONFIG_PARSE_ERROR,
        ConfigErrorKind.VALIDATION_ERROR: ErrorCode.CONFIG_VALIDATION_ERROR,
    }

    def __init__(self, kind: ConfigErrorKind, message: str, path: Optional[str] = None):
        super().__init__(message, self._codes[kind])
        self.kind = kind
        self.path = path


class CredentialErrorKind(Enum):
    PROCESS_FAILURE = "process_failure"
    INVALID_CREDENTIALS = "invalid_credentials"


class CredentialError(IISDeployError):
    """Credential validation failed"""

    def __init__(self, kind: CredentialErrorKind, message: str):
        code = (ErrorCode.CREDENTIAL_PROCESS_FAILURE
                if kind == CredentialErrorKind.PROCESS_FAILURE
                else ErrorCode.INVALID_CREDENTIALS)
        super().__init__(message, code)
        self.kind = kind

    @classmethod
    def from_result(cls, result) -> 'CredentialError':
        """Classify a failed validation ExecutionResult"""
        kind = (CredentialErrorKind.PROCESS_FAILURE
                if result.process_failed
                else CredentialErrorKind.INVALID_CREDENTIALS)
        return cls(kind, result.error_message)


class BuildErrorKind(Enum):
    EXIT_CODE = "exit_code"
    ARTIFACT_MISSING = "artifact_missing"
    CONFIGURATION_NOT_FOUND = "configuration_not_found"
    UNEXPECTED = "unexpected"


class BuildError(IISDeployError):
    """Build or publish failed"""

    _codes = {
        BuildErrorKind.EXIT_CODE: ErrorCode.BUILD_EXIT_CODE,
        BuildErrorKind.ARTIFACT_MISSING: ErrorCode.BUILD_ARTIFACT_MISSING,
        BuildErrorKind.CONFIGURATION_NOT_FOUND: ErrorCode.BUILD_CONFIGURATION_NOT_FOUND,
        BuildErrorKind.UNEXPECTED: ErrorCode.BUILD_UNEXPECTED,
    }

    def __init__(self,
                 kind: BuildErrorKind,
                 message: str,
                 exit_code: Optional[int] = None,
                 detail: Optional[str] = None):
        super().__init__(message, self._codes[kind])
        self.kind = kind
        self.exit_code = exit_code
        # Technical detail (traceback), only set for unexpected faults
        self.detail = detail


class DeployErrorKind(Enum):
    PROCESS_FAILURE = "process_failure"
    NON_ZERO_EXIT = "non_zero_exit"


class DeployError(IISDeployError):
    """Deployment script failed"""

    def __init__(self, kind: DeployErrorKind, message: str, exit_code: Optional[int] = None):
        code = (ErrorCode.DEPLOY_PROCESS_FAILURE
                if kind == DeployErrorKind.PROCESS_FAILURE
                else ErrorCode.DEPLOY_NON_ZERO_EXIT)
        super().__init__(message, code)
        self.kind = kind
        self.exit_code = exit_code

    @classmethod
    def from_result(cls, result) -> 'DeployError':
        """Classify a failed deploy ExecutionResult"""
        kind = (DeployErrorKind.PROCESS_FAILURE
                if result.process_failed
                else DeployErrorKind.NON_ZERO_EXIT)
        return cls(kind, result.error_message, result.exit_code)


class ScriptNotFoundError(IISDeployError):
    """Required PowerShell script is missing"""

    def __init__(self, script_path: str):
        super().__init__(f"Script not found at: {script_path}", ErrorCode.SCRIPT_NOT_FOUND)
        self.script_path = script_path


class UserCancelledError(IISDeployError):
    """User cancelled the operation"""

    def __init__(self):
        super().__init__("Operation cancelled by user", ErrorCode.USER_CANCELLED)
