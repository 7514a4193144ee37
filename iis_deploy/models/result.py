"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..constants import BuildStyle, PipelineStage, PipelineState, MSG_EXIT_CODE, MSG_EXCEPTION
from .config import DeployConfiguration


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one external script invocation"""

    success: bool
    output: Tuple[str, ...] = ()
    errors: str = ""
    exit_code: Optional[int] = None
    process_failed: bool = False

    @property
    def output_text(self) -> str:
        return "\n".join(self.output)

    @property
    def error_message(self) -> str:
        """Diagnostic text for display, never empty on failure"""
        message = self.errors.strip()
        if not message and not self.success:
            if self.exit_code is not None:
                return MSG_EXIT_CODE.format(code=self.exit_code)
            return "Unknown error"
        return message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "success": self.success,
            "output": list(self.output),
            "errors": self.errors,
            "exit_code": self.exit_code,
            "process_failed": self.process_failed,
        }


class ExecutionResultBuilder:
    """Accumulates output while a process runs, then freezes into an ExecutionResult"""

    def __init__(self):
        self.output: List[str] = []
        self.errors: List[str] = []
        self.exit_code: Optional[int] = None
        self.process_failed = False

    def add_line(self, line: str) -> None:
        self.output.append(line)

    def add_error(self, text: str) -> None:
        self.errors.append(text)

    def add_exit_code_error(self, code: int) -> None:
        self.errors.append(MSG_EXIT_CODE.format(code=code))

    def add_exception(self, exc: BaseException) -> str:
        message = MSG_EXCEPTION.format(message=exc)
        self.errors.append(message)
        self.process_failed = True
        return message

    def build(self) -> ExecutionResult:
        errors = "\n".join(e.rstrip("\r\n") for e in self.errors)
        success = (
            not self.process_failed
            and not errors.strip()
            and self.exit_code == 0
        )
        return ExecutionResult(
            success=success,
            output=tuple(self.output),
            errors=errors,
            exit_code=self.exit_code,
            process_failed=self.process_failed,
        )


@dataclass(frozen=True)
class BuildArtifact:
    """Directory produced by a build, consumed by the deploy script"""

    output_path: Path
    build_style: BuildStyle
    configuration: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output_path": str(self.output_path),
            "build_style": self.build_style.value,
            "configuration": self.configuration,
        }


@dataclass(frozen=True)
class ConfigResolution:
    """Configuration selected for a run"""

    config: DeployConfiguration
    config_path: Path
    requested_name: Optional[str] = None
    fell_back: bool = False
    notice: Optional[str] = None

    @property
    def file_name(self) -> str:
        return self.config_path.name


@dataclass
class PipelineResult:
    """Result of a pipeline run, filled in as stages complete"""

    state: PipelineState = PipelineState.IDLE
    failed_stage: Optional[PipelineStage] = None
    cancelled: bool = False
    error: Optional[Exception] = None
    resolution: Optional[ConfigResolution] = None
    artifact: Optional[BuildArtifact] = None
    deploy_result: Optional[ExecutionResult] = None
    attempts: int = 0
    notices: List[str] = field(default_factory=list)
    start_time: datetime = field(default_factory=datetime.utcnow)
    end_time: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.state == PipelineState.DEPLOYED

    @property
    def is_failed(self) -> bool:
        return self.state == PipelineState.FAILED

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return getattr(self.error, "message", None) or str(self.error)

    @property
    def duration(self) -> Optional[float]:
        """Get operation duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def fail(self, stage: PipelineStage, error: Optional[Exception] = None, cancelled: bool = False) -> None:
        self.state = PipelineState.FAILED
        self.failed_stage = stage
        self.error = error
        self.cancelled = cancelled
        self.end_time = datetime.utcnow()

    def complete(self) -> None:
        self.state = PipelineState.DEPLOYED
        self.end_time = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "state": self.state.value,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "cancelled": self.cancelled,
            "error": self.error_message,
            "config_path": str(self.resolution.config_path) if self.resolution else None,
            "artifact": self.artifact.to_dict() if self.artifact else None,
            "deploy_result": self.deploy_result.to_dict() if self.deploy_result else None,
            "attempts": self.attempts,
            "notices": self.notices,
            "duration": self.duration,
        }
