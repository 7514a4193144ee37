"""Deployment pipeline coordination

Runs resolve config -> validate credentials -> build -> deploy for one
project. Everything up to the build runs on the caller's thread; the deploy
script runs on a worker thread and its output reaches the caller through a
FIFO queue owned by the returned PipelineRun.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from ..api.exceptions import (
    ConfigError,
    CredentialError,
    BuildError,
    DeployError,
    DeployErrorKind,
    ScriptNotFoundError,
    UserCancelledError,
)
from ..constants import (
    BuildStyle,
    DEFAULT_BUILD_CONFIGURATION,
    MSG_UNKNOWN_AUTH_ERROR,
    PipelineStage,
    PipelineState,
)
from ..core import (
    BuildOrchestrator,
    ConfigResolver,
    CredentialValidator,
    DeployExecutor,
    ScriptRunner,
)
from ..models import ConfigResolution, Credentials, PipelineResult, ToolSettings
from ..utils.project_utils import detect_build_style, get_project_directory

# Forward order of the coordinator states
STATE_ORDER = [
    PipelineState.IDLE,
    PipelineState.CONFIG_RESOLVED,
    PipelineState.CREDENTIALS_VALIDATED,
    PipelineState.BUILT,
    PipelineState.DEPLOYING,
    PipelineState.DEPLOYED,
]


@dataclass
class CredentialRequest:
    """What the credential prompt gets to show for one attempt"""
    attempt: int
    server: str
    username: Optional[str] = None
    configuration_name: Optional[str] = None
    last_error: Optional[str] = None


CredentialProvider = Callable[[CredentialRequest], Optional[Credentials]]
ProgressSink = Callable[[str], None]

_DONE = object()


class PipelineRun:
    """Handle on one pipeline execution

    Returned once the synchronous stages are over. When the deploy stage
    was reached it is still running on a worker thread; ``lines()`` yields
    its output in emission order and ``wait()`` blocks for the verdict.
    """

    def __init__(self, result: PipelineResult):
        self.result = result
        self._lines: "queue.Queue" = queue.Queue()
        self._finished = threading.Event()
        self._drained = False
        self._thread: Optional[threading.Thread] = None

    @property
    def deploy_started(self) -> bool:
        return self._thread is not None

    def done(self) -> bool:
        return self._finished.is_set()

    def start(self, target: Callable, *args) -> None:
        """Run the deploy stage on a worker thread"""
        self._thread = threading.Thread(target=target, args=(self, *args), name="iis-deploy-worker")
        self._thread.start()

    def put_line(self, line: str) -> None:
        self._lines.put(line)

    def finish(self) -> None:
        self._lines.put(_DONE)
        self._finished.set()

    def lines(self) -> Iterator[str]:
        """Yield deploy output lines until the run finishes"""
        if self._drained:
            return
        while True:
            item = self._lines.get()
            if item is _DONE:
                self._drained = True
                return
            yield item

    def wait(self, timeout: Optional[float] = None) -> PipelineResult:
        """Block until the run has finished, return its result"""
        self._finished.wait(timeout)
        if self._thread is not None:
            self._thread.join(timeout)
        return self.result

    def stream(self, sink: ProgressSink) -> PipelineResult:
        """Hand every line to ``sink`` on the calling thread, then return the result"""
        for line in self.lines():
            sink(line)
        return self.wait()


class PipelineCoordinator:
    """Coordinates one deployment of a project

    Stages only move forward. Credential validation must succeed in the same
    run before the deploy script is started; a failed validation goes back
    to the credential provider, which either supplies new credentials or
    returns None to cancel.
    """

    def __init__(self,
                 project_file: Union[str, Path],
                 credential_provider: CredentialProvider,
                 settings: Optional[ToolSettings] = None,
                 resolver: Optional[ConfigResolver] = None,
                 validator: Optional[CredentialValidator] = None,
                 builder: Optional[BuildOrchestrator] = None,
                 executor: Optional[DeployExecutor] = None,
                 on_progress: Optional[ProgressSink] = None,
                 on_notice: Optional[ProgressSink] = None,
                 max_attempts: Optional[int] = None):
        """Initialize coordinator

        Args:
            project_file: Project descriptor to build
            credential_provider: Collects credentials, None cancels
            settings: Script and tool locations
            resolver: Configuration resolver (defaults to the project directory)
            validator: Credential validator
            builder: Build orchestrator
            executor: Deploy executor
            on_progress: Receives progress lines from the synchronous stages
            on_notice: Receives non-fatal notices such as a configuration fallback
            max_attempts: Credential attempts before giving up, None for no limit
        """
        self.project_file = Path(project_file)
        self.project_dir = get_project_directory(self.project_file)
        self.credential_provider = credential_provider
        self.settings = settings or ToolSettings.load(self.project_dir)

        runner = ScriptRunner(self.settings.shell)
        self.resolver = resolver or ConfigResolver(self.project_dir)
        self.validator = validator or CredentialValidator(runner)
        self.builder = builder or BuildOrchestrator(self.settings.dotnet, self.settings.msbuild)
        self.executor = executor or DeployExecutor(runner)

        self.on_progress = on_progress
        self.on_notice = on_notice
        self.max_attempts = max_attempts

        self.state = PipelineState.IDLE
        self.history: List[PipelineState] = [PipelineState.IDLE]
        self._lock = threading.Lock()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _advance(self, result: PipelineResult, state: PipelineState) -> None:
        with self._lock:
            if STATE_ORDER.index(state) <= STATE_ORDER.index(self.state):
                raise RuntimeError(f"Invalid pipeline transition: {self.state.value} -> {state.value}")
            self.state = state
            self.history.append(state)
            result.state = state
        self.logger.debug(f"Pipeline state: {state.value}")

    def _fail(self,
              run: PipelineRun,
              stage: PipelineStage,
              error: Exception,
              cancelled: bool = False) -> PipelineRun:
        with self._lock:
            self.state = PipelineState.FAILED
            self.history.append(PipelineState.FAILED)
            run.result.fail(stage, error, cancelled=cancelled)
        if cancelled:
            self.logger.info("Pipeline cancelled")
        else:
            self.logger.error(f"Pipeline failed at {stage.value}: {run.result.error_message}")
        run.finish()
        return run

    def _progress(self, line: str) -> None:
        if self.on_progress:
            self.on_progress(line)

    def _notice(self, result: PipelineResult, message: str) -> None:
        result.notices.append(message)
        if self.on_notice:
            self.on_notice(message)

    def _resolve(self, result: PipelineResult, name: Optional[str]) -> ConfigResolution:
        resolution = self.resolver.resolve(name)
        result.resolution = resolution
        if resolution.fell_back and resolution.notice:
            self._notice(result, resolution.notice)
        return resolution

    def run(self,
            configuration_name: Optional[str] = None,
            build_style: Optional[BuildStyle] = None) -> PipelineRun:
        """
        Execute the pipeline

        Returns as soon as the deploy script has been started (or a stage
        has failed). Call ``wait()`` or ``stream()`` on the returned run for
        the final verdict.

        Args:
            configuration_name: Configuration variant / build configuration
            build_style: Pre-detected build style, detected when None

        Returns:
            PipelineRun
        """
        if self.state != PipelineState.IDLE:
            raise RuntimeError("A pipeline coordinator runs once; create a new one")

        result = PipelineResult()
        run = PipelineRun(result)

        # Config
        requested = (configuration_name or "").strip() or None
        try:
            resolution = self._resolve(result, requested)
        except ConfigError as e:
            return self._fail(run, PipelineStage.CONFIG, e)

        missing = self.settings.missing_scripts()
        if missing:
            return self._fail(run, PipelineStage.CONFIG, ScriptNotFoundError(str(missing[0])))

        self._advance(result, PipelineState.CONFIG_RESOLVED)

        # Credentials
        credentials = None
        last_error: Optional[CredentialError] = None
        username = None
        while True:
            if self.max_attempts is not None and result.attempts >= self.max_attempts:
                return self._fail(run, PipelineStage.CREDENTIALS, last_error or UserCancelledError())

            result.attempts += 1
            credentials = self.credential_provider(CredentialRequest(
                attempt=result.attempts,
                server=resolution.config.server,
                username=username,
                configuration_name=requested,
                last_error=last_error.message if last_error else None,
            ))
            if credentials is None:
                return self._fail(run, PipelineStage.CREDENTIALS, UserCancelledError(), cancelled=True)

            username = credentials.username
            name = credentials.configuration_name
            if name != requested:
                requested = name
                try:
                    resolution = self._resolve(result, name)
                except ConfigError as e:
                    credentials.clear()
                    return self._fail(run, PipelineStage.CONFIG, e)

            config = resolution.config
            validation = self.validator.validate(
                self.settings.validate_script_path,
                config.server,
                credentials.username,
                credentials.secret.copy(),
                config.app_folder_location,
            )
            if validation.success:
                break

            last_error = CredentialError.from_result(validation)
            if not last_error.message.strip():
                last_error = CredentialError(last_error.kind, MSG_UNKNOWN_AUTH_ERROR)
            self.logger.warning(f"Credential attempt {result.attempts} failed: {last_error.message}")
            credentials.clear()

        self._advance(result, PipelineState.CREDENTIALS_VALIDATED)
        self._progress("Credentials validated successfully!")
        self._progress(f"Configuration: {requested or resolution.file_name}")

        # Build
        build_configuration = (requested
                               or resolution.config.default_configuration
                               or DEFAULT_BUILD_CONFIGURATION)
        try:
            if build_style is None:
                build_style = detect_build_style(self.project_file)
            self._progress("Publishing project...")
            artifact = self.builder.build(
                self.project_file,
                self.project_dir,
                build_configuration,
                build_style,
                on_line=self._progress,
            )
        except BuildError as e:
            credentials.clear()
            return self._fail(run, PipelineStage.BUILD, e)

        result.artifact = artifact
        self._advance(result, PipelineState.BUILT)
        self._progress(f"Output path: {artifact.output_path}")

        # Deploy
        self._advance(result, PipelineState.DEPLOYING)
        run.start(self._deploy, resolution, credentials)
        return run

    def _deploy(self, run: PipelineRun, resolution: ConfigResolution, credentials: Credentials) -> None:
        """Worker thread body"""
        config = resolution.config
        result = run.result
        try:
            deploy_result = self.executor.deploy(
                self.settings.deploy_script_path,
                config.server,
                credentials.username,
                credentials.secret,
                config.pool_name,
                config.app_folder_location,
                result.artifact.output_path,
                config.backup_folder_location,
                config.exclude_from_cleanup,
                config.exclude_from_copy,
                on_line=run.put_line,
            )
        except Exception as e:
            credentials.clear()
            self._fail(run, PipelineStage.DEPLOY, DeployError(DeployErrorKind.PROCESS_FAILURE, str(e)))
            return

        credentials.clear()
        result.deploy_result = deploy_result

        if not deploy_result.success:
            self._fail(run, PipelineStage.DEPLOY, DeployError.from_result(deploy_result))
            return

        self._advance(result, PipelineState.DEPLOYED)
        result.complete()
        self.logger.info("Deployment completed successfully")
        run.finish()
