"""Deployer API for non-interactive use"""

from pathlib import Path
from typing import Callable, Optional, Union

from ..constants import BuildStyle
from ..models import Credentials, PipelineResult, ToolSettings
from ..services.pipeline_service import CredentialRequest, PipelineCoordinator, PipelineRun
from ..utils.secret_utils import SecretBuffer


class Deployer:
    """Runs the pipeline with credentials known up front

    Validation failures are not retried: there is nobody to ask for new
    credentials, so the first failure ends the run.
    """

    def __init__(self,
                 project_file: Union[str, Path],
                 settings: Optional[ToolSettings] = None,
                 on_progress: Optional[Callable[[str], None]] = None,
                 on_notice: Optional[Callable[[str], None]] = None):
        """
        Initialize deployer

        Args:
            project_file: Project descriptor to build and deploy
            settings: Script and tool locations, loaded from the project when None
            on_progress: Receives progress lines of the synchronous stages
            on_notice: Receives non-fatal notices
        """
        self.project_file = Path(project_file)
        self.settings = settings
        self.on_progress = on_progress
        self.on_notice = on_notice

    def start(self,
              username: str,
              password: Union[str, SecretBuffer],
              configuration_name: Optional[str] = None,
              build_style: Optional[BuildStyle] = None) -> PipelineRun:
        """
        Start a deployment and return once the deploy script is running

        Args:
            username: Account on the IIS host
            password: Password, consumed by the run
            configuration_name: Configuration variant / build configuration
            build_style: Pre-detected build style

        Returns:
            PipelineRun
        """
        credentials = Credentials(username, SecretBuffer.coerce(password), configuration_name)

        def provide(request: CredentialRequest) -> Optional[Credentials]:
            return credentials if request.attempt == 1 else None

        coordinator = PipelineCoordinator(
            self.project_file,
            provide,
            settings=self.settings,
            on_progress=self.on_progress,
            on_notice=self.on_notice,
            max_attempts=1,
        )
        return coordinator.run(configuration_name, build_style)

    def deploy(self,
               username: str,
               password: Union[str, SecretBuffer],
               configuration_name: Optional[str] = None,
               on_line: Optional[Callable[[str], None]] = None) -> PipelineResult:
        """
        Deploy and wait for the verdict

        Args:
            username: Account on the IIS host
            password: Password, consumed by the run
            configuration_name: Configuration variant / build configuration
            on_line: Receives deploy output lines in order

        Returns:
            PipelineResult
        """
        run = self.start(username, password, configuration_name)
        return run.stream(on_line or (lambda line: None))


def deploy(project_file: Union[str, Path],
           username: str,
           password: Union[str, SecretBuffer],
           configuration_name: Optional[str] = None,
           on_line: Optional[Callable[[str], None]] = None,
           settings: Optional[ToolSettings] = None) -> PipelineResult:
    """
    Convenience function for a one-shot deployment

    Args:
        project_file: Project descriptor
        username: Account on the IIS host
        password: Password
        configuration_name: Configuration variant / build configuration
        on_line: Receives progress and deploy output lines
        settings: Script and tool locations

    Returns:
        PipelineResult
    """
    deployer = Deployer(project_file, settings=settings, on_progress=on_line, on_notice=on_line)
    return deployer.deploy(username, password, configuration_name, on_line=on_line)
