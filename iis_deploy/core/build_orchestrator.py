"""Build and publish orchestration"""

import logging
import subprocess
import traceback
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from ..api.exceptions import BuildError, BuildErrorKind
from ..constants import (
    BuildStyle,
    DEFAULT_BUILD_CONFIGURATION,
    DEFAULT_DOTNET,
    PUBLISH_DIR_PARTS,
)
from ..models.result import BuildArtifact
from ..utils.project_utils import detect_build_style, get_project_directory, get_target_framework
from .solution_host import MSBuildSolutionHost, SolutionHost

LineSink = Callable[[str], None]
HostFactory = Callable[[Path, Optional[LineSink]], SolutionHost]


def publish_directory(project_dir: Union[str, Path], configuration: str) -> Path:
    """<project_dir>/bin/<configuration>/publish"""
    parts = [p.format(configuration=configuration) for p in PUBLISH_DIR_PARTS]
    return Path(project_dir).joinpath(*parts)


class BuildOrchestrator:
    """Builds a project and returns the folder to deploy

    SDK-style projects are published with ``dotnet publish``; legacy
    projects are built through a SolutionHost. Every failure surfaces as a
    BuildError.
    """

    def __init__(self,
                 dotnet: Optional[Sequence[str]] = None,
                 msbuild: Optional[Sequence[str]] = None,
                 host_factory: Optional[HostFactory] = None):
        self.dotnet = list(dotnet) if dotnet else list(DEFAULT_DOTNET)
        self.msbuild = list(msbuild) if msbuild else None
        self.host_factory = host_factory or self._default_host
        self.logger = logging.getLogger(self.__class__.__name__)

    def _default_host(self, project_file: Path, on_line: Optional[LineSink]) -> SolutionHost:
        return MSBuildSolutionHost(project_file, msbuild=self.msbuild, on_line=on_line)

    def build(self,
              project_file: Union[str, Path],
              project_dir: Optional[Union[str, Path]] = None,
              configuration_name: Optional[str] = None,
              build_style: Optional[BuildStyle] = None,
              on_line: Optional[LineSink] = None) -> BuildArtifact:
        """
        Build or publish a project

        Args:
            project_file: Project descriptor (.csproj, .vbproj)
            project_dir: Project directory, defaults to the file's folder
            configuration_name: Build configuration, "Release" when blank
            build_style: Pre-detected style; detected from the file when None
            on_line: Receives progress and tool output lines

        Returns:
            BuildArtifact with the absolute output directory

        Raises:
            BuildError: EXIT_CODE, ARTIFACT_MISSING, CONFIGURATION_NOT_FOUND
                or UNEXPECTED
        """
        try:
            project_file = Path(project_file)
            project_dir = Path(project_dir) if project_dir else get_project_directory(project_file)
            configuration = (configuration_name or "").strip() or DEFAULT_BUILD_CONFIGURATION
            if build_style is None:
                build_style = detect_build_style(project_file)

            self.logger.info(
                f"Building {project_file.name} ({build_style.value}, {configuration}, "
                f"framework {get_target_framework(project_file) or 'unknown'})"
            )

            if build_style == BuildStyle.SDK:
                return self._publish(project_file, project_dir, configuration, on_line)
            return self._build_legacy(project_file, project_dir, configuration, on_line)

        except BuildError:
            raise
        except Exception as e:
            self.logger.error(f"Build error: {e}")
            raise BuildError(
                BuildErrorKind.UNEXPECTED,
                f"Build error: {e}",
                detail=traceback.format_exc(),
            )

    def _publish(self,
                 project_file: Path,
                 project_dir: Path,
                 configuration: str,
                 on_line: Optional[LineSink]) -> BuildArtifact:
        publish_path = publish_directory(project_dir, configuration)
        _emit(on_line, f"Publishing to: {publish_path}")

        command = [
            *self.dotnet, "publish", str(project_file),
            "-c", configuration,
            "-o", str(publish_path),
            "--no-self-contained",
        ]
        completed = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            cwd=str(project_dir),
        )

        if completed.returncode != 0:
            details = "\n".join(
                text.strip() for text in (completed.stderr, completed.stdout) if text and text.strip()
            )
            message = f"Publish failed with exit code {completed.returncode}"
            _emit(on_line, message)
            for line in details.splitlines():
                _emit(on_line, line)
            raise BuildError(
                BuildErrorKind.EXIT_CODE,
                f"{message}\n{details}" if details else message,
                exit_code=completed.returncode,
            )

        _emit(on_line, "Publish finished.")

        if not publish_path.is_dir():
            message = f"Publish folder not found at {publish_path}"
            _emit(on_line, f"ERROR: {message}")
            raise BuildError(BuildErrorKind.ARTIFACT_MISSING, message, exit_code=completed.returncode)

        _emit(on_line, f"Publish successful: {publish_path}")
        return BuildArtifact(
            output_path=publish_path.resolve(),
            build_style=BuildStyle.SDK,
            configuration=configuration,
        )

    def _build_legacy(self,
                      project_file: Path,
                      project_dir: Path,
                      configuration: str,
                      on_line: Optional[LineSink]) -> BuildArtifact:
        host = self.host_factory(project_file, on_line)

        match = next(
            (name for name in host.configurations() if name.lower() == configuration.lower()),
            None,
        )
        if match is None:
            available = ", ".join(host.configurations()) or "none"
            raise BuildError(
                BuildErrorKind.CONFIGURATION_NOT_FOUND,
                f"Solution configuration '{configuration}' not found (available: {available})",
            )
        host.activate(match)

        errors = host.build()
        if errors != 0:
            message = f"Build failed with {errors} error(s)."
            _emit(on_line, message)
            raise BuildError(BuildErrorKind.EXIT_CODE, message, exit_code=errors)

        output_path = host.active_output_path()
        if not output_path:
            raise BuildError(
                BuildErrorKind.ARTIFACT_MISSING,
                f"No output path declared for configuration '{match}'",
            )

        path = Path(output_path)
        if not path.is_absolute():
            path = project_dir / path

        return BuildArtifact(
            output_path=path.resolve(),
            build_style=BuildStyle.LEGACY,
            configuration=match,
        )


def _emit(on_line: Optional[LineSink], text: str) -> None:
    if on_line:
        on_line(text)
