"""Solution build hosts for legacy (non SDK-style) projects"""

import logging
import re
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ..constants import DEFAULT_MSBUILD
from ..utils.project_utils import find_solution_file, read_output_path

SOLUTION_CONFIG_SECTION = re.compile(
    r"GlobalSection\(SolutionConfigurationPlatforms\)\s*=\s*preSolution(?P<body>.*?)EndGlobalSection",
    re.DOTALL,
)
SOLUTION_CONFIG_ENTRY = re.compile(r"^\s*(?P<config>[^|=\r\n]+)\|(?P<platform>[^=\r\n]+?)\s*=", re.MULTILINE)
PROJECT_CONFIG_CONDITION = re.compile(r"==\s*'(?P<config>[^'|]+)(?:\|[^']*)?'")
ERROR_COUNT_PATTERN = re.compile(r"(\d+)\s+Error\(s\)", re.IGNORECASE)


class SolutionHost(ABC):
    """Abstract solution build host

    Mirrors what an IDE exposes for a solution: a list of named
    configurations, one of them active, a synchronous build reporting an
    error count, and the active project's output path.
    """

    @abstractmethod
    def configurations(self) -> List[str]:
        """Names of the solution configurations, in declaration order"""
        pass

    @property
    @abstractmethod
    def active_configuration(self) -> Optional[str]:
        pass

    @abstractmethod
    def activate(self, name: str) -> None:
        """Make a configuration active"""
        pass

    @abstractmethod
    def build(self) -> int:
        """
        Build the whole solution synchronously

        Returns:
            Number of errors, 0 on success
        """
        pass

    @abstractmethod
    def active_output_path(self) -> Optional[str]:
        """OutputPath of the project for the active configuration, rooted or relative"""
        pass


class MSBuildSolutionHost(SolutionHost):
    """Solution host driving msbuild from the command line"""

    def __init__(self,
                 project_file: Union[str, Path],
                 solution_file: Optional[Union[str, Path]] = None,
                 msbuild: Optional[Sequence[str]] = None,
                 on_line: Optional[Callable[[str], None]] = None):
        self.project_file = Path(project_file)
        if solution_file is None:
            solution_file = find_solution_file(self.project_file.parent)
        self.solution_file = Path(solution_file) if solution_file else None
        self.msbuild = list(msbuild) if msbuild else list(DEFAULT_MSBUILD)
        self.on_line = on_line
        self.logger = logging.getLogger(self.__class__.__name__)

        self._entries = self._read_entries()
        self._active: Optional[str] = self._entries[0][0] if self._entries else None
        self._platform: Optional[str] = self._entries[0][1] if self._entries else None

    def _read_entries(self) -> List[tuple]:
        """(configuration, platform) pairs from the solution, else from the project file"""
        entries = []
        if self.solution_file and self.solution_file.is_file():
            content = self.solution_file.read_text(encoding="utf-8-sig", errors="replace")
            section = SOLUTION_CONFIG_SECTION.search(content)
            if section:
                for match in SOLUTION_CONFIG_ENTRY.finditer(section.group("body")):
                    entry = (match.group("config").strip(), match.group("platform").strip())
                    if entry not in entries:
                        entries.append(entry)
            return entries

        if self.project_file.is_file():
            content = self.project_file.read_text(encoding="utf-8-sig", errors="replace")
            for match in PROJECT_CONFIG_CONDITION.finditer(content):
                entry = (match.group("config").strip(), None)
                if entry not in entries:
                    entries.append(entry)
        return entries

    def configurations(self) -> List[str]:
        names = []
        for config, _ in self._entries:
            if config not in names:
                names.append(config)
        return names

    @property
    def active_configuration(self) -> Optional[str]:
        return self._active

    def activate(self, name: str) -> None:
        for config, platform in self._entries:
            if config == name:
                self._active = config
                self._platform = platform
                return
        raise ValueError(f"Unknown solution configuration: {name}")

    def build(self) -> int:
        target = self.solution_file or self.project_file
        command = [*self.msbuild, str(target), "/t:Build", "/nologo", "/v:minimal"]
        if self._active:
            command.append(f"/p:Configuration={self._active}")
        if self._platform and self.solution_file:
            command.append(f"/p:Platform={self._platform}")

        self.logger.info(f"Building {target.name} ({self._active or 'default'})")
        completed = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            cwd=str(target.parent),
        )

        output = completed.stdout or ""
        if self.on_line:
            for line in output.splitlines():
                self.on_line(line)

        counts = ERROR_COUNT_PATTERN.findall(output)
        errors = int(counts[-1]) if counts else 0
        if completed.returncode != 0 and errors == 0:
            errors = 1
        return errors

    def active_output_path(self) -> Optional[str]:
        if not self._active:
            return None
        output_path = read_output_path(self.project_file, self._active, self._platform)
        if not output_path:
            return None
        # Project files use Windows separators
        return output_path.replace("\\", "/")
