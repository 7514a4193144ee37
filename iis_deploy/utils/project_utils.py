"""Project descriptor utilities"""

import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..constants import (
    BuildStyle,
    RUNNABLE_OUTPUT_TYPES,
    SDK_PROJECT_MARKERS,
    WEB_SDK_MARKER,
)

TARGET_FRAMEWORK_PATTERN = re.compile(r"<TargetFramework>([^<]+)</TargetFramework>")
TARGET_FRAMEWORKS_PATTERN = re.compile(r"<TargetFrameworks>([^<]+)</TargetFrameworks>")
OUTPUT_TYPE_PATTERN = re.compile(r"<OutputType>\s*([^<\s]+)\s*</OutputType>", re.IGNORECASE)
PROPERTY_GROUP_PATTERN = re.compile(
    r"<PropertyGroup(?P<attrs>[^>]*)>(?P<body>.*?)</PropertyGroup>",
    re.DOTALL | re.IGNORECASE,
)
CONDITION_PATTERN = re.compile(r"Condition\s*=\s*\"(?P<cond>[^\"]*)\"", re.IGNORECASE)
OUTPUT_PATH_PATTERN = re.compile(r"<OutputPath>\s*([^<]*?)\s*</OutputPath>", re.IGNORECASE)


def _read_text(project_file: Union[str, Path]) -> Optional[str]:
    path = Path(project_file)
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError:
        return None


def is_sdk_style_project(project_file: Union[str, Path]) -> bool:
    """
    Check whether a project file uses the SDK-style format

    Args:
        project_file: Path to the .csproj/.vbproj file

    Returns:
        True if the root element declares an Sdk
    """
    content = _read_text(project_file)
    if content is None:
        return False
    return any(marker in content for marker in SDK_PROJECT_MARKERS)


def detect_build_style(project_file: Union[str, Path]) -> BuildStyle:
    """Decide the build strategy for a project, once per run"""
    return BuildStyle.SDK if is_sdk_style_project(project_file) else BuildStyle.LEGACY


def get_target_framework(project_file: Union[str, Path]) -> Optional[str]:
    """
    Get the target framework moniker

    Returns the first entry when the project multi-targets.
    """
    content = _read_text(project_file)
    if content is None:
        return None

    match = TARGET_FRAMEWORK_PATTERN.search(content)
    if match:
        return match.group(1).strip()

    match = TARGET_FRAMEWORKS_PATTERN.search(content)
    if match:
        return match.group(1).split(";")[0].strip()

    return None


def get_output_type(project_file: Union[str, Path]) -> Optional[str]:
    content = _read_text(project_file)
    if content is None:
        return None
    match = OUTPUT_TYPE_PATTERN.search(content)
    return match.group(1) if match else None


def is_runnable_project(project_file: Union[str, Path]) -> bool:
    """
    Check whether a project produces something deployable

    Class libraries are not; executables and web projects are. When the
    file cannot be inspected the project is assumed runnable.
    """
    content = _read_text(project_file)
    if content is None:
        return True

    output_type = get_output_type(project_file)
    if output_type and output_type.lower() in RUNNABLE_OUTPUT_TYPES:
        return True

    return WEB_SDK_MARKER in content


def get_project_directory(project_file: Union[str, Path]) -> Path:
    """Directory containing the project file, absolute"""
    return Path(project_file).resolve().parent


def find_solution_file(project_dir: Union[str, Path]) -> Optional[Path]:
    """
    Find the solution file for a project

    Searches the project directory, then its parents.
    """
    current = Path(project_dir).resolve()
    for directory in [current, *current.parents]:
        solutions = sorted(directory.glob("*.sln"))
        if solutions:
            return solutions[0]
    return None


def _condition_key(text: str) -> str:
    # Solutions write "Any CPU", project conditions "AnyCPU"
    return text.lower().replace(" ", "")


def read_output_path(project_file: Union[str, Path],
                     configuration: str,
                     platform: Optional[str] = None) -> Optional[str]:
    """
    Read the OutputPath a legacy project declares for a configuration

    Conditional property groups matching ``configuration`` win over
    unconditional ones; among those, a group also matching ``platform`` wins.
    Platform names compare without spaces, so "Any CPU" matches "AnyCPU".

    Args:
        project_file: Path to the project file
        configuration: Build configuration name
        platform: Optional platform name (e.g. AnyCPU)

    Returns:
        OutputPath as written in the project (may be relative), or None
    """
    content = _read_text(project_file)
    if content is None:
        return None

    unconditional: Optional[str] = None
    candidates: List[Tuple[str, str]] = []
    config_key = _condition_key(configuration)

    for group in PROPERTY_GROUP_PATTERN.finditer(content):
        match = OUTPUT_PATH_PATTERN.search(group.group("body"))
        if not match:
            continue
        condition = CONDITION_PATTERN.search(group.group("attrs"))
        if not condition:
            unconditional = unconditional or match.group(1)
            continue

        cond = _condition_key(condition.group("cond"))
        if f"'{config_key}|" in cond or f"'{config_key}'" in cond:
            candidates.append((cond, match.group(1)))

    if platform is not None:
        platform_key = _condition_key(platform)
        for cond, value in candidates:
            if f"|{platform_key}'" in cond:
                return value

    if candidates:
        return candidates[0][1]
    return unconditional


PROJECT_FILE_PATTERNS = ("*.csproj", "*.vbproj", "*.fsproj")


def find_project_file(path: Union[str, Path]) -> Optional[Path]:
    """
    Resolve a project file from a file or directory argument

    A directory must contain exactly one project file.
    """
    path = Path(path)
    if path.is_file():
        return path.resolve()
    if not path.is_dir():
        return None

    found: List[Path] = []
    for pattern in PROJECT_FILE_PATTERNS:
        found.extend(sorted(path.glob(pattern)))
    if len(found) == 1:
        return found[0].resolve()
    return None
