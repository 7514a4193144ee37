# iis_deploy/utils/__init__.py
"""Utility functions for iis-deploy"""

from .secret_utils import (
    SecretBuffer,
    encode_transient,
    decode_secret,
    zero_buffer,
)

from .project_utils import (
    is_sdk_style_project,
    detect_build_style,
    get_target_framework,
    get_output_type,
    is_runnable_project,
    get_project_directory,
    find_solution_file,
    read_output_path,
    find_project_file,
)

__all__ = [
    # Secret utilities
    "SecretBuffer",
    "encode_transient",
    "decode_secret",
    "zero_buffer",

    # Project utilities
    "is_sdk_style_project",
    "detect_build_style",
    "get_target_framework",
    "get_output_type",
    "is_runnable_project",
    "get_project_directory",
    "find_solution_file",
    "read_output_path",
    "find_project_file",
]
