"""CLI utility functions"""

from .output import (
    console,
    print_success,
    print_warning,
    print_error,
    print_banner,
    print_line,
    format_configuration,
    format_execution_result,
    format_pipeline_result,
)
from .prompts import CredentialPrompt

__all__ = [
    # Output utilities
    'console',
    'print_success',
    'print_warning',
    'print_error',
    'print_banner',
    'print_line',
    'format_configuration',
    'format_execution_result',
    'format_pipeline_result',

    # Prompts
    'CredentialPrompt',
]
