# iis_deploy/cli/commands/__init__.py
"""CLI commands"""

from . import init
from . import check
from . import validate
from . import deploy

__all__ = [
    "init",
    "check",
    "validate",
    "deploy",
]
