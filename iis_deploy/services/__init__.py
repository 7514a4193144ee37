# iis_deploy/services/__init__.py
"""Business logic services for iis-deploy"""

from .pipeline_service import (
    PipelineCoordinator,
    PipelineRun,
    CredentialRequest,
    CredentialProvider,
)

__all__ = [
    "PipelineCoordinator",
    "PipelineRun",
    "CredentialRequest",
    "CredentialProvider",
]
