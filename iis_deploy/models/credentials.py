"""Operator credentials model"""

from dataclasses import dataclass, field
from typing import Optional

from ..utils.secret_utils import SecretBuffer


@dataclass
class Credentials:
    """Credentials collected from the operator for one pipeline run

    Held in memory only. The secret is masked in repr and zeroed by
    ``clear()`` once the deploy process has consumed it.
    """

    username: str
    secret: SecretBuffer = field(repr=False)
    configuration_name: Optional[str] = None

    def __post_init__(self):
        self.secret = SecretBuffer.coerce(self.secret) or SecretBuffer()
        if self.configuration_name is not None:
            self.configuration_name = self.configuration_name.strip() or None

    @property
    def cleared(self) -> bool:
        return self.secret.cleared

    def clear(self) -> None:
        """Zero the secret"""
        self.secret.clear()
