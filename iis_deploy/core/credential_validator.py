"""Credential validation against the target server"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..constants import PARAM_PASSWORD, PARAM_SERVER, PARAM_TEST_PATH, PARAM_USERNAME
from ..models.result import ExecutionResult, ExecutionResultBuilder
from ..utils.secret_utils import SecretBuffer, encode_transient
from .script_runner import ScriptRunner


class CredentialValidator:
    """Runs the credential test script once per attempt

    Stateless: a failed attempt is retried by calling validate() again with
    freshly collected credentials.
    """

    def __init__(self, runner: Optional[ScriptRunner] = None):
        self.runner = runner or ScriptRunner()
        self.logger = logging.getLogger(self.__class__.__name__)

    def validate(self,
                 script_path: Union[str, Path],
                 server: str,
                 username: str,
                 secret: Union[SecretBuffer, str, None],
                 target_path: str) -> ExecutionResult:
        """
        Check that the credentials can reach the target path on the server

        The secret buffer is consumed: it is zeroed right after being encoded,
        before the script is started. Pass a copy to keep the original.

        Args:
            script_path: Credential test script
            server: IIS host
            username: Account name
            secret: Password buffer
            target_path: Folder the account must be able to reach

        Returns:
            ExecutionResult, successful only for exit code 0 with empty stderr
        """
        try:
            encoded = encode_transient(secret)
        except ValueError as e:
            builder = ExecutionResultBuilder()
            builder.add_exception(e)
            return builder.build()

        command = self.runner.build_command(script_path, [
            (PARAM_SERVER, server or None),
            (PARAM_USERNAME, username or None),
            (PARAM_PASSWORD, encoded),
            (PARAM_TEST_PATH, target_path or None),
        ])
        del encoded

        self.logger.info(f"Validating credentials for {username} on {server}")
        result = self.runner.run(command)

        if result.success:
            self.logger.info("Credentials validated")
        else:
            self.logger.warning(f"Credential validation failed: {result.error_message}")

        return result
