"""Deploy script execution with streamed progress"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from ..constants import (
    PARAM_APP_FOLDER,
    PARAM_APP_POOL,
    PARAM_BACKUP_FOLDER,
    PARAM_EXCLUDE_CLEANUP,
    PARAM_EXCLUDE_COPY,
    PARAM_NEW_FILES,
    PARAM_PASSWORD,
    PARAM_SERVER,
    PARAM_USERNAME,
    EXCEPTION_LINE_PREFIX,
)
from ..models.config import normalize_exclusions
from ..models.result import ExecutionResult, ExecutionResultBuilder
from ..utils.secret_utils import SecretBuffer, encode_transient
from .script_runner import LineSink, ScriptRunner


def join_exclusions(items: Union[str, Iterable[str], None]) -> Optional[str]:
    """Comma-join trimmed non-empty items; None when nothing is left"""
    cleaned = normalize_exclusions(items)
    return ",".join(cleaned) if cleaned else None


class DeployExecutor:
    """Runs the deploy script (backup, copy, cleanup) against an IIS host"""

    def __init__(self, runner: Optional[ScriptRunner] = None):
        self.runner = runner or ScriptRunner()
        self.logger = logging.getLogger(self.__class__.__name__)

    def deploy(self,
               script_path: Union[str, Path],
               server: str,
               username: str,
               secret: Union[SecretBuffer, str, None],
               pool_name: str,
               app_folder: str,
               artifact_path: Union[str, Path],
               backup_folder: str,
               exclude_cleanup: Optional[Iterable[str]] = None,
               exclude_copy: Optional[Iterable[str]] = None,
               on_line: Optional[LineSink] = None) -> ExecutionResult:
        """
        Run the deploy script and stream its output

        Long running; callers are expected to run it off their own control
        flow. The secret is zeroed right after encoding, before the script
        starts.

        Args:
            script_path: Deploy script
            server: IIS host
            username: Account name
            secret: Password buffer, consumed by this call
            pool_name: Application pool to stop and start
            app_folder: Deployed application folder on the host
            artifact_path: Local folder with the new files
            backup_folder: Folder receiving the backup
            exclude_cleanup: Patterns kept during cleanup
            exclude_copy: Patterns skipped during copy
            on_line: Receives each stdout line, then diagnostics

        Returns:
            ExecutionResult
        """
        try:
            encoded = encode_transient(secret)
        except ValueError as e:
            builder = ExecutionResultBuilder()
            builder.add_exception(e)
            self.runner.relay(on_line, f"{EXCEPTION_LINE_PREFIX}{e}")
            return builder.build()

        command = self.runner.build_command(script_path, [
            (PARAM_SERVER, server),
            (PARAM_USERNAME, username),
            (PARAM_PASSWORD, encoded),
            (PARAM_APP_POOL, pool_name),
            (PARAM_APP_FOLDER, app_folder),
            (PARAM_NEW_FILES, str(artifact_path)),
            (PARAM_BACKUP_FOLDER, backup_folder),
            (PARAM_EXCLUDE_CLEANUP, join_exclusions(exclude_cleanup)),
            (PARAM_EXCLUDE_COPY, join_exclusions(exclude_copy)),
        ])
        del encoded

        self.logger.info(f"Deploying {artifact_path} to {server}:{app_folder} (pool {pool_name})")
        result = self.runner.stream(command, on_line)

        if result.success:
            self.logger.info("Deployment script completed")
        else:
            self.logger.error(f"Deployment script failed: {result.error_message}")

        return result
