"""PowerShell script execution"""

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ..constants import (
    DEFAULT_SHELL,
    ERROR_LINE_PREFIX,
    EXCEPTION_LINE_PREFIX,
    MSG_EXIT_CODE,
    PARAM_PASSWORD,
    SECRET_MASK,
)
from ..models.result import ExecutionResult, ExecutionResultBuilder

LineSink = Callable[[str], None]
ScriptParams = Sequence[Tuple[str, Optional[str]]]

PROCESS_ENCODING = "utf-8"


class ScriptRunner:
    """Runs scripts through a shell interpreter and collects their output

    The interpreter command (``powershell.exe -File`` by default) is
    prepended to the script path; parameters follow as ``-Flag value``
    pairs, passed as separate arguments so no quoting is involved.
    """

    def __init__(self, shell: Optional[Sequence[str]] = None, cwd: Optional[Union[str, Path]] = None):
        self.shell = list(shell) if shell else list(DEFAULT_SHELL)
        self.cwd = str(cwd) if cwd else None
        self.logger = logging.getLogger(self.__class__.__name__)

    def build_command(self, script_path: Union[str, Path], params: ScriptParams) -> List[str]:
        """
        Build the argument vector for a script call

        Args:
            script_path: Script to run
            params: (flag, value) pairs; pairs with a None value are skipped

        Returns:
            Argument list for subprocess
        """
        command = [*self.shell, str(script_path)]
        for flag, value in params:
            if value is None:
                continue
            command.extend([flag, str(value)])
        return command

    @staticmethod
    def mask_command(command: Sequence[str]) -> List[str]:
        """Copy of a command with the encoded password hidden, for logging"""
        masked = list(command)
        for i, arg in enumerate(masked[:-1]):
            if arg == PARAM_PASSWORD:
                masked[i + 1] = SECRET_MASK
        return masked

    def run(self, command: Sequence[str]) -> ExecutionResult:
        """
        Run a command to completion

        Stdout and stderr are both captured in full. Success requires exit
        code 0 and an empty stderr.

        Args:
            command: Argument vector from build_command()

        Returns:
            ExecutionResult
        """
        builder = ExecutionResultBuilder()
        self.logger.debug(f"Running: {' '.join(self.mask_command(command))}")

        try:
            completed = subprocess.run(
                list(command),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding=PROCESS_ENCODING,
                errors="replace",
                cwd=self.cwd,
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            builder.add_exception(e)
            self.logger.error(f"Failed to start script: {e}")
            return builder.build()

        for line in (completed.stdout or "").splitlines():
            builder.add_line(line)

        builder.exit_code = completed.returncode
        errors = completed.stderr or ""
        if errors.strip():
            builder.add_error(errors)
        elif completed.returncode != 0:
            builder.add_exit_code_error(completed.returncode)

        return builder.build()

    def stream(self, command: Sequence[str], on_line: Optional[LineSink] = None) -> ExecutionResult:
        """
        Run a command, delivering stdout to ``on_line`` one line at a time

        Each line is handed to the sink before the next one is read. Stderr
        is spooled to a temporary file and read once the process has exited;
        a non-empty stderr, or the exit code when stderr is empty, is relayed to
        the sink with an ``ERROR:`` prefix.

        Args:
            command: Argument vector from build_command()
            on_line: Called synchronously for every stdout line

        Returns:
            ExecutionResult
        """
        builder = ExecutionResultBuilder()
        self.logger.debug(f"Streaming: {' '.join(self.mask_command(command))}")
        process = None

        try:
            with tempfile.TemporaryFile() as stderr_file:
                process = subprocess.Popen(
                    list(command),
                    stdout=subprocess.PIPE,
                    stderr=stderr_file,
                    stdin=subprocess.DEVNULL,
                    text=True,
                    encoding=PROCESS_ENCODING,
                    errors="replace",
                    bufsize=1,
                    cwd=self.cwd,
                )

                with process.stdout:
                    for raw in iter(process.stdout.readline, ""):
                        line = raw.rstrip("\r\n")
                        builder.add_line(line)
                        if on_line:
                            on_line(line)

                builder.exit_code = process.wait()

                stderr_file.seek(0)
                errors = stderr_file.read().decode(PROCESS_ENCODING, errors="replace")

            if errors.strip():
                builder.add_error(errors)
                self.relay(on_line, f"{ERROR_LINE_PREFIX}{errors.rstrip()}")
            elif builder.exit_code != 0:
                builder.add_exit_code_error(builder.exit_code)
                self.relay(on_line, f"{ERROR_LINE_PREFIX}{MSG_EXIT_CODE.format(code=builder.exit_code)}")

        except Exception as e:
            builder.add_exception(e)
            self.logger.error(f"Script execution failed: {e}")
            self._terminate(process)
            self.relay(on_line, f"{EXCEPTION_LINE_PREFIX}{e}")

        return builder.build()

    def _terminate(self, process: Optional[subprocess.Popen]) -> None:
        # Nobody reads stdout any more, a live child would block on it
        if process is None or process.poll() is not None:
            return
        process.kill()
        process.wait()

    def relay(self, on_line: Optional[LineSink], text: str) -> None:
        """Hand a diagnostic line to the sink; a failing sink is logged, not raised"""
        if not on_line:
            return
        try:
            on_line(text)
        except Exception as e:
            self.logger.warning(f"Line sink failed while reporting an error: {e}")

