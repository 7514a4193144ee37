"""
Tests for deploy script execution.
"""
from iis_deploy.api.exceptions import DeployError, DeployErrorKind
from iis_deploy.core import DeployExecutor, ScriptRunner, join_exclusions
from iis_deploy.utils.secret_utils import SecretBuffer

from conftest import DEPLOY_SCRIPT, FAILING_DEPLOY_SCRIPT


def run_deploy(executor, script, secret=None, exclude_cleanup=("web.config", "logs"), exclude_copy=()):
    received = []
    result = executor.deploy(
        script,
        "web01",
        "deployer",
        secret if secret is not None else SecretBuffer("s3cret"),
        "AppPool",
        "D:\\Sites\\App",
        "/build/publish",
        "D:\\Backups\\App",
        exclude_cleanup,
        exclude_copy,
        on_line=received.append,
    )
    return result, received


class TestJoinExclusions:

    def test_join(self):
        assert join_exclusions(["web.config", " logs ", ""]) == "web.config,logs"

    def test_empty_is_none(self):
        """Empty lists omit the parameter."""
        assert join_exclusions([]) is None
        assert join_exclusions(None) is None
        assert join_exclusions(" ; ") is None


class TestDeployExecutor:
    """Deploy executor against the stub deploy script."""

    def test_streams_lines_in_order(self, python_runner, write_script):
        script = write_script("deploy-template.ps1", DEPLOY_SCRIPT)

        result, received = run_deploy(DeployExecutor(python_runner), script)

        assert result.success
        assert received == [
            "Stopping app pool AppPool",
            "Backing up D:\\Sites\\App to D:\\Backups\\App",
            "Copying from /build/publish",
            "Exclude cleanup: web.config,logs",
            "Exclude copy: <none>",
            "Password ok: True",
            "Deployment complete",
        ]

    def test_secret_consumed(self, python_runner, write_script):
        script = write_script("deploy-template.ps1", DEPLOY_SCRIPT)
        secret = SecretBuffer("s3cret")

        run_deploy(DeployExecutor(python_runner), script, secret=secret)

        assert secret.cleared

    def test_stderr_fails_and_is_relayed(self, python_runner, write_script):
        """Stderr output is relayed with an ERROR: prefix and fails the deploy."""
        script = write_script("deploy-template.ps1", FAILING_DEPLOY_SCRIPT)

        result, received = run_deploy(DeployExecutor(python_runner), script)
        error = DeployError.from_result(result)

        assert not result.success
        assert received[0] == "Stopping app pool AppPool"
        assert received[-1] == "ERROR: Copy-Item : Access to the path is denied."
        assert error.kind == DeployErrorKind.NON_ZERO_EXIT
        assert error.exit_code == 1

    def test_spawn_failure(self, tmp_path):
        executor = DeployExecutor(ScriptRunner(shell=[str(tmp_path / "missing-powershell")]))

        result, received = run_deploy(executor, tmp_path / "deploy-template.ps1")

        assert result.process_failed
        assert DeployError.from_result(result).kind == DeployErrorKind.PROCESS_FAILURE
        assert received[-1].startswith("EXCEPTION: ")

    def test_cleared_secret(self, python_runner, write_script):
        script = write_script("deploy-template.ps1", DEPLOY_SCRIPT)
        secret = SecretBuffer("s3cret")
        secret.clear()

        result, received = run_deploy(DeployExecutor(python_runner), script, secret=secret)

        assert result.process_failed
        assert received == ["EXCEPTION: Secret has already been cleared"]

    def test_failing_sink_on_encode_error(self, python_runner, write_script):
        """A sink that raises while the encode failure is reported stays inside the executor."""
        script = write_script("deploy-template.ps1", DEPLOY_SCRIPT)
        secret = SecretBuffer("s3cret")
        secret.clear()

        def sink(line):
            raise RuntimeError("display closed")

        result = DeployExecutor(python_runner).deploy(
            script, "web01", "deployer", secret, "AppPool", "D:\\Sites\\App",
            "/build/publish", "D:\\Backups\\App", on_line=sink,
        )

        assert result.process_failed
        assert "Secret has already been cleared" in result.errors

    def test_exit_code_relayed_when_stderr_empty(self, python_runner, write_script):
        script = write_script("deploy-template.ps1", 'print("partial")\nraise SystemExit(3)\n')

        result, received = run_deploy(DeployExecutor(python_runner), script)

        assert not result.success
        assert received == ["partial", "ERROR: Exit code: 3"]
        assert DeployError.from_result(result).message == "Exit code: 3"
