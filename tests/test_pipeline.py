"""
Tests for the pipeline coordinator and the non-interactive Deployer API.

End-to-end runs use the stub scripts and dotnet from conftest; ordering
tests swap in mocks for the stage components.
"""
import base64
import logging
from unittest.mock import MagicMock

import pytest

from iis_deploy import Deployer, deploy
from iis_deploy.api.exceptions import (
    BuildError,
    BuildErrorKind,
    ConfigError,
    CredentialError,
    DeployError,
    ScriptNotFoundError,
    UserCancelledError,
)
from iis_deploy.constants import BuildStyle, PipelineStage, PipelineState
from iis_deploy.models import BuildArtifact, Credentials, ExecutionResult
from iis_deploy.services import PipelineCoordinator
from iis_deploy.services.pipeline_service import STATE_ORDER

from conftest import FAILING_DEPLOY_SCRIPT, VALID_CONFIG


class ScriptedProvider:
    """Credential provider returning prepared answers in order."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.requests = []
        self.given = []

    def __call__(self, request):
        self.requests.append(request)
        if not self.answers:
            return None
        answer = self.answers.pop(0)
        if answer is None:
            return None
        username, password = answer[:2]
        configuration_name = answer[2] if len(answer) > 2 else None
        credentials = Credentials(username, password, configuration_name)
        self.given.append(credentials)
        return credentials


class TestPipelineEndToEnd:
    """Full runs against stub scripts."""

    def test_successful_deploy(self, project_file, project_dir, settings):
        provider = ScriptedProvider(("deployer", "s3cret"))
        progress, lines = [], []
        coordinator = PipelineCoordinator(project_file, provider, settings=settings, on_progress=progress.append)

        run = coordinator.run()
        assert run.deploy_started
        result = run.stream(lines.append)

        assert result.success
        assert result.state == PipelineState.DEPLOYED
        assert coordinator.history == STATE_ORDER
        assert result.attempts == 1
        assert "Credentials validated successfully!" in progress
        assert lines[0] == "Stopping app pool AppPool"
        assert "Copying from " + str(result.artifact.output_path) in lines
        assert "Exclude cleanup: web.config,logs,App_Data" in lines
        assert "Exclude copy: appsettings.json" in lines
        assert "Password ok: True" in lines
        assert lines[-1] == "Deployment complete"
        assert result.artifact.output_path == (project_dir / "bin" / "Release" / "publish").resolve()

    def test_credentials_cleared_after_run(self, project_file, settings):
        provider = ScriptedProvider(("deployer", "s3cret"))

        PipelineCoordinator(project_file, provider, settings=settings).run().wait()

        assert provider.given[0].cleared

    def test_secret_never_logged(self, project_file, settings, caplog):
        provider = ScriptedProvider(("deployer", "wrong"), ("deployer", "s3cret"))
        encoded = base64.b64encode("s3cret".encode("utf-16-le")).decode("ascii")

        with caplog.at_level(logging.DEBUG):
            PipelineCoordinator(project_file, provider, settings=settings).run().wait()

        assert "s3cret" not in caplog.text
        assert encoded not in caplog.text

    def test_retry_after_failed_validation(self, project_file, settings):
        """A failed validation asks again, showing the script's error."""
        provider = ScriptedProvider(("deployer", "wrong"), ("deployer", "s3cret"))

        result = PipelineCoordinator(project_file, provider, settings=settings).run().wait()

        assert result.success
        assert result.attempts == 2
        assert provider.requests[0].last_error is None
        assert provider.requests[1].last_error == "Access denied for deployer"
        assert provider.requests[1].username == "deployer"
        assert provider.given[0].cleared

    def test_cancel_after_failed_validation(self, project_file, project_dir, settings):
        provider = ScriptedProvider(("deployer", "wrong"), None)

        run = PipelineCoordinator(project_file, provider, settings=settings).run()
        result = run.wait()

        assert not run.deploy_started
        assert result.cancelled
        assert result.failed_stage == PipelineStage.CREDENTIALS
        assert isinstance(result.error, UserCancelledError)
        assert not (project_dir / "bin").exists()

    def test_attempt_limit(self, project_file, settings):
        provider = ScriptedProvider(("deployer", "wrong"), ("deployer", "s3cret"))

        result = PipelineCoordinator(project_file, provider, settings=settings, max_attempts=1).run().wait()

        assert result.failed_stage == PipelineStage.CREDENTIALS
        assert not result.cancelled
        assert isinstance(result.error, CredentialError)
        assert len(provider.requests) == 1

    def test_missing_configuration(self, project_file, project_dir, settings):
        """Config failures stop the run before credentials are requested."""
        (project_dir / "deploy.config.json").unlink()
        provider = ScriptedProvider(("deployer", "s3cret"))

        result = PipelineCoordinator(project_file, provider, settings=settings).run().wait()

        assert result.failed_stage == PipelineStage.CONFIG
        assert isinstance(result.error, ConfigError)
        assert provider.requests == []

    def test_missing_script(self, project_file, project_dir, settings):
        (project_dir / "Scripts" / "deploy-template.ps1").unlink()
        provider = ScriptedProvider(("deployer", "s3cret"))

        result = PipelineCoordinator(project_file, provider, settings=settings).run().wait()

        assert result.failed_stage == PipelineStage.CONFIG
        assert isinstance(result.error, ScriptNotFoundError)
        assert "deploy-template.ps1" in result.error_message
        assert provider.requests == []

    def test_configuration_fallback_notice(self, project_file, settings):
        """An unknown variant falls back to the base file with one notice."""
        provider = ScriptedProvider(("deployer", "s3cret", "staging"))
        notices = []

        result = PipelineCoordinator(
            project_file, provider, settings=settings, on_notice=notices.append
        ).run("staging").wait()

        assert result.success
        assert result.resolution.fell_back
        assert len(notices) == 1
        assert result.notices == notices
        assert result.artifact.configuration == "staging"

    def test_cleared_configuration_name_uses_base_file(self, project_file, project_dir, settings, write_config):
        """Clearing the variant on a retry switches back to deploy.config.json."""
        write_config(project_dir, dict(VALID_CONFIG, server="web02"), name="deploy.prod.config.json")
        provider = ScriptedProvider(("deployer", "wrong", "prod"), ("deployer", "s3cret", None))

        result = PipelineCoordinator(project_file, provider, settings=settings).run("prod").wait()

        assert result.success
        assert provider.requests[0].server == "web02"
        assert provider.requests[1].configuration_name == "prod"
        assert result.resolution.file_name == "deploy.config.json"
        assert result.resolution.config.server == "web01"
        assert result.artifact.configuration == "Release"

    def test_deploy_failure(self, project_file, settings, write_script):
        write_script("deploy-template.ps1", FAILING_DEPLOY_SCRIPT, settings.scripts_dir)
        provider = ScriptedProvider(("deployer", "s3cret"))
        lines = []

        result = PipelineCoordinator(project_file, provider, settings=settings).run().stream(lines.append)

        assert result.failed_stage == PipelineStage.DEPLOY
        assert isinstance(result.error, DeployError)
        assert lines[-1] == "ERROR: Copy-Item : Access to the path is denied."
        assert result.deploy_result.exit_code == 1

    def test_runs_once(self, project_file, settings):
        coordinator = PipelineCoordinator(project_file, ScriptedProvider(("deployer", "s3cret")), settings=settings)
        coordinator.run().wait()

        with pytest.raises(RuntimeError):
            coordinator.run()


class TestPipelineOrdering:
    """Stage ordering with mocked components."""

    @pytest.fixture
    def events(self):
        return []

    @pytest.fixture
    def validator(self, events):
        validator = MagicMock()

        def validate(*args):
            events.append("validate")
            return ExecutionResult(success=True, exit_code=0)

        validator.validate.side_effect = validate
        return validator

    @pytest.fixture
    def builder(self, events, tmp_path):
        builder = MagicMock()

        def build(*args, **kwargs):
            events.append("build")
            return BuildArtifact(tmp_path / "out", BuildStyle.SDK, "Release")

        builder.build.side_effect = build
        return builder

    @pytest.fixture
    def executor(self, events):
        executor = MagicMock()

        def run_deploy(*args, on_line=None):
            events.append("deploy")
            on_line("deploying")
            return ExecutionResult(success=True, output=("deploying",), exit_code=0)

        executor.deploy.side_effect = run_deploy
        return executor

    def coordinator(self, project_file, settings, provider, validator, builder, executor):
        return PipelineCoordinator(
            project_file,
            provider,
            settings=settings,
            validator=validator,
            builder=builder,
            executor=executor,
        )

    def test_stages_run_in_order(self, project_file, settings, validator, builder, executor, events):
        provider = ScriptedProvider(("deployer", "s3cret"))
        coordinator = self.coordinator(project_file, settings, provider, validator, builder, executor)

        result = coordinator.run().stream(lambda line: events.append(line))

        assert result.success
        assert events == ["validate", "build", "deploy", "deploying"]

    def test_validation_gets_a_copy_of_the_secret(self, project_file, settings, validator, builder, executor):
        provider = ScriptedProvider(("deployer", "s3cret"))
        coordinator = self.coordinator(project_file, settings, provider, validator, builder, executor)

        coordinator.run().wait()

        validated_secret = validator.validate.call_args[0][3]
        deployed_secret = executor.deploy.call_args[0][3]
        assert validated_secret is not deployed_secret

    def test_build_configuration_from_default(self, project_file, project_dir, settings,
                                              write_config, validator, builder, executor):
        write_config(project_dir, data=dict(VALID_CONFIG, defaultConfiguration="Staging"))
        provider = ScriptedProvider(("deployer", "s3cret"))

        self.coordinator(project_file, settings, provider, validator, builder, executor).run().wait()

        assert builder.build.call_args[0][2] == "Staging"

    def test_build_failure_skips_deploy(self, project_file, settings, validator, builder, executor, events):
        builder.build.side_effect = BuildError(BuildErrorKind.EXIT_CODE, "Build failed with 2 error(s).", 2)
        provider = ScriptedProvider(("deployer", "s3cret"))
        coordinator = self.coordinator(project_file, settings, provider, validator, builder, executor)

        run = coordinator.run()
        result = run.wait()

        assert not run.deploy_started
        assert result.failed_stage == PipelineStage.BUILD
        assert result.error_message == "Build failed with 2 error(s)."
        assert coordinator.state == PipelineState.FAILED
        executor.deploy.assert_not_called()
        assert provider.given[0].cleared

    def test_failed_validation_never_builds(self, project_file, settings, validator, builder, executor):
        validator.validate.side_effect = None
        validator.validate.return_value = ExecutionResult(success=False, errors="", exit_code=1)
        provider = ScriptedProvider(("deployer", "wrong"), None)

        result = self.coordinator(project_file, settings, provider, validator, builder, executor).run().wait()

        assert result.cancelled
        assert provider.requests[1].last_error == "Exit code: 1"
        builder.build.assert_not_called()
        executor.deploy.assert_not_called()

    def test_executor_crash(self, project_file, settings, validator, builder, executor):
        executor.deploy.side_effect = OSError("pipe closed")
        provider = ScriptedProvider(("deployer", "s3cret"))

        result = self.coordinator(project_file, settings, provider, validator, builder, executor).run().wait()

        assert result.failed_stage == PipelineStage.DEPLOY
        assert result.error_message == "pipe closed"


class TestDeployer:
    """Non-interactive API."""

    def test_deploy_function(self, project_file, settings):
        lines = []

        result = deploy(project_file, "deployer", "s3cret", on_line=lines.append, settings=settings)

        assert result.success
        assert "Deployment complete" in lines

    def test_wrong_password_is_not_retried(self, project_file, settings):
        result = Deployer(project_file, settings=settings).deploy("deployer", "wrong")

        assert result.failed_stage == PipelineStage.CREDENTIALS
        assert result.attempts == 1
        assert not result.cancelled
        assert result.error_message == "Access denied for deployer"
