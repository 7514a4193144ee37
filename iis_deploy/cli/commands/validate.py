"""Validate command: check credentials against the target server"""

from pathlib import Path

import click
from rich.markup import escape

from ..utils.output import console, format_configuration, format_execution_result, print_error
from ..utils.prompts import CredentialPrompt
from ...api.exceptions import ConfigError, CredentialError
from ...constants import ENV_USERNAME, MSG_UNKNOWN_AUTH_ERROR
from ...core import ConfigResolver, CredentialValidator, ScriptRunner
from ...models import ToolSettings
from ...services.pipeline_service import CredentialRequest
from ...utils.project_utils import find_project_file, get_project_directory


@click.command()
@click.argument('project', type=click.Path(exists=True, path_type=Path))
@click.option('--username', '-u', envvar=ENV_USERNAME, help='Account on the IIS host')
@click.option('--configuration', '-c', 'config_name', help='Configuration variant name')
@click.option('--scripts-dir', type=click.Path(file_okay=False, path_type=Path),
              help='Directory holding the PowerShell scripts')
@click.option('--shell', help='Command used to run the scripts')
@click.pass_context
def validate(ctx, project, username, config_name, scripts_dir, shell):
    """Check credentials without building or deploying

    PROJECT is a project file or a directory containing exactly one.

    Examples:
        iis-deploy validate ./src/WebApp
        iis-deploy validate ./src/WebApp/WebApp.csproj -u deployer -c prod
    """
    project_file = find_project_file(project)
    if project_file is None:
        print_error(f"No single project file found at: {project}")
        ctx.exit(1)

    project_dir = get_project_directory(project_file)
    try:
        resolution = ConfigResolver(project_dir).resolve(config_name)
    except ConfigError as e:
        print_error(escape(f"[{e.error_code}] {e.message}"))
        ctx.exit(1)

    format_configuration(resolution)

    try:
        settings = ToolSettings.load(project_dir).with_overrides(scripts_dir=scripts_dir, shell=shell)
    except (OSError, ValueError) as e:
        print_error(escape(f"Failed to load settings: {e}"))
        ctx.exit(1)

    script_path = settings.validate_script_path
    if not script_path.is_file():
        print_error(f"Script not found at: {script_path}")
        ctx.exit(1)

    prompt = CredentialPrompt(console=console, username=username, ask_configuration=False)
    validator = CredentialValidator(ScriptRunner(settings.shell))
    config = resolution.config

    attempt = 0
    last_error = None
    while True:
        attempt += 1
        credentials = prompt(CredentialRequest(
            attempt=attempt,
            server=config.server,
            username=username,
            configuration_name=config_name,
            last_error=last_error,
        ))
        if credentials is None:
            console.print("[yellow]Validation cancelled[/yellow]")
            ctx.exit(130)

        username = credentials.username
        result = validator.validate(
            script_path,
            config.server,
            credentials.username,
            credentials.secret,
            config.app_folder_location,
        )
        credentials.clear()

        format_execution_result(result, "Credential validation")
        if result.success:
            return

        last_error = CredentialError.from_result(result).message.strip() or MSG_UNKNOWN_AUTH_ERROR
