"""Deploy command: validate, build and deploy a project to IIS"""

from pathlib import Path

import click
from rich.markup import escape
from rich.prompt import Confirm

from ..utils.output import (
    console,
    format_pipeline_result,
    print_banner,
    print_error,
    print_line,
    print_warning,
)
from ..utils.prompts import CredentialPrompt
from ...constants import BuildStyle, ENV_USERNAME, EMOJI_ROCKET
from ...models import ToolSettings
from ...services import PipelineCoordinator
from ...utils.project_utils import (
    detect_build_style,
    find_project_file,
    get_project_directory,
    is_runnable_project,
)


@click.command()
@click.argument('project', type=click.Path(exists=True, path_type=Path))
@click.option('--username', '-u', envvar=ENV_USERNAME, help='Account on the IIS host')
@click.option('--configuration', '-c', 'config_name',
              help='Configuration variant and build configuration name')
@click.option('--style', type=click.Choice(['sdk', 'legacy']),
              help='Build style (detected from the project file by default)')
@click.option('--scripts-dir', type=click.Path(file_okay=False, path_type=Path),
              help='Directory holding the PowerShell scripts')
@click.option('--shell', help='Command used to run the scripts')
@click.option('--dotnet', help='Command used to run dotnet publish')
@click.option('--max-attempts', type=click.IntRange(min=1),
              help='Give up after this many failed credential attempts')
@click.option('--yes', '-y', is_flag=True, help='Skip the confirmation prompt')
@click.pass_context
def deploy(ctx, project, username, config_name, style, scripts_dir, shell, dotnet, max_attempts, yes):
    """Build a project and deploy it to IIS

    PROJECT is a project file or a directory containing exactly one.
    Credentials are asked for interactively and checked against the
    server before anything is built.

    Examples:
        iis-deploy deploy ./src/WebApp
        iis-deploy deploy ./src/WebApp/WebApp.csproj -c Staging -u deployer
    """
    project_file = find_project_file(project)
    if project_file is None:
        print_error(f"No single project file found at: {project}")
        ctx.exit(1)

    if not is_runnable_project(project_file):
        print_warning(f"{project_file.name} does not look like a web or executable project")
        if not yes and not Confirm.ask("Deploy anyway?", default=False, console=console):
            ctx.exit(1)

    project_dir = get_project_directory(project_file)
    try:
        settings = ToolSettings.load(project_dir).with_overrides(
            scripts_dir=scripts_dir,
            shell=shell,
            dotnet=dotnet,
        )
    except (OSError, ValueError) as e:
        print_error(escape(f"Failed to load settings: {e}"))
        ctx.exit(1)

    build_style = BuildStyle(style) if style else detect_build_style(project_file)

    console.print(f"\n{EMOJI_ROCKET} [bold]Deploying {project_file.name}[/bold] ({build_style.value})\n")

    coordinator = PipelineCoordinator(
        project_file,
        CredentialPrompt(console=console, username=username, configuration_name=config_name),
        settings=settings,
        on_progress=print_line,
        on_notice=print_warning,
        max_attempts=max_attempts,
    )
    run = coordinator.run(config_name, build_style)

    if run.deploy_started:
        print_banner("Starting deployment...")

    result = run.stream(print_line)

    format_pipeline_result(result, debug=bool(ctx.obj and ctx.obj.debug))

    if result.cancelled:
        ctx.exit(130)
    if not result.success:
        ctx.exit(1)
