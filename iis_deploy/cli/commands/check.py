"""Check command: resolve and display a deploy configuration"""

from pathlib import Path

import click
from rich.markup import escape

from ..utils.output import format_configuration, print_error, print_success, print_warning
from ...api.exceptions import ConfigError
from ...core.config_resolver import ConfigResolver
from ...models import ToolSettings


@click.command()
@click.argument('project_dir', required=False, default='.',
                type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option('--configuration', '-c', 'config_name', help='Configuration variant name')
@click.pass_context
def check(ctx, project_dir, config_name):
    """Validate the deploy configuration and script locations

    Examples:
        iis-deploy check
        iis-deploy check ./src/WebApp -c prod
    """
    project_dir = project_dir.resolve()
    try:
        resolution = ConfigResolver(project_dir).resolve(config_name)
    except ConfigError as e:
        print_error(escape(f"[{e.error_code}] {e.message}"))
        ctx.exit(1)

    format_configuration(resolution)

    try:
        settings = ToolSettings.load(project_dir)
    except (OSError, ValueError) as e:
        print_error(escape(f"Failed to load settings: {e}"))
        ctx.exit(1)

    missing = settings.missing_scripts()
    for path in missing:
        print_warning(f"Script not found at: {path}")

    if missing:
        ctx.exit(1)
    print_success("Configuration is valid")
