"""Init command: create a deploy configuration template"""

from pathlib import Path

import click

from ..utils.output import console, print_success, print_warning
from ...constants import EMOJI_INFO
from ...core.config_resolver import ConfigResolver, config_file_name


@click.command()
@click.argument('project_dir', required=False, default='.',
                type=click.Path(file_okay=False, path_type=Path))
@click.option('--name', '-n', 'config_name',
              help='Configuration variant name (creates deploy.<name>.config.json)')
@click.option('--force', '-f', is_flag=True, help='Overwrite an existing file')
@click.pass_context
def init(ctx, project_dir, config_name, force):
    """Create an empty deploy configuration

    Examples:
        iis-deploy init
        iis-deploy init ./src/WebApp --name prod
    """
    resolver = ConfigResolver(project_dir.resolve())
    target = resolver.path_for(config_name)

    if target.exists() and not force:
        print_warning(f"{target.name} already exists in {target.parent}")
        console.print("Use --force to overwrite")
        ctx.exit(1)

    path = resolver.create_default(config_name, force=force)
    print_success(f"{config_file_name(config_name)} has been created: {path}")
    console.print(f"{EMOJI_INFO} Fill in server, poolName, appFolderLocation and "
                  f"backupFolderLocation, then run 'iis-deploy deploy'.")
