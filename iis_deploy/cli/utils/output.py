# iis_deploy/cli/utils/output.py
"""Output formatting utilities"""

from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ...constants import BANNER_RULE, EMOJI_ERROR, EMOJI_SUCCESS, EMOJI_WARNING
from ...models import ConfigResolution, ExecutionResult, PipelineResult

console = Console()


def print_success(message: str) -> None:
    console.print(f"[green]{EMOJI_SUCCESS}[/green] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]{EMOJI_WARNING} {message}[/yellow]")


def print_error(message: str) -> None:
    console.print(f"[red]{EMOJI_ERROR} {message}[/red]")


def print_banner(title: str, style: str = "bold") -> None:
    """Framed heading, as shown between pipeline stages"""
    console.print(BANNER_RULE)
    console.print(f"[{style}]{title}[/{style}]")
    console.print(BANNER_RULE)


def print_line(line: str) -> None:
    """Print one line of script output without markup interpretation"""
    if line.startswith("ERROR: ") or line.startswith("EXCEPTION: "):
        console.print(line, style="red", markup=False, highlight=False)
    else:
        console.print(line, markup=False, highlight=False)


def format_configuration(resolution: ConfigResolution) -> None:
    """Format and display a resolved configuration"""
    config = resolution.config
    table = Table(title=f"Configuration: {resolution.file_name}", box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Server", config.server)
    table.add_row("Pool", config.pool_name)
    table.add_row("App folder", config.app_folder_location)
    table.add_row("Backup folder", config.backup_folder_location)
    table.add_row("Exclude from cleanup", ", ".join(config.exclude_from_cleanup) or "-")
    table.add_row("Exclude from copy", ", ".join(config.exclude_from_copy) or "-")
    if config.default_configuration:
        table.add_row("Default configuration", config.default_configuration)

    console.print(table)

    if resolution.fell_back and resolution.notice:
        print_warning(resolution.notice)


def format_execution_result(result: ExecutionResult, title: str) -> None:
    """Format and display a script result"""
    if result.success:
        console.print(Panel(
            f"[green]{EMOJI_SUCCESS}[/green] {title} succeeded",
            title=title,
            border_style="green",
        ))
    else:
        console.print(Panel(
            f"[red]{EMOJI_ERROR} {title} failed:[/red]\n{escape(result.error_message)}",
            title=title,
            border_style="red",
        ))


def format_pipeline_result(result: PipelineResult, debug: bool = False) -> None:
    """Format and display the final pipeline verdict"""
    if result.success:
        print_banner("DEPLOYMENT COMPLETED SUCCESSFULLY!", style="bold green")
        lines = [f"[green]{EMOJI_SUCCESS}[/green] Deployment completed successfully!", ""]
        if result.resolution:
            lines.append(f"[bold]Server:[/bold] {result.resolution.config.server}")
            lines.append(f"[bold]Pool:[/bold] {result.resolution.config.pool_name}")
            lines.append(f"[bold]App folder:[/bold] {result.resolution.config.app_folder_location}")
        if result.artifact:
            lines.append(f"[bold]Artifact:[/bold] {result.artifact.output_path}")
        if result.duration is not None:
            lines.append(f"[bold]Duration:[/bold] {result.duration:.1f}s")
        console.print(Panel("\n".join(lines), title="Deploy Result", border_style="green"))
        return

    if result.cancelled:
        console.print("[yellow]Deployment cancelled[/yellow]")
        return

    stage = result.failed_stage.value if result.failed_stage else "unknown"
    print_banner("DEPLOYMENT FAILED!", style="bold red")
    lines = [
        f"[red]{EMOJI_ERROR} Failed at stage:[/red] {stage}",
        "",
        escape(result.error_message or "Unknown error"),
    ]

    detail: Optional[str] = getattr(result.error, "detail", None)
    if detail and debug:
        lines.extend(["", "[dim]Details:[/dim]", escape(detail)])

    console.print(Panel("\n".join(lines), title="Deploy Error", border_style="red"))
