"""Per-application command line interface.

The static part of the surface is declared with Typer. ``run`` and
``config`` take whatever options the application's aspects declare, so they
are assembled as click commands from those option descriptors and added to
the group Typer produces.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

import click
import typer
from rich.console import Console
from rich.markup import escape

from guibox.errors import GuiboxError
from guibox.models.aspect import ConfigOption
from guibox.models.config import Configuration
from guibox.utils.logging import setup_logging

if TYPE_CHECKING:
    from guibox.core.manager import ContainerManager


# Console for rich output
console = Console()
stderr_console = Console(stderr=True)


def report_error(error: GuiboxError):
    stderr_console.print(f"[red]Error:[/red] {escape(str(error))}")


def _run_operation(handler: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Helper to run a manager operation with error handling."""
    try:
        return handler(*args, **kwargs)
    except GuiboxError as e:
        report_error(e)
        raise typer.Exit(1) from e


def _option_params(options: Sequence[ConfigOption]) -> List[click.Parameter]:
    return [
        click.Option([option.flag, option.key], multiple=option.multiple, default=None, help=option.help)
        for option in options
    ]


def collect_configuration(options: Sequence[ConfigOption], values: Dict[str, Any]) -> Configuration:
    """Turn parsed option values into a configuration, skipping absent ones."""
    collected: Dict[str, Any] = {}
    for option in options:
        value = values.get(option.key)
        if option.multiple:
            if value:
                collected[option.name] = list(value)
        elif value is not None:
            collected[option.name] = value
    return Configuration(values=collected)


def _run_command(manager: "ContainerManager", options: List[ConfigOption]) -> click.Command:
    def callback(args, **values):
        cli_config = collect_configuration(options, values)

        def run():
            configuration = manager.load_config(cli_config)
            manager.args.extend(args)
            return manager.run(configuration)

        raise typer.Exit(_run_operation(run))

    return click.Command(
        "run",
        callback=callback,
        params=_option_params(options) + [click.Argument(["args"], nargs=-1, type=click.UNPROCESSED)],
        help="Run app in container. Arguments after -- are passed to the app.",
    )


def _config_command(manager: "ContainerManager", options: List[ConfigOption]) -> click.Command:
    def callback(**values):
        cli_config = collect_configuration(options, values)

        def save():
            manager.load_config(cli_config)
            return manager.config(cli_config)

        path = _run_operation(save)
        console.print(f"[green]✓[/green] Saved configuration to {escape(str(path))}")

    return click.Command(
        "config",
        callback=callback,
        params=_option_params(options),
        help="Configure app container settings.",
    )


def create_app(manager: "ContainerManager") -> click.Group:
    """Build the command group for ``manager``'s application."""
    manager.prepare()
    options = manager.options()

    app = typer.Typer(
        name=manager.name,
        help=f"Run {manager.name} in a container.",
        add_completion=False,
    )

    @app.callback(invoke_without_command=True)
    def main(
        ctx: typer.Context,
        log_level: Optional[str] = typer.Option(
            None, "--log-level", envvar="GUIBOX_LOG_LEVEL", help="Logging level"
        ),
    ):
        """Run the application in a container."""
        setup_logging(log_level or manager.settings.log_level)
        if ctx.invoked_subcommand is None:
            typer.echo(ctx.get_help())
            raise typer.Exit(0)

    @app.command("build")
    def build_command():
        """Build app container."""
        def build():
            manager.load_config()
            manager.build()

        _run_operation(build)

    @app.command("generate-archive")
    def generate_archive_command(
        output: Optional[Path] = typer.Option(
            None, "--output", "-o", help="Archive path (default: ./<app>.tar)"
        ),
    ):
        """Generate archive used to build container."""
        def generate():
            manager.load_config()
            return manager.generate_archive(output)

        path = _run_operation(generate)
        console.print(f"[green]✓[/green] Wrote {escape(str(path))}")

    @app.command(
        "entrypoint",
        context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
    )
    def entrypoint_command(
        command: Optional[List[str]] = typer.Argument(None, help="Command to hand off to"),
    ):
        """Run container entrypoint logic."""
        argv = [str(manager.settings.entrypoint_path)] + list(command or [])
        raise typer.Exit(_run_operation(manager.entrypoint, argv))

    group = typer.main.get_group(app)
    group.add_command(_run_command(manager, options))
    group.add_command(_config_command(manager, options))
    return group


def run_app(manager: "ContainerManager", args: Sequence[str]) -> int:
    """Parse ``args`` and run the selected command, returning the exit status."""
    app = create_app(manager)
    try:
        result = app.main(args=list(args), prog_name=manager.name, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.exceptions.Abort:
        stderr_console.print("[yellow]Aborted[/yellow]")
        return 130
    return result if isinstance(result, int) else 0
