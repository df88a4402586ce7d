"""CLI commands using Typer."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from concurrent.futures import CancelledError, Future
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from pip_orchestrator import __version__
from pip_orchestrator.config import ConfigError
from pip_orchestrator.console import TUI, AutoConfirm, ConsoleConfirmation, ConsoleOutput
from pip_orchestrator.context import create_context
from pip_orchestrator.process import SpawnError
from pip_orchestrator.resolver import describe_interpreter
from pip_orchestrator.types import RuntimeDescriptor

if TYPE_CHECKING:
    from pip_orchestrator.context import AppContext
    from pip_orchestrator.protocols import ConfirmationSurface

T = TypeVar("T")

app = typer.Typer(
    name="pip-orchestrator",
    help="Find, run and sequence pip for any Python installation",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Configuration commands")
app.add_typer(config_app, name="config")

console = Console()
tui = TUI(console)

PythonOption = Annotated[
    Path | None, typer.Option("--python", help="Interpreter to manage (default: this one)")
]
PrefixOption = Annotated[Path | None, typer.Option("--prefix", help="Install prefix override")]
LibraryOption = Annotated[
    Path | None, typer.Option("--library", help="Library directory containing site-packages")
]


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"pip-orchestrator v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable debug logging")] = False,
) -> None:
    """Find, run and sequence pip for any Python installation."""
    _configure_logging(verbose)


# ============================================================================
# Helpers
# ============================================================================


def _load_context(context: AppContext | None) -> AppContext:
    """Return the injected context or build the production one."""
    if context is not None:
        return context
    try:
        return create_context()
    except ConfigError as e:
        tui.show_error(str(e))
        raise typer.Exit(1) from e


@contextmanager
def _open_context(context: AppContext | None) -> Iterator[AppContext]:
    """Load a context and shut its pool down when the command finishes."""
    ctx = _load_context(context)
    try:
        yield ctx
    finally:
        ctx.shutdown()


def _build_runtime(
    ctx: AppContext, python: Path | None, prefix: Path | None, library: Path | None
) -> RuntimeDescriptor:
    """Describe the runtime selected by the command line options.

    Raises:
        typer.Exit: If the selected interpreter cannot be started.
    """
    if python is None:
        current = RuntimeDescriptor.current()
        return RuntimeDescriptor(
            executable_path=current.executable_path,
            prefix_path=prefix or current.prefix_path,
            library_path=library or current.library_path,
        )
    try:
        return describe_interpreter(python, ctx.workflow.executor, prefix, library)
    except SpawnError as e:
        tui.show_error(str(e))
        raise typer.Exit(1) from e


def _wait(future: Future[T]) -> T:
    """Block on a workflow future, turning failures into CLI exits.

    Raises:
        typer.Exit: If the workflow was cancelled or could not start pip.
    """
    try:
        return future.result()
    except CancelledError as e:
        tui.show_warning("Cancelled")
        raise typer.Exit(1) from e
    except SpawnError as e:
        tui.show_error(str(e))
        raise typer.Exit(1) from e


def _confirmation(yes: bool) -> ConfirmationSurface:
    return AutoConfirm() if yes else ConsoleConfirmation(console)


# ============================================================================
# Package Commands
# ============================================================================


@app.command()
def freeze(
    python: PythonOption = None,
    prefix: PrefixOption = None,
    library: LibraryOption = None,
    _context=None,
) -> None:
    """List installed packages."""
    with _open_context(_context) as ctx:
        runtime = _build_runtime(ctx, python, prefix, library)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Scanning {runtime.executable_path}...", total=None)
            packages = _wait(ctx.inventory.freeze(runtime))

    tui.show_packages(packages, runtime)


@app.command()
def install(
    package: Annotated[str, typer.Argument(help="Requirement to install, e.g. requests==2.32.3")],
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Install pip without asking if it is missing")
    ] = False,
    no_bootstrap: Annotated[
        bool, typer.Option("--no-bootstrap", help="Do not check whether pip is installed")
    ] = False,
    python: PythonOption = None,
    prefix: PrefixOption = None,
    library: LibraryOption = None,
    _context=None,
) -> None:
    """Install a package, installing pip first if needed."""
    with _open_context(_context) as ctx:
        runtime = _build_runtime(ctx, python, prefix, library)
        confirm = None if no_bootstrap else _confirmation(yes)

        future = ctx.workflow.install(
            runtime,
            package,
            confirm=confirm,
            message=ctx.settings.bootstrap_prompt,
            output=ConsoleOutput(console),
        )
        if not _wait(future):
            raise typer.Exit(1)
    tui.show_success(f"Installed {escape(package)}")


@app.command()
def uninstall(
    package: Annotated[str, typer.Argument(help="Package to uninstall")],
    python: PythonOption = None,
    prefix: PrefixOption = None,
    library: LibraryOption = None,
    _context=None,
) -> None:
    """Uninstall a package."""
    with _open_context(_context) as ctx:
        runtime = _build_runtime(ctx, python, prefix, library)

        future = ctx.workflow.uninstall(runtime, package, output=ConsoleOutput(console))
        if not _wait(future):
            raise typer.Exit(1)
    tui.show_success(f"Uninstalled {escape(package)}")


@app.command()
def bootstrap(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    python: PythonOption = None,
    prefix: PrefixOption = None,
    library: LibraryOption = None,
    _context=None,
) -> None:
    """Install pip into a Python installation."""
    with _open_context(_context) as ctx:
        runtime = _build_runtime(ctx, python, prefix, library)

        future = ctx.workflow.query_install_pip(
            runtime,
            _confirmation(yes),
            ctx.settings.bootstrap_prompt,
            output=ConsoleOutput(console),
        )
        if not _wait(future):
            raise typer.Exit(1)


# ============================================================================
# Config Commands
# ============================================================================


@config_app.command("show")
def config_show(
    _context=None,
) -> None:
    """Show current configuration."""
    with _open_context(_context) as ctx:
        tui.show_settings(ctx.settings, ctx.settings_manager.config_file)


@config_app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help="max-workers, bootstrap-script or bootstrap-prompt")],
    value: Annotated[str, typer.Argument(help="Configuration value")],
    _context=None,
) -> None:
    """Set a configuration value."""
    with _open_context(_context) as ctx:
        try:
            ctx.settings = ctx.settings_manager.set_value(key, value)
        except ConfigError as e:
            tui.show_error(str(e))
            raise typer.Exit(1) from e
    tui.show_success(f"Set {key} to {escape(value)}")


if __name__ == "__main__":
    app()
