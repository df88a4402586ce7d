"""Rich-based console output, confirmation prompts and display helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

if TYPE_CHECKING:
    from pip_orchestrator.config import Settings
    from pip_orchestrator.types import RuntimeDescriptor


class ConsoleOutput:
    """Output sink that prints pip output to the terminal.

    Satisfies the OutputSink protocol structurally.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def write_line(self, text: str) -> None:
        """Print one line without markup interpretation."""
        self.console.print(text, markup=False, highlight=False)

    def show(self) -> None:
        """Flush so the latest lines are visible."""
        self.console.file.flush()


class ConsoleConfirmation:
    """Asks yes/cancel questions on the terminal.

    Satisfies the ConfirmationSurface protocol structurally.
    """

    def __init__(self, console: Console | None = None, default: bool = True) -> None:
        self.console = console or Console()
        self.default = default

    def prompt(self, message: str) -> bool:
        """Show a confirmation prompt and return the answer."""
        return Confirm.ask(message, default=self.default, console=self.console)


class AutoConfirm:
    """Confirmation surface that always proceeds."""

    def prompt(self, message: str) -> bool:
        return True


class TUI:
    """Text User Interface for pip-orchestrator (non-interactive mode)."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize TUI."""
        self.console = console or Console()

    def show_packages(self, packages: set[str], runtime: RuntimeDescriptor) -> None:
        """Display installed packages table.

        Args:
            packages: Package identifiers.
            runtime: Runtime the packages belong to.
        """
        if not packages:
            self.console.print(f"[yellow]No packages found for {runtime.executable_path}[/yellow]")
            return

        table = Table(title=f"Installed Packages ({runtime.executable_path})")
        table.add_column("Package", style="cyan")
        table.add_column("Version")

        for identifier in sorted(packages, key=str.lower):
            name, _, version = identifier.partition("==")
            table.add_row(escape(name), escape(version))

        self.console.print(table)

    def show_settings(self, settings: Settings, config_file: object) -> None:
        """Display current configuration.

        Args:
            settings: Loaded settings.
            config_file: Location of the config file.
        """
        self.console.print("\n[bold]Configuration[/bold]")
        self.console.print(f"  Config file: {config_file}")
        self.console.print(f"  Max workers: {settings.max_workers}")
        self.console.print(f"  Bootstrap script: {settings.resolved_bootstrap_script()}")
        self.console.print(f"  Bootstrap prompt: {escape(settings.bootstrap_prompt)}")

    def show_success(self, message: str) -> None:
        """Show success message.

        Args:
            message: Success message.
        """
        self.console.print(f"[green]✓[/green] {message}")

    def show_error(self, message: str) -> None:
        """Show error message.

        Args:
            message: Error message.
        """
        self.console.print(f"[red]✗[/red] {message}")

    def show_warning(self, message: str) -> None:
        """Show warning message.

        Args:
            message: Warning message.
        """
        self.console.print(f"[yellow]![/yellow] {message}")

    def show_info(self, message: str) -> None:
        """Show info message.

        Args:
            message: Info message.
        """
        self.console.print(f"[blue]i[/blue] {message}")
