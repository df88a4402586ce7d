"""Protocol definitions for the collaborators pip orchestration relies on.

The process primitive, the output sink, the confirmation surface, the
module scanner and filesystem access are all expressed as Protocols so the
resolver, inventory builder and workflow can be built against test doubles.

All concrete implementations satisfy these protocols structurally (duck typing).
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pip_orchestrator.types import RuntimeDescriptor


@runtime_checkable
class OutputSink(Protocol):
    """Receives progress and outcome text."""

    def write_line(self, text: str) -> None:
        """Write one line of text.

        Args:
            text: Line without trailing newline.
        """
        ...

    def show(self) -> None:
        """Bring the sink to the foreground."""
        ...


@runtime_checkable
class ConfirmationSurface(Protocol):
    """Asks the user a yes/cancel question."""

    def prompt(self, message: str) -> bool:
        """Show a prompt.

        Args:
            message: Question to display.

        Returns:
            True to proceed, False to cancel.
        """
        ...


@runtime_checkable
class ProcessHandle(Protocol):
    """A spawned process whose output is being captured."""

    @property
    def exit_code(self) -> int | None:
        """Exit code once finished, None while running or if unavailable."""
        ...

    @property
    def stdout_lines(self) -> Sequence[str]:
        """Lines read from standard output so far."""
        ...

    def wait(self, timeout: float | None = None) -> None:
        """Block until the process exits and its output is drained."""
        ...

    def close(self) -> None:
        """Release the process and its pipes, killing it if still running."""
        ...

    def __enter__(self) -> ProcessHandle: ...

    def __exit__(self, *exc_info: object) -> None: ...


@runtime_checkable
class ProcessSpawner(Protocol):
    """Starts external processes."""

    def spawn(
        self,
        executable: Path,
        args: Sequence[str],
        cwd: Path | None,
        env_overrides: Mapping[str, str],
        capture_output: bool = True,
        output: OutputSink | None = None,
    ) -> ProcessHandle:
        """Start a process.

        Args:
            executable: Program to run.
            args: Arguments after the executable.
            cwd: Working directory, or None to inherit.
            env_overrides: Variables layered over the current environment.
            capture_output: Capture stdout/stderr line by line.
            output: Optional sink receiving each output line as it arrives.

        Returns:
            Handle to the running process.

        Raises:
            SpawnError: If the executable cannot be started.
        """
        ...


@runtime_checkable
class ModuleScanner(Protocol):
    """Answers whether a module is installed in a runtime."""

    def has_module(self, runtime: RuntimeDescriptor, name: str) -> bool:
        """Check for a top-level module.

        Args:
            runtime: Runtime to inspect.
            name: Top-level module name.

        Returns:
            True if the module is present.
        """
        ...


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for filesystem operations.

    Abstracts filesystem access to enable testing without real I/O.
    """

    def exists(self, path: Path) -> bool:
        """Check if a path exists."""
        ...

    def is_file(self, path: Path) -> bool:
        """Check if a path is a regular file."""
        ...

    def is_dir(self, path: Path) -> bool:
        """Check if a path is a directory."""
        ...

    def iter_dirs(self, path: Path) -> Iterator[Path]:
        """Yield the immediate subdirectories of a directory.

        Raises:
            OSError: If the directory cannot be listed.
        """
        ...

    def read_text(self, path: Path) -> str:
        """Read text content from a file."""
        ...

    def write_text(self, path: Path, content: str) -> None:
        """Write text content to a file."""
        ...

    def mkdir(self, path: Path, parents: bool = False, exist_ok: bool = False) -> None:
        """Create a directory."""
        ...
