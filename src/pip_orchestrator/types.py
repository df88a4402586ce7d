"""Shared data types for pip orchestration."""

from __future__ import annotations

import re
import sys
import sysconfig
from dataclasses import dataclass, field
from pathlib import Path

__all__ = ["CommandResult", "CommandSpec", "RuntimeDescriptor"]

# python3.12, python2.7, python3.13t
VERSIONED_EXECUTABLE_PATTERN = re.compile(r"^python(?P<version>\d+\.\d+)")


@dataclass(frozen=True)
class RuntimeDescriptor:
    """A Python installation that hosts pip.

    Attributes:
        executable_path: The interpreter executable.
        prefix_path: The install prefix (where Scripts/ or bin/ lives).
        library_path: The library directory containing site-packages.
    """

    executable_path: Path
    prefix_path: Path
    library_path: Path

    def __post_init__(self) -> None:
        """Coerce paths and validate invariants."""
        for name in ("executable_path", "prefix_path", "library_path"):
            object.__setattr__(self, name, Path(getattr(self, name)))
        if self.executable_path == Path(""):
            raise ValueError("executable_path cannot be empty")

    @property
    def site_packages(self) -> Path:
        """Directory holding installed third-party packages."""
        return self.library_path / "site-packages"

    @classmethod
    def current(cls) -> RuntimeDescriptor:
        """Describe the interpreter running this process.

        Returns:
            RuntimeDescriptor for sys.executable.
        """
        purelib = Path(sysconfig.get_paths()["purelib"])
        return cls(
            executable_path=Path(sys.executable),
            prefix_path=Path(sys.prefix),
            library_path=purelib.parent,
        )

    @classmethod
    def from_interpreter(
        cls,
        executable: Path,
        prefix: Path | None = None,
        library: Path | None = None,
    ) -> RuntimeDescriptor:
        """Describe another interpreter from its executable path alone.

        The prefix defaults to the folder above ``bin``/``Scripts`` (or the
        executable's own folder). Outside Windows the library defaults to
        ``lib/pythonX.Y``, taking the version from an executable named like
        ``python3.12`` and from this interpreter otherwise. Prefer
        `resolver.describe_interpreter`, which asks the interpreter itself.

        Args:
            executable: Interpreter executable.
            prefix: Install prefix override.
            library: Library directory override.

        Returns:
            RuntimeDescriptor for the interpreter.
        """
        executable = Path(executable)
        if prefix is None:
            folder = executable.parent
            prefix = folder.parent if folder.name in ("bin", "Scripts") else folder
        if library is None:
            if sys.platform == "win32":
                library = prefix / "Lib"
            else:
                match = VERSIONED_EXECUTABLE_PATTERN.match(executable.name)
                version = (
                    match.group("version")
                    if match
                    else f"{sys.version_info[0]}.{sys.version_info[1]}"
                )
                library = prefix / "lib" / f"python{version}"
        return cls(executable_path=executable, prefix_path=prefix, library_path=library)


@dataclass(frozen=True)
class CommandSpec:
    """A fully resolved command line, ready to spawn.

    Attributes:
        executable: Program to run.
        args: Arguments passed after the executable.
        cwd: Working directory, or None to inherit.
        env: Environment variables layered over the current environment.
    """

    executable: Path
    args: tuple[str, ...] = ()
    cwd: Path | None = None
    env: dict[str, str] = field(default_factory=dict)

    def argv(self) -> list[str]:
        """Full argument vector including the executable."""
        return [str(self.executable), *self.args]


@dataclass
class CommandResult:
    """Outcome of a finished command.

    Attributes:
        exit_code: Process exit code, or None if none was reported.
        stdout_lines: Captured standard output, in order.
    """

    exit_code: int | None
    stdout_lines: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """True when the command exited with code 0."""
        return self.exit_code == 0
