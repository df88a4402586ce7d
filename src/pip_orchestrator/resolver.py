"""Resolve a runtime's paths and how to invoke pip for it."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from pip_orchestrator.protocols import FileSystem
from pip_orchestrator.types import CommandSpec, RuntimeDescriptor

if TYPE_CHECKING:
    from pip_orchestrator.process import CommandExecutor

logger = logging.getLogger(__name__)

PIP_MODULE = "pip"

# Run by the target interpreter; prints its prefix, then its purelib directory
RUNTIME_PATHS_CODE = (
    "import sys, sysconfig; print(sys.prefix); print(sysconfig.get_paths()['purelib'])"
)

# Forces line-oriented output so progress can be streamed
UNBUFFERED_ENV = {"PYTHONUNBUFFERED": "1"}

if sys.platform == "win32":
    SCRIPTS_DIR = "Scripts"
    PIP_EXECUTABLE = "pip.exe"
else:
    SCRIPTS_DIR = "bin"
    PIP_EXECUTABLE = "pip"


def find_pip_executable(runtime: RuntimeDescriptor, filesystem: FileSystem) -> Path | None:
    """Locate a pip launcher inside the runtime's install prefix.

    Checks the scripts folder first, then the prefix itself.

    Args:
        runtime: Runtime to inspect.
        filesystem: Filesystem used for probing.

    Returns:
        Path to the launcher, or None if neither location has one.
    """
    candidates = [
        runtime.prefix_path / SCRIPTS_DIR / PIP_EXECUTABLE,
        runtime.prefix_path / PIP_EXECUTABLE,
    ]
    for candidate in candidates:
        if filesystem.is_file(candidate):
            return candidate
    return None


def resolve_pip_command(
    runtime: RuntimeDescriptor,
    args: Sequence[str],
    filesystem: FileSystem,
) -> CommandSpec:
    """Build the command line that runs pip with the given arguments.

    Uses a pip launcher from the install prefix when one exists, otherwise
    runs ``<interpreter> -m pip`` from the prefix directory. Resolution
    never fails.

    Args:
        runtime: Runtime whose pip should run.
        args: Arguments for pip.
        filesystem: Filesystem used for probing.

    Returns:
        CommandSpec ready to spawn.
    """
    pip_path = find_pip_executable(runtime, filesystem)
    if pip_path is not None:
        logger.debug("Using pip launcher %s", pip_path)
        return CommandSpec(executable=pip_path, args=tuple(args), env=dict(UNBUFFERED_ENV))

    logger.debug("No pip launcher under %s, using -m %s", runtime.prefix_path, PIP_MODULE)
    return CommandSpec(
        executable=runtime.executable_path,
        args=("-m", PIP_MODULE, *args),
        cwd=runtime.prefix_path,
        env=dict(UNBUFFERED_ENV),
    )


def describe_interpreter(
    executable: Path,
    executor: CommandExecutor,
    prefix: Path | None = None,
    library: Path | None = None,
) -> RuntimeDescriptor:
    """Describe another interpreter by asking it for its own paths.

    The interpreter prints its prefix and purelib directory, so the library
    path matches its version rather than ours. Explicit overrides win. When
    the interpreter runs but cannot report, the layout is guessed from the
    executable path instead.

    Args:
        executable: Interpreter executable.
        executor: Executor used to run the interpreter.
        prefix: Install prefix override.
        library: Library directory override.

    Returns:
        RuntimeDescriptor for the interpreter.

    Raises:
        SpawnError: If the interpreter cannot be started.
    """
    executable = Path(executable)
    if prefix is not None and library is not None:
        return RuntimeDescriptor(executable, prefix, library)

    result = executor.run(
        CommandSpec(
            executable=executable,
            args=("-c", RUNTIME_PATHS_CODE),
            env=dict(UNBUFFERED_ENV),
        )
    )
    if not result.succeeded or len(result.stdout_lines) < 2:
        logger.debug(
            "%s did not report its paths (exit code %s), guessing the layout",
            executable,
            result.exit_code,
        )
        return RuntimeDescriptor.from_interpreter(executable, prefix, library)

    # Last two lines, in case site customisation printed something first
    reported_prefix, purelib = (Path(line.strip()) for line in result.stdout_lines[-2:])
    return RuntimeDescriptor(
        executable_path=executable,
        prefix_path=prefix or reported_prefix,
        library_path=library or purelib.parent,
    )
