"""Process spawning and command execution."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import IO, TYPE_CHECKING

from pip_orchestrator.types import CommandResult, CommandSpec

if TYPE_CHECKING:
    from pip_orchestrator.protocols import OutputSink, ProcessHandle, ProcessSpawner

logger = logging.getLogger(__name__)

# Seconds to wait for output readers once the process tree is gone
READER_JOIN_TIMEOUT = 5.0


class SpawnError(Exception):
    """The executable could not be started."""

    pass


def _kill_process_tree(process: subprocess.Popen[str]) -> None:
    """Kill a process spawned in its own session together with its descendants."""
    if sys.platform == "win32":
        subprocess.run(
            ["taskkill", "/F", "/T", "/PID", str(process.pid)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    else:
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    if process.poll() is None:
        process.kill()


class ProcessOutput:
    """A running process with line-buffered output capture.

    Standard output and standard error are drained by reader threads. Each
    line is recorded and, when a sink is attached, forwarded immediately.
    Use as a context manager so the process and its pipes are always
    released.
    """

    def __init__(self, process: subprocess.Popen[str], output: OutputSink | None = None) -> None:
        """Start draining an already spawned process.

        Args:
            process: The spawned process.
            output: Optional sink receiving every output line.
        """
        self._process = process
        self._output = output
        self._sink_lock = threading.Lock()
        self._stdout_lines: list[str] = []
        self._stderr_lines: list[str] = []
        self._readers = [
            self._start_reader(process.stdout, self._stdout_lines),
            self._start_reader(process.stderr, self._stderr_lines),
        ]
        self._closed = False

    def _start_reader(self, stream: IO[str] | None, sink: list[str]) -> threading.Thread | None:
        if stream is None:
            return None
        reader = threading.Thread(target=self._drain, args=(stream, sink), daemon=True)
        reader.start()
        return reader

    def _drain(self, stream: IO[str], lines: list[str]) -> None:
        try:
            for raw in stream:
                line = raw.rstrip("\r\n")
                lines.append(line)
                if self._output is not None:
                    with self._sink_lock:
                        self._output.write_line(line)
        except ValueError:
            # Pipe closed underneath us by close()
            pass

    @property
    def pid(self) -> int:
        """Operating system process id."""
        return self._process.pid

    @property
    def exit_code(self) -> int | None:
        """Exit code once finished, None while running."""
        return self._process.returncode

    @property
    def stdout_lines(self) -> list[str]:
        """Lines read from standard output so far."""
        return self._stdout_lines

    @property
    def stderr_lines(self) -> list[str]:
        """Lines read from standard error so far."""
        return self._stderr_lines

    def wait(self, timeout: float | None = None) -> None:
        """Block until the process exits and all output has been read.

        Args:
            timeout: Seconds to wait for the process, None for no limit.

        Raises:
            subprocess.TimeoutExpired: If the process outlives the timeout.
        """
        self._process.wait(timeout=timeout)
        for reader in self._readers:
            if reader is not None:
                reader.join()

    def _readers_alive(self) -> bool:
        return any(reader is not None and reader.is_alive() for reader in self._readers)

    def close(self) -> None:
        """Kill the process tree if still producing output and close its pipes.

        Descendants that inherited the output pipes are killed along with the
        process, so abandoning a handle never blocks on a grandchild.
        """
        if self._closed:
            return
        self._closed = True
        if self._process.poll() is None or self._readers_alive():
            logger.debug("Killing abandoned process %s and its descendants", self._process.pid)
            _kill_process_tree(self._process)
            self._process.wait()
        streams = (self._process.stdout, self._process.stderr)
        for stream, reader in zip(streams, self._readers):
            if reader is not None:
                reader.join(timeout=READER_JOIN_TIMEOUT)
                if reader.is_alive():
                    # Closing would block on the reader's buffer lock
                    logger.debug("Output reader for %s still busy, leaving it", self._process.pid)
                    continue
            if stream is not None:
                stream.close()

    def __enter__(self) -> ProcessOutput:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class SubprocessSpawner:
    """Production process primitive built on subprocess.Popen.

    Satisfies the ProcessSpawner protocol structurally.
    """

    def spawn(
        self,
        executable: Path,
        args: Sequence[str],
        cwd: Path | None,
        env_overrides: Mapping[str, str],
        capture_output: bool = True,
        output: OutputSink | None = None,
    ) -> ProcessOutput:
        """Start a process.

        Args:
            executable: Program to run.
            args: Arguments after the executable.
            cwd: Working directory, or None to inherit.
            env_overrides: Variables layered over the current environment.
            capture_output: Capture stdout/stderr line by line.
            output: Optional sink receiving each output line as it arrives.

        Returns:
            ProcessOutput for the running process.

        Raises:
            SpawnError: If the executable does not exist or cannot be started.
        """
        argv = [str(executable), *args]
        env = os.environ.copy()
        env.update(env_overrides)
        pipe = subprocess.PIPE if capture_output else None

        logger.debug("Spawning %s (cwd=%s)", argv, cwd)
        try:
            process = subprocess.Popen(
                argv,
                cwd=str(cwd) if cwd is not None else None,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=pipe,
                stderr=pipe,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                start_new_session=True,
            )
        except OSError as e:
            raise SpawnError(f"Cannot start {executable}: {e}") from e
        return ProcessOutput(process, output)


class CommandExecutor:
    """Runs resolved commands through a process spawner.

    Follows Separate Use from Creation: constructor requires the spawner.
    Use factory method `create()` for production instantiation.
    """

    def __init__(self, spawner: ProcessSpawner) -> None:
        """Initialize with a process spawner.

        Args:
            spawner: Process primitive used to start commands.
        """
        self.spawner = spawner

    @classmethod
    def create(cls, spawner: ProcessSpawner | None = None) -> CommandExecutor:
        """Factory method for production instantiation.

        Args:
            spawner: Optional spawner (SubprocessSpawner if not provided).

        Returns:
            Configured CommandExecutor.
        """
        return cls(spawner=spawner or SubprocessSpawner())

    def start(self, spec: CommandSpec, output: OutputSink | None = None) -> ProcessHandle:
        """Start a command and return its live handle.

        The caller owns the handle and should use it as a context manager.

        Args:
            spec: Resolved command.
            output: Optional sink for streamed output.

        Returns:
            Handle to the running process.

        Raises:
            SpawnError: If the command cannot be started.
        """
        return self.spawner.spawn(spec.executable, spec.args, spec.cwd, spec.env, True, output)

    def run(self, spec: CommandSpec, output: OutputSink | None = None) -> CommandResult:
        """Run a command to completion.

        A non-zero exit code is returned, not raised.

        Args:
            spec: Resolved command.
            output: Optional sink for streamed output.

        Returns:
            CommandResult with exit code and captured stdout.

        Raises:
            SpawnError: If the command cannot be started.
        """
        with self.start(spec, output) as proc:
            proc.wait()
            result = CommandResult(exit_code=proc.exit_code, stdout_lines=list(proc.stdout_lines))
        logger.debug("%s exited with %s", spec.argv(), result.exit_code)
        return result
