"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Iterator
from unittest.mock import MagicMock

import pytest

from pip_orchestrator.process import CommandExecutor, SpawnError
from pip_orchestrator.types import RuntimeDescriptor


@pytest.fixture
def temp_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Override home directory for testing."""
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    return tmp_path


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """Create a temporary configuration directory."""
    config_dir = tmp_path / ".pip-orchestrator"
    config_dir.mkdir(parents=True)
    return config_dir


# ============================================================================
# Runtime Fixtures
# ============================================================================


@pytest.fixture
def runtime(tmp_path: Path) -> RuntimeDescriptor:
    """A runtime laid out under tmp_path with an empty site-packages."""
    prefix = tmp_path / "python"
    library = prefix / "lib"
    (library / "site-packages").mkdir(parents=True)
    return RuntimeDescriptor(
        executable_path=prefix / "bin" / "python",
        prefix_path=prefix,
        library_path=library,
    )


# ============================================================================
# Mock FileSystem Fixture
# ============================================================================


@pytest.fixture
def mock_filesystem() -> MagicMock:
    """Create a mock FileSystem for testing.

    The mock reports an empty filesystem without touching real files.
    """
    fs = MagicMock()
    fs.exists.return_value = False
    fs.is_file.return_value = False
    fs.is_dir.return_value = False
    fs.iter_dirs.return_value = iter([])
    return fs


# ============================================================================
# Process Doubles
# ============================================================================


class FakeProcess:
    """Finished process double that replays canned output."""

    def __init__(self, exit_code: int | None, lines: list[str], output: Any = None) -> None:
        self._exit_code = exit_code
        self._lines = lines
        self._output = output
        self.waited = False
        self.closed = False

    @property
    def exit_code(self) -> int | None:
        return self._exit_code if self.waited else None

    @property
    def stdout_lines(self) -> list[str]:
        return self._lines if self.waited else []

    def wait(self, timeout: float | None = None) -> None:
        if not self.waited and self._output is not None:
            for line in self._lines:
                self._output.write_line(line)
        self.waited = True

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> FakeProcess:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


Handler = Callable[[Path, tuple[str, ...]], "tuple[int | None, list[str]]"]


class FakeSpawner:
    """Process spawner double.

    The handler maps (executable, args) to (exit_code, stdout lines).
    Every spawn is recorded in `calls`.
    """

    def __init__(self, handler: Handler | None = None) -> None:
        self.handler = handler or (lambda executable, args: (0, []))
        self.calls: list[dict[str, Any]] = []
        self.processes: list[FakeProcess] = []
        self.missing: set[Path] = set()

    def spawn(
        self,
        executable: Path,
        args: Sequence[str],
        cwd: Path | None,
        env_overrides: Mapping[str, str],
        capture_output: bool = True,
        output: Any = None,
    ) -> FakeProcess:
        self.calls.append(
            {"executable": executable, "args": tuple(args), "cwd": cwd, "env": dict(env_overrides)}
        )
        if executable in self.missing:
            raise SpawnError(f"Cannot start {executable}")
        exit_code, lines = self.handler(executable, tuple(args))
        process = FakeProcess(exit_code, list(lines), output)
        self.processes.append(process)
        return process

    def args_called(self) -> list[tuple[str, ...]]:
        """Arguments of every spawn, in order."""
        return [call["args"] for call in self.calls]


class RecordingSink:
    """Output sink double recording lines and show() calls in order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str | None]] = []

    def write_line(self, text: str) -> None:
        self.events.append(("line", text))

    def show(self) -> None:
        self.events.append(("show", None))

    @property
    def lines(self) -> list[str]:
        return [text for kind, text in self.events if kind == "line" and text is not None]


@pytest.fixture
def fake_spawner() -> FakeSpawner:
    """Spawner that succeeds with no output unless configured."""
    return FakeSpawner()


@pytest.fixture
def fake_executor(fake_spawner: FakeSpawner) -> CommandExecutor:
    """CommandExecutor backed by the fake spawner."""
    return CommandExecutor(spawner=fake_spawner)


@pytest.fixture
def sink() -> RecordingSink:
    """Recording output sink."""
    return RecordingSink()


@pytest.fixture
def pool() -> Iterator[ThreadPoolExecutor]:
    """Background executor shut down after the test."""
    executor = ThreadPoolExecutor(max_workers=2)
    yield executor
    executor.shutdown(wait=True)


# ============================================================================
# App Context Fixtures
# ============================================================================


@pytest.fixture
def mock_app_context() -> MagicMock:
    """Create a complete mock AppContext for CLI testing."""
    from pip_orchestrator.config import Settings
    from pip_orchestrator.context import AppContext

    ctx = MagicMock(spec=AppContext)
    ctx.settings_manager = MagicMock()
    ctx.settings_manager.config_file = Path("/fake/config.json")
    ctx.settings = Settings()
    ctx.inventory = MagicMock()
    ctx.workflow = MagicMock()
    ctx.pool = MagicMock()
    ctx.filesystem = MagicMock()
    return ctx
