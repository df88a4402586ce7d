"""Application context for dependency injection.

This module separates object creation from object use, enabling testability
and reducing coupling in CLI commands.

Dependencies are typed using Protocols or the service classes themselves,
so test doubles can be injected without inheritance.
"""

from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from pip_orchestrator.config import Settings, SettingsManager
from pip_orchestrator.inventory import InventoryBuilder
from pip_orchestrator.protocols import FileSystem
from pip_orchestrator.workflow import PipWorkflow


def _default_filesystem() -> FileSystem:
    """Create the default filesystem implementation."""
    from pip_orchestrator.filesystem import RealFileSystem
    return RealFileSystem()


@dataclass
class AppContext:
    """Container for application dependencies.

    Provides a single injection point for all services used by CLI commands.
    """

    settings_manager: SettingsManager
    settings: Settings
    inventory: InventoryBuilder
    workflow: PipWorkflow
    pool: Executor
    filesystem: FileSystem = field(default_factory=_default_filesystem)

    def shutdown(self) -> None:
        """Stop the background pool after pending work finishes."""
        self.pool.shutdown(wait=True)


def create_context(config_dir: Path | None = None) -> AppContext:
    """Factory for application dependencies.

    Creates all services with proper wiring. Use this in production code.
    For tests, construct AppContext directly with test doubles.

    Args:
        config_dir: Override configuration directory (for testing).

    Returns:
        Configured AppContext with all dependencies.

    Raises:
        ConfigError: If the configuration file is invalid.
    """
    from pip_orchestrator.filesystem import RealFileSystem
    from pip_orchestrator.process import CommandExecutor
    from pip_orchestrator.scanner import SitePackagesScanner

    filesystem = RealFileSystem()
    settings_manager = (
        SettingsManager.create(config_dir, filesystem)
        if config_dir
        else SettingsManager.create_default(filesystem)
    )
    settings = settings_manager.load()

    executor = CommandExecutor.create()
    pool = ThreadPoolExecutor(max_workers=settings.max_workers, thread_name_prefix="pip")

    inventory = InventoryBuilder(executor=executor, filesystem=filesystem, pool=pool)
    workflow = PipWorkflow(
        executor=executor,
        scanner=SitePackagesScanner(filesystem),
        filesystem=filesystem,
        pool=pool,
        bootstrap_script=settings.resolved_bootstrap_script(),
    )

    return AppContext(
        settings_manager=settings_manager,
        settings=settings,
        inventory=inventory,
        workflow=workflow,
        pool=pool,
        filesystem=filesystem,
    )
