"""Module-presence checks against a runtime's library directories."""

from __future__ import annotations

from pip_orchestrator.filesystem import RealFileSystem
from pip_orchestrator.protocols import FileSystem
from pip_orchestrator.types import RuntimeDescriptor


class SitePackagesScanner:
    """Looks for top-level modules in the library and site-packages folders.

    Satisfies the ModuleScanner protocol structurally.
    """

    def __init__(self, filesystem: FileSystem | None = None) -> None:
        """Initialize scanner.

        Args:
            filesystem: Filesystem abstraction. Defaults to RealFileSystem.
        """
        self.fs = filesystem or RealFileSystem()

    def has_module(self, runtime: RuntimeDescriptor, name: str) -> bool:
        """Check whether a module is importable from the runtime's libraries.

        Args:
            runtime: Runtime to inspect.
            name: Top-level module name.

        Returns:
            True if a package directory or single-file module exists.
        """
        for root in (runtime.library_path, runtime.site_packages):
            if self.fs.is_dir(root / name) or self.fs.is_file(root / f"{name}.py"):
                return True
        return False
