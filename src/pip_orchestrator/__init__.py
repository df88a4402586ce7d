"""Locate, run and sequence pip for Python installations."""

__version__ = "0.1.0"

# Export protocol interfaces for type hints and dependency injection
from pip_orchestrator.protocols import (
    ConfirmationSurface,
    FileSystem,
    ModuleScanner,
    OutputSink,
    ProcessHandle,
    ProcessSpawner,
)

__all__ = [
    "__version__",
    "ConfirmationSurface",
    "FileSystem",
    "ModuleScanner",
    "OutputSink",
    "ProcessHandle",
    "ProcessSpawner",
]
