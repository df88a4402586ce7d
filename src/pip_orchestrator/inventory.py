"""Installed package inventory with layered fallbacks."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor

from pip_orchestrator.filesystem import RealFileSystem
from pip_orchestrator.process import CommandExecutor
from pip_orchestrator.protocols import FileSystem
from pip_orchestrator.resolver import PIP_MODULE, resolve_pip_command
from pip_orchestrator.types import RuntimeDescriptor

logger = logging.getLogger(__name__)

# Leading distribution name of a site-packages entry, e.g. "foo" in "foo-1.2.dist-info"
PACKAGE_NAME_PATTERN = re.compile(r"^(?P<name>[a-z0-9_]+)(-.+)?", re.IGNORECASE)

PIP_VERSION_PATTERN = re.compile(r"pip (?P<version>[0-9.]+)")

# A tier returns the inventory, or None to hand over to the next tier
InventoryTier = Callable[[RuntimeDescriptor, frozenset[str]], "set[str] | None"]


def parse_pip_version(lines: list[str]) -> set[str]:
    """Turn ``pip --version`` output into ``pip==<version>`` identifiers.

    Args:
        lines: Output lines of ``pip --version``.

    Returns:
        Set of identifiers, empty if no version was found.
    """
    found = set()
    for line in lines:
        match = PIP_VERSION_PATTERN.search(line)
        if match:
            found.add(f"{PIP_MODULE}=={match.group('version')}")
    return found


class InventoryBuilder:
    """Builds the set of packages installed in a runtime.

    The ``pip --version`` result seeds the inventory. Then each fallback tier
    is tried in order until one produces a result. A tier that hands over
    contributes nothing.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        filesystem: FileSystem,
        pool: Executor,
    ) -> None:
        """Initialize with required dependencies.

        Args:
            executor: Runs pip commands.
            filesystem: Used for resolving pip and scanning site-packages.
            pool: Background executor for `freeze`.

        Note:
            Use factory method `create()` for production code.
        """
        self.executor = executor
        self.fs = filesystem
        self.pool = pool
        self.tiers: tuple[InventoryTier, ...] = (self._freeze_tier, self._site_packages_tier)

    @classmethod
    def create(
        cls,
        executor: CommandExecutor | None = None,
        filesystem: FileSystem | None = None,
        pool: Executor | None = None,
    ) -> InventoryBuilder:
        """Factory method for production instantiation.

        Args:
            executor: Optional command executor.
            filesystem: Optional filesystem abstraction.
            pool: Optional background executor.

        Returns:
            Configured InventoryBuilder.
        """
        return cls(
            executor=executor or CommandExecutor.create(),
            filesystem=filesystem or RealFileSystem(),
            pool=pool or ThreadPoolExecutor(thread_name_prefix="inventory"),
        )

    def freeze(self, runtime: RuntimeDescriptor) -> Future[set[str]]:
        """Collect the inventory on the background executor.

        Args:
            runtime: Runtime to inspect.

        Returns:
            Future resolving to the set of package identifiers.
        """
        return self.pool.submit(self.collect, runtime)

    def collect(self, runtime: RuntimeDescriptor) -> set[str]:
        """Collect the inventory on the calling thread.

        Args:
            runtime: Runtime to inspect.

        Returns:
            Set of package identifiers.

        Raises:
            SpawnError: If pip cannot be started at all.
        """
        seed = frozenset(self._version_seed(runtime))
        for tier in self.tiers:
            packages = tier(runtime, seed)
            if packages is not None:
                return packages
            logger.debug("Inventory tier %s handed over", tier.__name__)
        return set()

    def _version_seed(self, runtime: RuntimeDescriptor) -> set[str]:
        spec = resolve_pip_command(runtime, ["--version"], self.fs)
        result = self.executor.run(spec)
        if not result.succeeded:
            return set()
        return parse_pip_version(result.stdout_lines)

    def _freeze_tier(self, runtime: RuntimeDescriptor, seed: frozenset[str]) -> set[str] | None:
        spec = resolve_pip_command(runtime, ["freeze"], self.fs)
        result = self.executor.run(spec)
        if not result.succeeded:
            return None
        packages = set(seed)
        packages.update(line.strip() for line in result.stdout_lines if line.strip())
        return packages

    def _site_packages_tier(
        self, runtime: RuntimeDescriptor, seed: frozenset[str]
    ) -> set[str] | None:
        # pip is unusable here, so the seed is not trusted
        packages: set[str] = set()
        try:
            for directory in self.fs.iter_dirs(runtime.site_packages):
                match = PACKAGE_NAME_PATTERN.match(directory.name)
                if match:
                    packages.add(match.group("name"))
        except (OSError, ValueError) as e:
            logger.debug("Stopped scanning %s: %s", runtime.site_packages, e)
        return packages
