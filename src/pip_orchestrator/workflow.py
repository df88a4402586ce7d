"""Confirmation-gated install and uninstall workflows."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from enum import Enum
from pathlib import Path

from pip_orchestrator import futures, messages
from pip_orchestrator.config import BUNDLED_BOOTSTRAP_SCRIPT
from pip_orchestrator.filesystem import RealFileSystem
from pip_orchestrator.process import CommandExecutor
from pip_orchestrator.protocols import ConfirmationSurface, FileSystem, ModuleScanner, OutputSink
from pip_orchestrator.resolver import PIP_MODULE, resolve_pip_command
from pip_orchestrator.scanner import SitePackagesScanner
from pip_orchestrator.types import CommandSpec, RuntimeDescriptor

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    """Stages of an install request."""

    START = "start"
    CHECK_TOOL_PRESENCE = "check-tool-presence"
    CONFIRM_BOOTSTRAP = "confirm-bootstrap"
    BOOTSTRAPPING = "bootstrapping"
    INSTALLING = "installing"
    REPORTED = "reported"
    CANCELLED = "cancelled"


class InstallRequest:
    """One package install, with an optional pip bootstrap beforehand.

    The bootstrap check only happens when a confirmation surface is given.
    Declining the prompt leaves the returned future cancelled and the
    install never runs. A failed bootstrap is reported but the install is
    still attempted.
    """

    def __init__(
        self,
        workflow: PipWorkflow,
        runtime: RuntimeDescriptor,
        package: str,
        confirm: ConfirmationSurface | None = None,
        message: str | None = None,
        output: OutputSink | None = None,
    ) -> None:
        self.workflow = workflow
        self.runtime = runtime
        self.package = package
        self.confirm = confirm
        self.message = message or messages.INSTALL_PIP_PROMPT
        self.output = output
        self.state = WorkflowState.START
        self.history: list[WorkflowState] = [WorkflowState.START]

    def _enter(self, state: WorkflowState) -> None:
        logger.debug("Install %s: %s -> %s", self.package, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def start(self) -> Future[bool]:
        """Run the request.

        Returns:
            Future resolving to True if the install exited with code 0.
            Cancelled if the user declined the bootstrap prompt.
        """
        prior = self._bootstrap_if_needed()
        if prior.cancelled():
            return prior
        return futures.then(prior, self._install, self.workflow.pool)

    def _bootstrap_if_needed(self) -> Future[object]:
        if self.confirm is None:
            return futures.completed()

        self._enter(WorkflowState.CHECK_TOOL_PRESENCE)
        if self.workflow.scanner.has_module(self.runtime, PIP_MODULE):
            return futures.completed()

        self._enter(WorkflowState.CONFIRM_BOOTSTRAP)
        if not self.confirm.prompt(self.message):
            self._enter(WorkflowState.CANCELLED)
            return futures.cancelled()

        self._enter(WorkflowState.BOOTSTRAPPING)
        return self.workflow.install_pip(self.runtime, self.output)

    def _install(self, _bootstrapped: object) -> bool:
        self._enter(WorkflowState.INSTALLING)
        succeeded = self.workflow.run_reported(
            resolve_pip_command(self.runtime, ["install", self.package], self.workflow.fs),
            self.package,
            messages.PACKAGE_INSTALLING,
            messages.PACKAGE_INSTALL_SUCCEEDED,
            messages.PACKAGE_INSTALL_FAILED,
            self.output,
        )
        self._enter(WorkflowState.REPORTED)
        return succeeded


class PipWorkflow:
    """Runs pip install, uninstall and bootstrap operations in the background.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` for production instantiation with defaults.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        scanner: ModuleScanner,
        filesystem: FileSystem,
        pool: Executor,
        bootstrap_script: Path = BUNDLED_BOOTSTRAP_SCRIPT,
    ) -> None:
        """Initialize workflow with required dependencies.

        Args:
            executor: Runs resolved commands.
            scanner: Decides whether pip is already present.
            filesystem: Used to resolve pip invocations.
            pool: Background executor every operation runs on.
            bootstrap_script: Script that installs pip when run by the runtime.

        Note:
            Use factory method `create()` for production code.
        """
        self.executor = executor
        self.scanner = scanner
        self.fs = filesystem
        self.pool = pool
        self.bootstrap_script = bootstrap_script

    @classmethod
    def create(
        cls,
        executor: CommandExecutor | None = None,
        scanner: ModuleScanner | None = None,
        filesystem: FileSystem | None = None,
        pool: Executor | None = None,
        bootstrap_script: Path | None = None,
    ) -> PipWorkflow:
        """Factory method for production instantiation.

        Returns:
            Configured PipWorkflow instance.
        """
        filesystem = filesystem or RealFileSystem()
        return cls(
            executor=executor or CommandExecutor.create(),
            scanner=scanner or SitePackagesScanner(filesystem),
            filesystem=filesystem,
            pool=pool or ThreadPoolExecutor(thread_name_prefix="pip"),
            bootstrap_script=bootstrap_script or BUNDLED_BOOTSTRAP_SCRIPT,
        )

    def run_reported(
        self,
        spec: CommandSpec,
        package: str,
        started: str,
        succeeded: str,
        failed: str,
        output: OutputSink | None,
    ) -> bool:
        """Run a command, writing progress and outcome lines to the sink.

        Args:
            spec: Command to run.
            package: Package name substituted into the messages.
            started: Message written before the command.
            succeeded: Message written on exit code 0.
            failed: Message written otherwise.
            output: Optional sink. Without one nothing is written.

        Returns:
            True if the command exited with code 0.

        Raises:
            SpawnError: If the command cannot be started.
        """
        if output is not None:
            output.write_line(started.format(package=package))
            output.show()

        result = self.executor.run(spec, output)

        if output is not None:
            if result.succeeded:
                output.write_line(succeeded.format(package=package))
            else:
                exit_code = (
                    result.exit_code if result.exit_code is not None else messages.UNKNOWN_EXIT_CODE
                )
                output.write_line(failed.format(package=package, exit_code=exit_code))
            output.show()
        return result.succeeded

    def install(
        self,
        runtime: RuntimeDescriptor,
        package: str,
        confirm: ConfirmationSurface | None = None,
        message: str | None = None,
        output: OutputSink | None = None,
    ) -> Future[bool]:
        """Install a package, bootstrapping pip first if it is missing.

        Args:
            runtime: Target runtime.
            package: Requirement passed to ``pip install``.
            confirm: Surface used to ask before installing pip. When None,
                pip presence is not checked.
            message: Prompt text for the bootstrap question.
            output: Optional progress sink.

        Returns:
            Future resolving to True on success. Cancelled if the user
            declined to install pip.
        """
        return InstallRequest(self, runtime, package, confirm, message, output).start()

    def uninstall(
        self,
        runtime: RuntimeDescriptor,
        package: str,
        output: OutputSink | None = None,
    ) -> Future[bool]:
        """Uninstall a package without prompting.

        Args:
            runtime: Target runtime.
            package: Package name passed to ``pip uninstall -y``.
            output: Optional progress sink.

        Returns:
            Future resolving to True on success.
        """
        spec = resolve_pip_command(runtime, ["uninstall", "-y", package], self.fs)
        return self.pool.submit(
            self.run_reported,
            spec,
            package,
            messages.PACKAGE_UNINSTALLING,
            messages.PACKAGE_UNINSTALL_SUCCEEDED,
            messages.PACKAGE_UNINSTALL_FAILED,
            output,
        )

    def install_pip(self, runtime: RuntimeDescriptor, output: OutputSink | None = None) -> Future[bool]:
        """Install pip by running the bootstrap script with the runtime's interpreter.

        Args:
            runtime: Target runtime.
            output: Optional progress sink.

        Returns:
            Future resolving to True if the bootstrap script exited with code 0.
        """
        spec = CommandSpec(
            executable=runtime.executable_path,
            args=(str(self.bootstrap_script),),
            cwd=runtime.prefix_path,
        )
        return self.pool.submit(
            self.run_reported,
            spec,
            PIP_MODULE,
            messages.PIP_INSTALLING,
            messages.PIP_INSTALL_SUCCEEDED,
            messages.PIP_INSTALL_FAILED,
            output,
        )

    def query_install_pip(
        self,
        runtime: RuntimeDescriptor,
        confirm: ConfirmationSurface,
        message: str | None = None,
        output: OutputSink | None = None,
    ) -> Future[bool]:
        """Ask before installing pip.

        Returns:
            Cancelled future if declined, otherwise the `install_pip` future.
        """
        if not confirm.prompt(message or messages.INSTALL_PIP_PROMPT):
            logger.debug("pip bootstrap declined")
            return futures.cancelled()
        return self.install_pip(runtime, output)

    def query_install(
        self,
        runtime: RuntimeDescriptor,
        package: str,
        confirm: ConfirmationSurface,
        message: str,
        output: OutputSink | None = None,
    ) -> Future[bool]:
        """Ask before installing a package.

        No pip bootstrap is attempted.

        Returns:
            Cancelled future if declined, otherwise the install future.
        """
        if not confirm.prompt(message):
            logger.debug("Install of %s declined", package)
            return futures.cancelled()
        return self.install(runtime, package, output=output)
