"""Runs the located tools so they behave as if started directly.

Two modes are supported:

replace:
    The current process image is replaced by the tool (POSIX exec), so the
    tool inherits everything and the plugin never returns.  Windows has no
    real exec, so there the tool runs supervised and the plugin exits with
    its exit code.

supervised:
    The tool runs as a child with the plugin's stdin, stdout, stderr and
    environment, inside its own process group.  SIGINT and SIGTERM (SIGINT
    and SIGBREAK on Windows) kill the whole group, and the plugin exits with
    the child's exit code.
"""

import enum
import logging
import os
import signal
import sys
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, NoReturn, Optional

from kubectl_neon.config import HELM, NEON_CLI, Settings
from kubectl_neon.errors import LaunchError, NeonError, WaitError
from kubectl_neon.locator import ToolLocator
from kubectl_neon.process_group import ProcessGroup, create_process_group
from kubectl_neon.utils import die

logger = logging.getLogger(__name__)

if sys.platform == "win32":
    HANDLED_SIGNALS = [signal.SIGINT, signal.SIGBREAK]
else:
    HANDLED_SIGNALS = [signal.SIGINT, signal.SIGTERM]


class LaunchState(enum.Enum):
    """Lifecycle of a supervised launch."""

    NOT_STARTED = "not-started"
    STARTING = "starting"
    RUNNING = "running"
    TERMINATED = "terminated"
    START_FAILED = "start-failed"
    WAIT_FAILED = "wait-failed"


def exit_code_of(returncode: int) -> int:
    """Convert a Popen return code to a process exit code.

    Popen reports a child killed by signal N as -N.  It is deliberately
    reported as 128 + N, the shell convention, instead of the raw value, so a
    child killed after SIGINT makes the plugin exit with 137 (128 + SIGKILL).
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


class Launcher(ABC):
    """Starts a tool binary with the given arguments."""

    def __init__(self, group_factory: Callable[[], ProcessGroup] = create_process_group) -> None:
        self._group_factory = group_factory
        self.state = LaunchState.NOT_STARTED

    def run(self, path: str, args: List[str]) -> int:
        """Run the tool as a supervised child and wait for it.

        Args:
            path: Tool binary
            args: Arguments, passed through unmodified

        Returns:
            The child's exit code

        Raises:
            LaunchError: When the child can't be started
            WaitError: When the child's exit status can't be determined
        """
        group = self._group_factory()
        cancelled = threading.Event()
        finished = threading.Event()
        listener = threading.Thread(
            target=self._listen,
            args=(group, cancelled, finished),
            name="neon-signal-listener",
            daemon=True,
        )
        listener.start()
        previous = None

        try:
            # A signal that lands during the spawn is caught by the check below
            previous = self._install_handlers(cancelled)
            self.state = LaunchState.STARTING
            try:
                process = group.spawn(path, args)
            except OSError as e:
                self.state = LaunchState.START_FAILED
                raise LaunchError(path, e) from e
            self.state = LaunchState.RUNNING

            if cancelled.is_set():
                logger.debug("signal received while starting, killing the child process group")
                group.kill_all()

            try:
                returncode = process.wait()
            except OSError as e:
                self.state = LaunchState.WAIT_FAILED
                raise WaitError(f"Cannot wait for [{path}]: {e}") from e
        finally:
            finished.set()
            cancelled.set()
            listener.join()
            self._restore_handlers(previous)
            group.dispose()

        self.state = LaunchState.TERMINATED
        code = exit_code_of(returncode)
        logger.debug("%s exited with %d", path, code)
        return code

    @abstractmethod
    def replace(self, path: str, args: List[str]) -> NoReturn:
        """Replace the current process with the tool.

        Raises:
            LaunchError: When the tool can't be executed
        """

    @staticmethod
    def _listen(group: ProcessGroup, cancelled: threading.Event, finished: threading.Event) -> None:
        cancelled.wait()
        if finished.is_set():
            return
        logger.debug("signal received, killing the child process group")
        group.kill_all()

    @staticmethod
    def _install_handlers(cancelled: threading.Event) -> Optional[dict]:
        # Handlers can only be installed from the main thread
        if threading.current_thread() is not threading.main_thread():
            logger.debug("not on the main thread, signals will not be forwarded")
            return None

        def handler(signum, frame):
            cancelled.set()

        previous = {}
        for signum in HANDLED_SIGNALS:
            previous[signum] = signal.signal(signum, handler)
        return previous

    @staticmethod
    def _restore_handlers(previous: Optional[dict]) -> None:
        if previous is None:
            return
        for signum, handler in previous.items():
            signal.signal(signum, handler)


class PosixLauncher(Launcher):
    """Launcher that replaces the process with exec."""

    def replace(self, path: str, args: List[str]) -> NoReturn:
        logger.debug("exec %s %s", path, args)
        sys.stdout.flush()
        sys.stderr.flush()
        try:
            os.execve(path, [path, *args], os.environ)
        except OSError as e:
            raise LaunchError(path, e) from e


class WindowsLauncher(Launcher):
    """Launcher that emulates exec with a supervised child."""

    def replace(self, path: str, args: List[str]) -> NoReturn:
        sys.exit(self.run(path, args))


def default_launcher() -> Launcher:
    """Create the launcher for this platform."""
    if sys.platform == "win32":
        return WindowsLauncher()
    return PosixLauncher()


def exec_tool(
    settings: Settings,
    tool: str,
    args: List[str],
    replace: bool = False,
    launcher: Optional[Launcher] = None,
) -> NoReturn:
    """Locate a tool, run it and exit with its exit code.

    This function does not return.  The process exits with the tool's exit
    code, or with EXIT_FAILURE after printing a diagnostic when the tool
    can't be located or launched.

    Args:
        settings: Environment settings
        tool: Either neon-cli or helm
        args: Arguments passed to the tool
        replace: Replace the current process instead of supervising a child
        launcher: Launcher to use (default: the platform launcher)
    """
    launcher = launcher or default_launcher()
    try:
        path = ToolLocator(settings).locate(tool)
        logger.debug("launching %s %s", path, args)
        if replace:
            launcher.replace(path, args)
        code = launcher.run(path, args)
    except NeonError as e:
        die(str(e))
    sys.exit(code)


def exec_neon_cli(settings: Settings, args: List[str], replace: bool = False) -> NoReturn:
    """Run neon-cli with the arguments and exit with its exit code."""
    exec_tool(settings, NEON_CLI, args, replace=replace)


def exec_helm(settings: Settings, args: List[str], replace: bool = True) -> NoReturn:
    """Run helm with the arguments and exit with its exit code."""
    exec_tool(settings, HELM, args, replace=replace)
