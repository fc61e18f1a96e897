"""Process groups that let a child process tree be killed as a unit.

On POSIX the child is started as the leader of a new session, so it and every
process it creates share a process group that can be signalled at once.  On
Windows the child is assigned to a job object created with
JOB_OBJECT_LIMIT_KILL_ON_JOB_CLOSE, so terminating or closing the job takes
down the whole tree.

A POSIX child in its own session has no controlling terminal; it still
inherits the terminal as stdin, stdout and stderr.
"""

import logging
import os
import signal
import subprocess
import sys
from abc import ABC, abstractmethod
from typing import List, Optional

if sys.platform == "win32":
    import pywintypes
    import win32api
    import win32con
    import win32job

logger = logging.getLogger(__name__)


class ProcessGroup(ABC):
    """Owns one child process and any processes it creates."""

    @abstractmethod
    def spawn(self, path: str, args: List[str]) -> subprocess.Popen:
        """Start the child with inherited stdio and environment.

        Raises:
            OSError: When the executable can't be started
        """

    @abstractmethod
    def kill_all(self) -> None:
        """Forcibly kill the child and all of its descendants."""

    @abstractmethod
    def dispose(self) -> None:
        """Release the group's resources."""


class PosixProcessGroup(ProcessGroup):
    """Process group backed by a new session."""

    def __init__(self) -> None:
        self._pgid: Optional[int] = None

    def spawn(self, path: str, args: List[str]) -> subprocess.Popen:
        process = subprocess.Popen([path, *args], start_new_session=True)
        # The session leader's pid is also its process group id
        self._pgid = process.pid
        logger.debug("started %s in process group %d", path, self._pgid)
        return process

    def kill_all(self) -> None:
        if self._pgid is None:
            return
        try:
            os.killpg(self._pgid, signal.SIGKILL)
            logger.debug("killed process group %d", self._pgid)
        except ProcessLookupError:
            logger.debug("process group %d already exited", self._pgid)

    def dispose(self) -> None:
        pass


class WindowsJobGroup(ProcessGroup):
    """Process group backed by a kill-on-close job object."""

    def __init__(self) -> None:
        self._job = win32job.CreateJobObject(None, "")
        info = win32job.QueryInformationJobObject(
            self._job, win32job.JobObjectExtendedLimitInformation
        )
        info["BasicLimitInformation"]["LimitFlags"] |= win32job.JOB_OBJECT_LIMIT_KILL_ON_JOB_CLOSE
        win32job.SetInformationJobObject(
            self._job, win32job.JobObjectExtendedLimitInformation, info
        )

    def spawn(self, path: str, args: List[str]) -> subprocess.Popen:
        process = subprocess.Popen([path, *args])
        handle = win32api.OpenProcess(
            win32con.PROCESS_SET_QUOTA | win32con.PROCESS_TERMINATE, False, process.pid
        )
        try:
            win32job.AssignProcessToJobObject(self._job, handle)
        except pywintypes.error as e:
            # The child still runs; only tree cleanup on interrupt is lost
            logger.warning("Cannot assign process %d to job object: %s", process.pid, e)
        finally:
            win32api.CloseHandle(handle)
        return process

    def kill_all(self) -> None:
        if self._job is None:
            return
        win32job.TerminateJobObject(self._job, 1)
        logger.debug("terminated job object")

    def dispose(self) -> None:
        if self._job is None:
            return
        # Closing the last handle kills anything still left in the job
        self._job.Close()
        self._job = None


def create_process_group() -> ProcessGroup:
    """Create the process group implementation for this platform."""
    if sys.platform == "win32":
        return WindowsJobGroup()
    return PosixProcessGroup()
