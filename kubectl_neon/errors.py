"""Errors raised while locating and launching the wrapped tools."""

from typing import Optional


class NeonError(Exception):
    """Base class for kubectl-neon errors."""


class ExecutableNotFoundError(NeonError):
    """Raised when a tool binary can't be located."""

    def __init__(self, tool: str, detail: Optional[str] = None) -> None:
        self.tool = tool
        message = f"Cannot locate the [{tool}] binary"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class LaunchError(NeonError):
    """Raised when a located binary can't be started."""

    def __init__(self, path: str, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot launch [{path}]: {cause}")


class WaitError(NeonError):
    """Raised when the exit status of a child process can't be determined."""
