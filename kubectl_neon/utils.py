"""Utility functions for the neon kubectl plugin."""

import logging
import sys
from typing import List, NoReturn, Optional

from rich.console import Console
from rich.markup import escape

from kubectl_neon.config import EXIT_FAILURE, NO_FLAG_VALUE

console = Console()
err_console = Console(stderr=True)


def setup_logging(level: str) -> None:
    """Configure diagnostic logging on stderr.

    Args:
        level: Logging level name, e.g. DEBUG or WARNING
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def die(msg: str, code: int = EXIT_FAILURE) -> NoReturn:
    """Print error message and exit."""
    err_console.print(f"[bold red]*** ERROR:[/bold red] {escape(msg)}")
    sys.exit(code)


def append_use_staged(args: List[str], use_staged: Optional[str]) -> None:
    """Append [--use-staged], with its branch when one was given."""
    if not use_staged:
        return
    if use_staged == NO_FLAG_VALUE:
        args.append("--use-staged")
    else:
        args.append(f"--use-staged={use_staged}")
