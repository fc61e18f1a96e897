"""Locates the neon-cli and helm binaries.

Two layouts are supported:

neon-cli/neon-desktop is installed on the current machine:
    NEON_INSTALL_FOLDER references the folder holding the application
    binaries, including neon-cli.  Tools like helm live in its [tools]
    subfolder.  When set, this folder is authoritative.

neon-cli/neon-desktop is not installed:
    A maintainer is probably running from source.  Each source root (NC_ROOT,
    then NK_ROOT) is probed for neon-cli build output and the most recently
    built binary wins.  helm is found by asking that neon-cli for it with
    [neon-cli toolpath helm], which downloads helm when it's missing.
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from kubectl_neon.config import HELM, NEON_CLI, Settings, exe_name, neon_cli_templates
from kubectl_neon.errors import ExecutableNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """An existing binary and its modification time."""

    path: Path
    mtime: float


def probe(path: Path) -> Optional[Candidate]:
    """Stat a possible binary location.

    Args:
        path: Path to check

    Returns:
        Candidate for a regular file, None when missing or a directory
    """
    try:
        stat = path.stat()
    except OSError:
        return None
    if not path.is_file():
        return None
    return Candidate(path=path, mtime=stat.st_mtime)


class ToolLocator:
    """Resolves tool binaries from the configured install or source layouts."""

    def __init__(
        self,
        settings: Settings,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        """Initialize the locator.

        Args:
            settings: Environment settings captured at startup
            runner: Used to run [neon-cli toolpath helm]
        """
        self._settings = settings
        self._runner = runner

    def candidates(self) -> List[Candidate]:
        """List the neon-cli binaries present under the source roots.

        Returns:
            Existing candidates in probe order
        """
        found = []
        for root in self._settings.source_roots:
            for template in neon_cli_templates():
                path = root / template / exe_name(NEON_CLI)
                candidate = probe(path)
                logger.debug("probe %s: %s", path, "found" if candidate else "missing")
                if candidate:
                    found.append(candidate)
        return found

    def neon_cli_path(self) -> str:
        """Locate the neon-cli binary.

        Returns:
            Path to neon-cli

        Raises:
            ExecutableNotFoundError: When no binary exists
        """
        install_folder = self._settings.install_folder
        if install_folder:
            path = Path(install_folder) / exe_name(NEON_CLI)
            if not probe(path):
                raise ExecutableNotFoundError(NEON_CLI, f"{path} does not exist")
            logger.debug("using installed %s", path)
            return str(path)

        found = self.candidates()
        if not found:
            raise ExecutableNotFoundError(NEON_CLI)

        # max() keeps the first of equal mtimes, so probe order breaks ties
        newest = max(found, key=lambda candidate: candidate.mtime)
        logger.debug("using most recent build %s", newest.path)
        return str(newest.path)

    def helm_path(self) -> str:
        """Locate the helm binary.

        Returns:
            Path to helm

        Raises:
            ExecutableNotFoundError: When helm can't be found or
                [neon-cli toolpath helm] fails
        """
        install_folder = self._settings.install_folder
        if install_folder:
            folder = Path(install_folder)
            for path in (folder / "tools" / exe_name(HELM), folder / exe_name(HELM)):
                if probe(path):
                    logger.debug("using installed %s", path)
                    return str(path)
            raise ExecutableNotFoundError(HELM, f"not present in {folder}")

        neon_cli = self.neon_cli_path()
        command = [neon_cli, "toolpath", HELM]
        logger.debug("running %s", command)
        try:
            result = self._runner(command, stdout=subprocess.PIPE, text=True, check=True)
        except subprocess.CalledProcessError as e:
            raise ExecutableNotFoundError(
                HELM, f"[neon-cli toolpath helm] exited with {e.returncode}"
            ) from e
        except OSError as e:
            raise ExecutableNotFoundError(HELM, f"cannot run {neon_cli}: {e}") from e

        helm = (result.stdout or "").strip()
        if not helm:
            raise ExecutableNotFoundError(HELM, "[neon-cli toolpath helm] returned nothing")
        if not probe(Path(helm)):
            raise ExecutableNotFoundError(HELM, f"{helm} does not exist")

        logger.debug("neon-cli reported helm at %s", helm)
        return helm

    def locate(self, tool: str) -> str:
        """Locate a tool by name.

        Args:
            tool: Either neon-cli or helm

        Returns:
            Path to the tool
        """
        if tool == NEON_CLI:
            return self.neon_cli_path()
        if tool == HELM:
            return self.helm_path()
        raise ValueError(f"Unknown tool: {tool}")


def locate(settings: Settings, tool: str) -> str:
    """Locate a tool using the given settings."""
    return ToolLocator(settings).locate(tool)
