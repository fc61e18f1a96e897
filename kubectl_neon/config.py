"""Configuration for the neon kubectl plugin."""

import sys
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

# Versions of the tools this plugin build is paired with
NEON_CLI_VERSION = "0.10.0-beta.4"
HELM_VERSION = "3.12.0"

# Tool names
NEON_CLI = "neon-cli"
HELM = "helm"

# Default for [--max-parallel] on deploy, prepare and setup
DEFAULT_CLUSTER_DEPLOY_PARALLEL = 6

# Value substituted for a bare [--use-staged], which never takes the next token
NO_FLAG_VALUE = "__NO_FLAG_VALUE__"

# Cluster purposes accepted by [neon cluster purpose]
CLUSTER_PURPOSES = ["development", "production", "stage", "test", "unspecified"]

# Output formats accepted by [neon login list]
OUTPUT_FORMATS = ["json", "yaml"]

# Exit codes
EXIT_FAILURE = -1
EXIT_LOCKED = 0
EXIT_LOCK_QUERY_FAILED = 1
EXIT_UNLOCKED = 2

# .NET build output layout used by the neon-cli project
BUILD_CONFIGURATIONS = ["Debug", "Release"]
TARGET_FRAMEWORKS = {
    "win32": "net7.0-windows10.0.17763.0",
    "darwin": "net7.0",
    "linux": "net7.0",
}
RUNTIME_IDS = {
    "win32": "win10-x64",
    "darwin": "osx-x64",
    "linux": "linux-x64",
}


class Settings(BaseSettings):
    """Environment settings, read once when the CLI starts."""

    # Folder holding the installed neon-cli/neon-desktop binaries
    install_folder: Optional[str] = Field(default=None, validation_alias="NEON_INSTALL_FOLDER")

    # Source repositories, used when the tools aren't installed
    nc_root: Optional[str] = Field(default=None, validation_alias="NC_ROOT")
    nk_root: Optional[str] = Field(default=None, validation_alias="NK_ROOT")

    # Logging
    log_level: str = Field(default="WARNING", validation_alias="NEON_LOG_LEVEL")

    class Config:
        """Pydantic config."""

        case_sensitive = False
        populate_by_name = True

    @property
    def source_roots(self) -> List[Path]:
        """Configured source roots, NC_ROOT first."""
        return [Path(root) for root in (self.nc_root, self.nk_root) if root]


def exe_name(tool: str) -> str:
    """Get the platform file name for a tool."""
    return f"{tool}.exe" if sys.platform == "win32" else tool


def neon_cli_templates() -> List[Path]:
    """Get the neon-cli build output folders, relative to a source root.

    Returns:
        Folders in probe order: the build folder, then each configuration
    """
    platform = sys.platform if sys.platform in TARGET_FRAMEWORKS else "linux"
    framework = TARGET_FRAMEWORKS[platform]
    runtime_id = RUNTIME_IDS[platform]

    templates = [Path("Build") / NEON_CLI]
    for configuration in BUILD_CONFIGURATIONS:
        templates.append(
            Path("Tools") / NEON_CLI / "bin" / configuration / framework / runtime_id
        )
    return templates
