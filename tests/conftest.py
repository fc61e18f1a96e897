"""Shared fixtures."""

import logging
import os
import stat
from pathlib import Path
from typing import Optional

import pytest

from kubectl_neon import launcher

ENV_VARS = ["NEON_INSTALL_FOLDER", "NC_ROOT", "NK_ROOT", "NEON_LOG_LEVEL"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's NEON environment out of the tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo logging configured by CLI invocations."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> list:
    """Record launches instead of running neon-cli or helm."""
    recorded = []

    def fake_neon_cli(settings, args, replace=False):
        recorded.append(("neon-cli", list(args), replace))

    def fake_helm(settings, args, replace=True):
        recorded.append(("helm", list(args), replace))

    monkeypatch.setattr(launcher, "exec_neon_cli", fake_neon_cli)
    monkeypatch.setattr(launcher, "exec_helm", fake_helm)
    return recorded


def _make_binary(path: Path, mtime: Optional[float] = None, script: str = "#!/bin/sh\nexit 0\n") -> Path:
    """Write an executable script, optionally with a fixed modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(script)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def make_binary():
    """Factory for executable scripts on disk."""
    return _make_binary
