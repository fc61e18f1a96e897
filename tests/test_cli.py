"""Tests for CLI module."""

import json
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from kubectl_neon import __version__
from kubectl_neon.cli import main
from kubectl_neon.config import EXIT_FAILURE, EXIT_UNLOCKED, NEON_CLI_VERSION


def test_cli_help() -> None:
    """Test that CLI help works."""
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "NEONKUBE" in result.output


def test_cli_version() -> None:
    """Test that version flag works."""
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
    assert NEON_CLI_VERSION in result.output


def test_version_json() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["version", "-o", "json"])
    assert result.exit_code == 0
    assert json.loads(result.output)["neon-cli"] == NEON_CLI_VERSION


def test_cluster_help_lists_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["cluster", "--help"])
    assert result.exit_code == 0
    for name in ["deploy", "islocked", "prepare", "setup", "validate"]:
        assert name in result.output


@pytest.mark.parametrize(
    "argv, expected",
    [
        (["cluster", "check"], ["cluster", "check"]),
        (
            ["cluster", "check", "--details", "--resources", "--all"],
            ["cluster", "check", "--all", "--resources", "--details"],
        ),
        (["cluster", "dashboard"], ["cluster", "dashboard"]),
        (["cluster", "dashboard", "grafana"], ["cluster", "dashboard", "grafana"]),
        (["cluster", "delete"], ["cluster", "delete"]),
        (["cluster", "delete", "--force", "my-cluster"], ["cluster", "delete", "my-cluster", "--force"]),
        (["cluster", "rm", "my-cluster"], ["cluster", "delete", "my-cluster"]),
        (["cluster", "deploy", "my-cluster.yaml"], ["cluster", "deploy", "my-cluster.yaml"]),
        (
            [
                "cluster", "deploy", "--use-staged=main", "--quiet", "--max-parallel=10",
                "--package-cache=cache:3142", "--force", "--check", "--no-telemetry",
                "--upload-charts", "--use-preview", "my-cluster.yaml",
            ],
            [
                "cluster", "deploy", "my-cluster.yaml", "--check", "--force", "--max-parallel=10",
                "--no-telemetry", "--package-cache=cache:3142", "--quiet", "--upload-charts",
                "--use-preview", "--use-staged=main",
            ],
        ),
        (
            ["cluster", "deploy", "my-cluster.yaml", "--use-staged"],
            ["cluster", "deploy", "my-cluster.yaml", "--use-staged"],
        ),
        (
            ["cluster", "deploy", "--use-staged", "my-cluster.yaml"],
            ["cluster", "deploy", "my-cluster.yaml", "--use-staged"],
        ),
        (
            ["cluster", "deploy", "--use-staged=", "my-cluster.yaml"],
            ["cluster", "deploy", "my-cluster.yaml"],
        ),
        (
            ["cluster", "prepare", "--use-staged=release/1.0", "my-cluster.yaml"],
            ["cluster", "prepare", "my-cluster.yaml", "--use-staged=release/1.0"],
        ),
        (
            ["cluster", "setup", "--use-staged", "--quiet", "root@my-cluster"],
            ["cluster", "setup", "root@my-cluster", "--quiet", "--use-staged"],
        ),
        (
            ["cluster", "deploy", "my-cluster.yaml", "--max-parallel=6"],
            ["cluster", "deploy", "my-cluster.yaml"],
        ),
        (["cluster", "health"], ["cluster", "health"]),
        (["cluster", "info"], ["cluster", "info"]),
        (["cluster", "islocked"], ["cluster", "islocked"]),
        (["cluster", "lock"], ["cluster", "lock"]),
        (["cluster", "pause"], ["cluster", "pause"]),
        (
            [
                "cluster", "prepare", "--unredacted", "--debug", "--base-image-name=base.vhdx",
                "--node-image-uri=https://example.com/node", "--package-cache=cache:3142",
                "my-cluster.yaml", "--use-staged",
            ],
            [
                "cluster", "prepare", "my-cluster.yaml", "--base-image-name=base.vhdx", "--debug",
                "--node-image-uri=https://example.com/node", "--package-cache=cache:3142",
                "--unredacted", "--use-staged",
            ],
        ),
        (
            [
                "cluster", "prepare", "my-cluster.yaml", "--insecure", "--disable-pending",
                "--node-image-path=/tmp/node.vhdx", "--max-parallel=2", "--no-telemetry", "--quiet",
            ],
            [
                "cluster", "prepare", "my-cluster.yaml", "--disable-pending", "--insecure",
                "--max-parallel=2", "--node-image-path=/tmp/node.vhdx", "--no-telemetry", "--quiet",
            ],
        ),
        (["cluster", "purpose"], ["cluster", "purpose"]),
        (["cluster", "purpose", "production"], ["cluster", "purpose", "production"]),
        (
            ["cluster", "reset", "--monitoring", "--keep-namespaces=foo,bar", "--auth", "--force"],
            ["cluster", "reset", "--auth", "--force", "--keep-namespaces=foo,bar", "--monitoring"],
        ),
        (
            ["cluster", "reset", "--minio", "--harbor", "--crio"],
            ["cluster", "reset", "--crio", "--harbor", "--minio"],
        ),
        (
            [
                "cluster", "setup", "--use-staged=feature/x", "--unredacted", "--upload-charts",
                "--quiet", "--no-telemetry", "--max-parallel=3", "--force", "--disable-pending",
                "--debug", "--check", "root@my-cluster",
            ],
            [
                "cluster", "setup", "root@my-cluster", "--check", "--debug", "--disable-pending",
                "--force", "--max-parallel=3", "--no-telemetry", "--quiet", "--upload-charts",
                "--unredacted", "--use-staged=feature/x",
            ],
        ),
        (["cluster", "start"], ["cluster", "start"]),
        (["cluster", "stop", "--turnoff", "--force"], ["cluster", "stop", "--force", "--turnoff"]),
        (["cluster", "unlock"], ["cluster", "unlock"]),
        (["cluster", "validate", "my-cluster.yaml"], ["cluster", "validate", "my-cluster.yaml"]),
        (["login", "delete"], ["login", "delete"]),
        (["login", "delete", "--force", "root@c"], ["login", "delete", "root@c", "--force"]),
        (["login", "export"], ["login", "export"]),
        (
            ["login", "export", "--context=root@c", "file.yaml"],
            ["login", "export", "file.yaml", "--context=root@c"],
        ),
        (
            ["login", "import", "--no-login", "--force", "ctx.yaml"],
            ["login", "import", "ctx.yaml", "--force", "--no-login"],
        ),
        (["login", "list", "-o", "yaml"], ["login", "list", "--output=yaml"]),
        (["logout"], ["logout"]),
    ],
)
def test_argument_order(calls: list, argv: list, expected: list) -> None:
    """Test the neon-cli argument vector built for each command."""
    runner = CliRunner()
    result = runner.invoke(main, argv)
    assert result.exit_code == 0, result.output
    assert calls == [("neon-cli", expected, False)]


def test_login_without_subcommand_replaces_process(calls: list) -> None:
    """Test that interactive login hands the terminal to neon-cli."""
    runner = CliRunner()
    result = runner.invoke(main, ["login"])
    assert result.exit_code == 0, result.output
    assert calls == [("neon-cli", ["login"], True)]


@pytest.mark.parametrize(
    "argv",
    [
        ["cluster", "deploy"],
        ["cluster", "prepare"],
        ["cluster", "setup"],
        ["cluster", "validate"],
        ["login", "import"],
    ],
)
def test_missing_argument_is_usage_error(calls: list, argv: list) -> None:
    """Test that a missing positional argument stops before any launch."""
    runner = CliRunner()
    result = runner.invoke(main, argv)
    assert result.exit_code == 2
    assert "Missing argument" in result.output
    assert calls == []


def test_bare_use_staged_takes_no_value(calls: list) -> None:
    """Test that a branch is only taken from the attached [=BRANCH] form."""
    runner = CliRunner()
    result = runner.invoke(main, ["cluster", "deploy", "my-cluster.yaml", "--use-staged", "main"])
    assert result.exit_code == 2
    assert "unexpected extra argument" in result.output
    assert calls == []


def test_invalid_purpose(calls: list) -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["cluster", "purpose", "fun"])
    assert result.exit_code == 2
    assert calls == []


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["list", "-A"],
        ["install", "--debug", "--help", "my-release", "chart", "--set", "a=b"],
        ["--version"],
        ["template", "x", "--", "--force", "-o", "json"],
        ["upgrade", "--max-parallel=3", "--use-staged", "--kubeconfig", "/tmp/config"],
    ],
)
def test_helm_arguments_pass_through(calls: list, argv: list) -> None:
    """Test that helm receives its arguments exactly as typed."""
    runner = CliRunner()
    result = runner.invoke(main, ["helm", *argv])
    assert result.exit_code == 0, result.output
    assert calls == [("helm", argv, True)]


def test_not_found_exit_code(tmp_path: Path) -> None:
    """Test the failure exit code when neon-cli can't be located."""
    runner = CliRunner()
    result = runner.invoke(main, ["cluster", "health"], env={"NEON_INSTALL_FOLDER": str(tmp_path)})
    assert result.exit_code == EXIT_FAILURE
    assert "Cannot locate the [neon-cli] binary" in result.output


@pytest.mark.skipif(sys.platform == "win32", reason="shell script tool")
def test_islocked_exit_code_relayed(tmp_path: Path, make_binary) -> None:
    """Test that the islocked exit code convention reaches the caller."""
    make_binary(tmp_path / "neon-cli", script=f"#!/bin/sh\nexit {EXIT_UNLOCKED}\n")

    runner = CliRunner()
    result = runner.invoke(main, ["cluster", "islocked"], env={"NEON_INSTALL_FOLDER": str(tmp_path)})
    assert result.exit_code == EXIT_UNLOCKED


@pytest.mark.skipif(sys.platform == "win32", reason="shell script tool")
def test_debug_logging(tmp_path: Path, make_binary) -> None:
    make_binary(tmp_path / "neon-cli")

    runner = CliRunner()
    result = runner.invoke(
        main, ["--debug", "cluster", "health"], env={"NEON_INSTALL_FOLDER": str(tmp_path)}
    )
    assert result.exit_code == 0
