"""Integration tests for the Typer CLI.

Each test writes a TOML config pointing at a fresh SQLite file and drives
the commands through typer's CliRunner.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from taskhub.main import app


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "taskhub.toml"
    path.write_text(
        "[database]\n"
        f'url = "sqlite+aiosqlite:///{tmp_path / "cli.db"}"\n'
        "\n"
        "[logging]\n"
        'level = "WARNING"\n'
        "\n"
        "[auth]\n"
        'secret_key = "cli-test-secret-key-0123456789"\n'
        "bcrypt_rounds = 4\n"
    )
    return path


def _invoke(runner: CliRunner, config_file: Path, *args: str):
    return runner.invoke(app, ["--config", str(config_file), *args])


class TestDatabaseCommands:
    def test_db_init(self, cli_runner: CliRunner, config_file: Path) -> None:
        result = _invoke(cli_runner, config_file, "db", "init")

        assert result.exit_code == 0, result.output
        assert "Database schema is up to date." in result.output
        assert (config_file.parent / "cli.db").exists()

    def test_missing_config_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(app, ["--config", str(tmp_path / "absent.toml"), "db", "init"])

        assert result.exit_code != 0


class TestSeedCommands:
    def test_initial_then_stats(self, cli_runner: CliRunner, config_file: Path) -> None:
        assert _invoke(cli_runner, config_file, "db", "init").exit_code == 0

        seeded = _invoke(cli_runner, config_file, "seed", "initial")
        assert seeded.exit_code == 0, seeded.output
        assert "Initial data seeded" in seeded.output

        stats = _invoke(cli_runner, config_file, "seed", "stats")
        assert stats.exit_code == 0, stats.output
        assert "Database statistics" in stats.output
        assert "project_members" in stats.output
        assert "tasks (done)" in stats.output

    def test_sample_with_seed(self, cli_runner: CliRunner, config_file: Path) -> None:
        _invoke(cli_runner, config_file, "db", "init")
        _invoke(cli_runner, config_file, "seed", "initial")

        result = _invoke(cli_runner, config_file, "seed", "sample", "--seed", "7")

        assert result.exit_code == 0, result.output
        assert "Sample data seeded" in result.output


class TestUserCommands:
    def test_create_user(self, cli_runner: CliRunner, config_file: Path) -> None:
        _invoke(cli_runner, config_file, "db", "init")

        result = _invoke(
            cli_runner,
            config_file,
            "user",
            "create",
            "Root@Example.com",
            "Rita",
            "Root",
            "--password",
            "Secret123",
            "--role",
            "admin",
            "--role",
            "manager",
        )

        assert result.exit_code == 0, result.output
        assert "User created successfully!" in result.output
        assert "root@example.com" in result.output
        assert "admin, manager" in result.output

    def test_duplicate_user_fails(self, cli_runner: CliRunner, config_file: Path) -> None:
        _invoke(cli_runner, config_file, "db", "init")
        args = ("user", "create", "dup@example.com", "Dee", "Dup", "--password", "Secret123")
        assert _invoke(cli_runner, config_file, *args).exit_code == 0

        result = _invoke(cli_runner, config_file, *args)

        assert result.exit_code == 1
        assert "Email already exists" in result.output

    def test_weak_password_reports_rules(self, cli_runner: CliRunner, config_file: Path) -> None:
        _invoke(cli_runner, config_file, "db", "init")

        result = _invoke(
            cli_runner, config_file, "user", "create", "weak@example.com", "W", "K", "-p", "weak"
        )

        assert result.exit_code == 1
        assert "Password must contain at least one digit" in result.output
