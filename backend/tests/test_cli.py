from pathlib import Path

import pytest
from click.testing import CliRunner, Result

from backoffice import cli as cli_module
from backoffice.cli import cli


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"


@pytest.fixture
def invoke(monkeypatch: pytest.MonkeyPatch, database_url: str):
    monkeypatch.setattr(cli_module, "setup_logging", lambda: None)
    runner = CliRunner()

    def run(*args: str) -> Result:
        return runner.invoke(cli, ["--database-url", database_url, *args])

    run("init-db")
    return run


def last_line(result: Result) -> str:
    return result.output.strip().splitlines()[-1]


def test_init_db(invoke) -> None:
    result = invoke("init-db")

    assert result.exit_code == 0
    assert last_line(result) == "Database initialized"


def test_create_branch_prints_code(invoke) -> None:
    first = invoke("create-branch", "Downtown", "--address", "1 Main St", "--city", "Springfield")
    second = invoke("create-branch", "Harbour", "--address", "9 Dock Rd", "--city", "Springfield")

    assert first.exit_code == 0, first.output
    assert last_line(first) == "BR-001"
    assert last_line(second) == "BR-002"


def test_next_id_previews_without_reserving(invoke) -> None:
    assert last_line(invoke("next-id", "branch")) == "BR-001"
    assert last_line(invoke("next-id", "branch")) == "BR-001"

    invoke("create-branch", "Downtown", "--address", "1 Main St", "--city", "Springfield")

    assert last_line(invoke("next-id", "branch")) == "BR-002"
    assert last_line(invoke("next-id", "service")) == "SRV-001"
    assert last_line(invoke("next-id", "employee", "--branch", "BR-001")) == "EMP-BR-001-001"
    assert last_line(invoke("next-id", "client", "--branch", "BR-001")) == "CUST-BR-001-001"
    assert (
        last_line(invoke("next-id", "invoice", "--branch", "BR-001", "--date", "2025-06-15"))
        == "INV-BR-001-20250615-001"
    )
    assert last_line(invoke("next-id", "invoice-number", "--date", "2025-06-15")) == "INV-202506-0001"


def test_branch_scoped_kind_needs_branch(invoke) -> None:
    result = invoke("next-id", "employee")

    assert result.exit_code == 2
    assert "--branch is required" in result.output


def test_unknown_branch(invoke) -> None:
    result = invoke("next-id", "client", "--branch", "BR-404")

    assert result.exit_code == 1
    assert "Branch not found" in result.output
