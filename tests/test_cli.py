import os
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

import firefly_importer.cli as cli_mod
from firefly_importer.firefly_client import FireflyApiError
from firefly_importer.models import AboutData
from tests.helpers.firefly_stub import FakeDirectory

runner = CliRunner()


class _FakeClient(FakeDirectory):
    """Stands in for ``FireflyClient``; records the connection it was built with."""

    instances: list["_FakeClient"] = []
    about_error: FireflyApiError | None = None

    def __init__(self, base_url: str, token: str, **kwargs: Any) -> None:
        super().__init__()
        self.base_url = base_url
        self.token = token
        _FakeClient.instances.append(self)

    def about(self) -> AboutData:
        if self.about_error is not None:
            raise self.about_error
        return AboutData(version="6.1.0", api_version="2.0.1", php_version="8.3.1", os="Linux")


@pytest.fixture
def fake_client(monkeypatch: pytest.MonkeyPatch) -> type[_FakeClient]:
    _FakeClient.instances = []
    _FakeClient.about_error = None
    monkeypatch.setattr(cli_mod, "FireflyClient", _FakeClient)
    return _FakeClient


def test_version():
    result = runner.invoke(cli_mod.app, ["--version"])
    assert result.exit_code == 0
    assert "firefly-importer 0.1.0" in result.output


def test_test_auth_prints_instance_information(fake_client):
    result = runner.invoke(
        cli_mod.app, ["test-auth", "--url", "https://ff.example", "--token", "secret"]
    )
    assert result.exit_code == 0, result.output
    assert "Version: 6.1.0" in result.output
    assert "OS: Linux" in result.output
    assert "Authentication successful" in result.output
    assert (fake_client.instances[0].base_url, fake_client.instances[0].token) == (
        "https://ff.example",
        "secret",
    )


def test_test_auth_failure_exits_non_zero(fake_client):
    fake_client.about_error = FireflyApiError("HTTP error 401 for /api/v1/about", status=401)
    result = runner.invoke(cli_mod.app, ["test-auth", "-u", "https://ff.example", "-t", "bad"])
    assert result.exit_code == 1
    assert "Authentication failed" in result.output


def test_connection_settings_fall_back_to_environment(fake_client, monkeypatch):
    monkeypatch.setenv("FIREFLY_URL", "https://env.example")
    monkeypatch.setenv("FIREFLY_TOKEN", "env-token")
    result = runner.invoke(cli_mod.app, ["test-auth"])
    assert result.exit_code == 0, result.output
    assert fake_client.instances[0].base_url == "https://env.example"


def test_connection_settings_load_from_dotenv(fake_client, tmp_path: Path):
    # conftest runs each test from tmp_path, which is where the CLI looks for .env
    (tmp_path / ".env").write_text(
        "FIREFLY_URL=https://dotenv.example\nFIREFLY_TOKEN=dotenv-token\n", encoding="utf-8"
    )
    try:
        result = runner.invoke(cli_mod.app, ["test-auth"])
    finally:
        # load_dotenv writes straight into os.environ
        os.environ.pop("FIREFLY_URL", None)
        os.environ.pop("FIREFLY_TOKEN", None)
    assert result.exit_code == 0, result.output
    assert fake_client.instances[0].token == "dotenv-token"


def test_missing_token_is_reported(fake_client):
    result = runner.invoke(cli_mod.app, ["test-auth", "--url", "https://ff.example"])
    assert result.exit_code == 1
    assert "token is required" in result.output
    assert fake_client.instances == []


def test_import_reports_transactions(fake_client, sample_statement: Path):
    result = runner.invoke(
        cli_mod.app,
        ["import-piraeus-data", str(sample_statement), "-u", "https://ff.example", "-t", "x"],
    )
    assert result.exit_code == 0, result.output
    assert "Successfully parsed 9 data rows" in result.output
    assert "Prepared 5 transactions for import" in result.output
    assert "transfer\t| 2025-03-10\t| 300.00" in result.output
    assert "not yet implemented" in result.output


def test_import_dry_run_note(fake_client, sample_statement: Path):
    result = runner.invoke(
        cli_mod.app,
        [
            "import-piraeus-data",
            str(sample_statement),
            "--dry-run",
            "-u",
            "https://ff.example",
            "-t",
            "x",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Dry run" in result.output


def test_import_missing_file_exits_non_zero(fake_client, tmp_path: Path):
    result = runner.invoke(
        cli_mod.app,
        ["import-piraeus-data", str(tmp_path / "nope.tsv"), "-u", "https://ff.example", "-t", "x"],
    )
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_import_without_header_exits_non_zero(fake_client, tmp_path: Path):
    p = tmp_path / "bad.tsv"
    p.write_text("just some text\n", encoding="utf-8")
    result = runner.invoke(
        cli_mod.app, ["import-piraeus-data", str(p), "-u", "https://ff.example", "-t", "x"]
    )
    assert result.exit_code == 1
    assert "Could not find expected header line" in result.output
    assert fake_client.instances[0].calls == 0


def test_import_same_account_transfer_exits_non_zero(fake_client, tmp_path: Path):
    p = tmp_path / "same.tsv"
    p.write_text(
        "Κατηγορία\tΠεριγραφή Συναλλαγής (είδος)\tΗμερομηνία Καταχώρησης\tΑριθμός Προϊόντος\tΠοσό\n"
        "Ανακατανομή\tΜΕΤΑΦΟΡΑ\t1/3/2025\t6001 0001 1111\t-5,00 EUR\n"
        "Ανακατανομή\tΜΕΤΑΦΟΡΑ\t1/3/2025\t6001 0001 1111\t-5,00 EUR\n",
        encoding="utf-8",
    )
    result = runner.invoke(
        cli_mod.app, ["import-piraeus-data", str(p), "-u", "https://ff.example", "-t", "x"]
    )
    assert result.exit_code == 1
    assert "Invalid transaction" in result.output


def test_no_subcommand_shows_hint():
    result = runner.invoke(cli_mod.app, [])
    assert result.exit_code != 0 or "Usage" in result.output
