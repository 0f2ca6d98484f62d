"""Tests for the command-line interface."""

import json

import pytest

from jumpserver_inventory import cli
from jumpserver_inventory.errors import AuthError, ExchangeTimeoutError, MenuFormatError
from jumpserver_inventory.jumpserver import Asset


class StubClient:
    """Replaces JumpServerClient inside the CLI."""

    instances = []
    result = [
        Asset(id=1, name="web-01", address="10.1.0.1", platform="Linux", organization="Default"),
        Asset(id=2, name="db-01", address="10.1.0.2", platform="Linux", comment="mysql"),
    ]
    error = None

    def __init__(self, config, **kwargs):
        self.config = config
        self.kwargs = kwargs
        self.closed = False
        StubClient.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def get_all_assets(self):
        if self.error is not None:
            raise self.error
        return list(self.result)


@pytest.fixture
def stub_client(monkeypatch, tmp_path):
    StubClient.instances = []
    StubClient.error = None
    monkeypatch.setattr(cli, "JumpServerClient", StubClient)
    for key in ("JUMPSERVER_HOST", "JUMPSERVER_USERNAME", "JUMPSERVER_PASSWORD", "JUMPSERVER_KEY_PATH"):
        monkeypatch.delenv(key, raising=False)
    config_file = tmp_path / "config.json"
    config_file.write_text("{}", encoding="utf-8")
    return str(config_file)


def test_json_output(stub_client, capsys):
    code = cli.run_cli(
        ["--config", stub_client, "assets", "--host", "h", "--user", "u", "--password", "p", "--format", "json"]
    )

    assert code == cli.EXIT_OK
    payload = json.loads(capsys.readouterr().out)
    assert [item["address"] for item in payload] == ["10.1.0.1", "10.1.0.2"]
    client = StubClient.instances[0]
    assert client.config.host == "h"
    assert client.kwargs["keyboard_interactive_handler"] is cli.prompt_keyboard_interactive
    assert client.closed


def test_table_output(stub_client, capsys):
    code = cli.run_cli(["--config", stub_client, "assets", "--host", "h", "--user", "u", "--password", "p"])

    out = capsys.readouterr().out
    assert code == 0
    assert "ADDRESS" in out
    assert "db-01" in out
    assert "2 assets" in out


def test_timeout_flag_reaches_client(stub_client):
    cli.run_cli(
        ["--config", stub_client, "assets", "--host", "h", "--user", "u", "--password", "p", "--timeout", "3"]
    )
    assert StubClient.instances[0].kwargs["exchange_timeout"] == 3.0


@pytest.mark.parametrize(
    "error, expected",
    [
        (AuthError("Authentication failed."), cli.EXIT_AUTH),
        (ExchangeTimeoutError("n", 15.0), cli.EXIT_TIMEOUT),
        (MenuFormatError("unrecognised"), cli.EXIT_PROTOCOL),
    ],
)
def test_error_exit_codes(stub_client, error, expected):
    StubClient.error = error
    code = cli.run_cli(["--config", stub_client, "assets", "--host", "h", "--user", "u", "--password", "p"])
    assert code == expected


def test_missing_credentials_is_config_error(stub_client, monkeypatch):
    class ValidatingClient(StubClient):
        def get_all_assets(self):
            self.config.validate()
            return []

    monkeypatch.setattr(cli, "JumpServerClient", ValidatingClient)
    code = cli.run_cli(["--config", stub_client, "assets", "--host", "h", "--user", "u"])
    assert code == cli.EXIT_CONFIG


def test_keyboard_interactive_prompt(monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda prompt: "visible")
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "123456")

    answers = cli.prompt_keyboard_interactive(
        "JumpServer MFA", "", [("Username: ", True), ("OTP: ", False)]
    )

    assert answers == ["visible", "123456"]
    assert "JumpServer MFA" in capsys.readouterr().out


def test_format_table_alignment():
    table = cli.format_table([Asset(name="a", address="10.0.0.1")])
    header, rule, row = table.splitlines()
    assert header.startswith("ID")
    assert row.split() == ["a", "10.0.0.1"]


def test_missing_config_file_is_config_error(stub_client, tmp_path, capsys):
    missing = tmp_path / "absent.json"
    code = cli.run_cli(["--config", str(missing), "assets", "--host", "h", "--user", "u", "--password", "p"])
    assert code == cli.EXIT_CONFIG
    assert "absent.json" in capsys.readouterr().out
    assert StubClient.instances == []


def test_malformed_config_file_is_config_error(stub_client, tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    code = cli.run_cli(["--config", str(broken), "assets", "--host", "h", "--user", "u", "--password", "p"])
    assert code == cli.EXIT_CONFIG


def test_invalid_env_port_is_config_error(stub_client, monkeypatch):
    monkeypatch.setenv("JUMPSERVER_PORT", "twenty-two")
    code = cli.run_cli(["--config", stub_client, "assets", "--host", "h", "--user", "u", "--password", "p"])
    assert code == cli.EXIT_CONFIG
