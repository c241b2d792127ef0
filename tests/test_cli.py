import pytest
from click.testing import CliRunner

from canvas_mcp import cli as cli_module
from canvas_mcp.core.config import DOMAIN_KEY, TOKEN_KEY, ConfigStore


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    monkeypatch.setattr("canvas_mcp.core.config.load_dotenv", lambda *a, **k: None)
    monkeypatch.setattr("click.get_app_dir", lambda *a, **k: str(tmp_path / "app"))
    monkeypatch.delenv(TOKEN_KEY, raising=False)
    monkeypatch.delenv(DOMAIN_KEY, raising=False)
    return tmp_path


def test_config_command_saves_credentials(tmp_path):
    result = CliRunner().invoke(cli_module.cli, ["config"], input="school.instructure.com\nsecret\n")

    assert result.exit_code == 0, result.output
    assert "Configuration saved successfully!" in result.output
    store = ConfigStore()
    assert store.get(DOMAIN_KEY) == "school.instructure.com"
    assert store.get(TOKEN_KEY) == "secret"
    assert "secret" not in result.output


def test_config_command_reprompts_on_blank_domain():
    result = CliRunner().invoke(cli_module.cli, ["config"], input="\n  \nexample.edu\ntok\n")

    assert result.exit_code == 0, result.output
    assert ConfigStore().get(DOMAIN_KEY) == "example.edu"


def test_start_without_configuration_exits_1(monkeypatch):
    called = []
    monkeypatch.setattr(
        "canvas_mcp.transports.stdio.main.main", lambda client: called.append(client)
    )

    result = CliRunner().invoke(cli_module.cli, [])

    assert result.exit_code == 1
    assert "Missing configuration" in result.output
    assert not called


def test_start_runs_stdio_server(monkeypatch):
    seen = {}

    async def fake_main(client):
        seen["client"] = client

    monkeypatch.setenv(TOKEN_KEY, "tok")
    monkeypatch.setenv(DOMAIN_KEY, "school.instructure.com")
    monkeypatch.setattr("canvas_mcp.transports.stdio.main.main", fake_main)

    result = CliRunner().invoke(cli_module.cli, ["start"])

    assert result.exit_code == 0, result.output
    assert seen["client"].domain == "school.instructure.com"


def test_serve_http_applies_overrides(monkeypatch):
    seen = {}

    async def fake_main(client, cfg):
        seen["cfg"] = cfg

    monkeypatch.setenv(TOKEN_KEY, "tok")
    monkeypatch.setenv(DOMAIN_KEY, "school.instructure.com")
    monkeypatch.setattr("canvas_mcp.transports.http.main.main", fake_main)

    result = CliRunner().invoke(cli_module.cli, ["serve-http", "--host", "127.0.0.1", "--port", "8123"])

    assert result.exit_code == 0, result.output
    assert (seen["cfg"].host, seen["cfg"].port) == ("127.0.0.1", 8123)


def test_version():
    result = CliRunner().invoke(cli_module.cli, ["--version"])
    assert "0.1.0" in result.output
