"""Tests for the typer CLI."""

import importlib
import json

import pytest
from typer.testing import CliRunner

from indexbench import __version__
from indexbench.engine.orchestrator import ScenarioOrchestrator
from indexbench.storage.gateway import StorageGateway

cli_module = importlib.import_module("indexbench.cli.app")
runner = CliRunner()


@pytest.fixture
def fake_cli(monkeypatch, fake_client, settings, instant_index_manager):
    """Point the CLI at the in-memory store."""

    def build() -> ScenarioOrchestrator:
        gateway = StorageGateway(client_factory=lambda uri: fake_client)
        return ScenarioOrchestrator(gateway=gateway, settings=settings, indexes=instant_index_manager)

    monkeypatch.setattr(cli_module, "_build_orchestrator", build)
    return fake_client


def test_version() -> None:
    result = runner.invoke(cli_module.app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


class TestRunCommand:
    """Test `indexbench run`."""

    def test_scenario1(self, fake_cli) -> None:
        result = runner.invoke(
            cli_module.app,
            [
                "run",
                "scenario1",
                "--filter",
                json.dumps({"category": "Electronics"}),
                "--index",
                json.dumps({"category": 1}),
                "--size",
                "1m",
            ],
        )

        assert result.exit_code == 0, result.stdout
        assert "no_index" in result.stdout
        assert "with_index" in result.stdout
        assert fake_cli.closed is True

    def test_scenario5_with_sort(self, fake_cli) -> None:
        result = runner.invoke(
            cli_module.app,
            [
                "run",
                "scenario5",
                "-f",
                '{"category": "Electronics"}',
                "-s",
                '{"price": -1}',
                "--index1",
                '{"price": -1}',
                "--index2",
                '{"price": 1}',
                "--size",
                "1m",
            ],
        )

        assert result.exit_code == 0, result.stdout
        assert "index2" in result.stdout

    def test_failed_scenario_exits_nonzero(self, fake_cli) -> None:
        result = runner.invoke(cli_module.app, ["run", "scenario9"])

        assert result.exit_code == 1
        assert "scenario9" in result.stdout

    def test_invalid_json(self, fake_cli) -> None:
        result = runner.invoke(cli_module.app, ["run", "scenario1", "--filter", "{not json"])

        assert result.exit_code == 2


class TestOtherCommands:
    """Test `indexbench stats` and `indexbench indexes`."""

    def test_stats(self, fake_cli) -> None:
        result = runner.invoke(cli_module.app, ["stats"])

        assert result.exit_code == 0, result.stdout
        assert "products_1m" in result.stdout
        assert "720" in result.stdout

    def test_indexes_list_and_clear(self, fake_cli, fake_database) -> None:
        fake_database["products_1m"].indexes["category_1"] = [("category", 1)]

        listed = runner.invoke(cli_module.app, ["indexes", "list", "--size", "1m"])
        assert listed.exit_code == 0, listed.stdout
        assert "category_1" in listed.stdout

        cleared = runner.invoke(cli_module.app, ["indexes", "clear", "--size", "1m"])
        assert cleared.exit_code == 0, cleared.stdout
        assert fake_database["products_1m"].indexes == {}
