"""Unit tests for the ledger CLI script."""

import importlib.util
import logging
from pathlib import Path

import click
import pytest
import yaml
from click.testing import CliRunner

from portfolio_ledger.utils.config import ENV_DB_PATH, ENV_PROTOCOL_FEE, ENV_PROTOCOL_OWNER

SCRIPT = Path(__file__).parent.parent.parent / "scripts" / "ledger_cli.py"


def load_cli_module():
    spec = importlib.util.spec_from_file_location("ledger_cli", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestLedgerCLI:
    """Test cases for the click command group."""

    @pytest.fixture(autouse=True)
    def restore_root_logging(self):
        """Undo the CLI's logging setup, which targets the runner's stdout."""
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    @pytest.fixture
    def cli_module(self):
        return load_cli_module()

    @pytest.fixture
    def config_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        for name in (ENV_DB_PATH, ENV_PROTOCOL_OWNER, ENV_PROTOCOL_FEE):
            monkeypatch.delenv(name, raising=False)
        path = tmp_path / "ledger.yaml"
        path.write_text(
            yaml.dump(
                {
                    "ledger": {"protocol_owner": "deployer", "protocol_fee_bps": 25},
                    "database": {"path": str(tmp_path / "cli.db")},
                    "logging": {"level": "WARNING"},
                }
            )
        )
        return path

    def invoke(self, cli_module, config_file: Path, *args: str):
        runner = CliRunner()
        return runner.invoke(cli_module.cli, ["--config", str(config_file), *args])

    def test_parse_allocations(self, cli_module) -> None:
        tokens, percentages = cli_module.parse_allocations(("BTC=6000", "ETH=4000"))

        assert tokens == ["BTC", "ETH"]
        assert percentages == [6000, 4000]

    def test_parse_allocations_malformed(self, cli_module) -> None:
        with pytest.raises(click.BadParameter):
            cli_module.parse_allocations(("BTC6000",))

    def test_create_and_list(self, cli_module, config_file: Path) -> None:
        """Test creating a portfolio and listing it for its owner."""
        result = self.invoke(
            cli_module, config_file, "--caller", "alice", "create", "BTC=6000", "ETH=4000"
        )
        assert result.exit_code == 0, result.output
        assert "Created portfolio 1" in result.output

        result = self.invoke(cli_module, config_file, "list", "alice")
        assert result.exit_code == 0, result.output
        assert "Portfolios of alice" in result.output

    def test_create_invalid_sum(self, cli_module, config_file: Path) -> None:
        """Test a bad sum exits non-zero with the error message."""
        result = self.invoke(
            cli_module, config_file, "--caller", "alice", "create", "BTC=6000", "ETH=3000"
        )

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_update_by_non_owner(self, cli_module, config_file: Path) -> None:
        self.invoke(cli_module, config_file, "--caller", "alice", "create", "A=5000", "B=5000")

        result = self.invoke(cli_module, config_file, "--caller", "bob", "update", "1", "0", "100")

        assert result.exit_code == 1
        assert "does not own" in result.output

    def test_show_missing(self, cli_module, config_file: Path) -> None:
        result = self.invoke(cli_module, config_file, "show", "9")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_status_and_handoff(self, cli_module, config_file: Path) -> None:
        result = self.invoke(cli_module, config_file, "--caller", "deployer", "handoff", "treasury")
        assert result.exit_code == 0, result.output

        result = self.invoke(cli_module, config_file, "status")
        assert result.exit_code == 0, result.output
        assert "treasury" in result.output
        assert "25 bps" in result.output

    def test_negative_height_rejected(self, cli_module, config_file: Path) -> None:
        """Test a negative height is a usage error rather than a crash."""
        result = self.invoke(cli_module, config_file, "--height", "-5", "status")

        assert result.exit_code == 2
        assert "Invalid value for '--height'" in result.output
        assert not isinstance(result.exception, ValueError)

    def test_missing_config(self, cli_module, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            cli_module.cli, ["--config", str(tmp_path / "none.yaml"), "status"]
        )

        assert result.exit_code != 0
        assert "Configuration file not found" in result.output
