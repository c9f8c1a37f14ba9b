"""
Tests for ohada_config: YAML loading, section parsing and checksums.

NO database required.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
import yaml

from ohada_config import get_active_config
from ohada_config.loader import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATH,
    compute_checksum,
    load_config,
    parse_config,
    resolve_config_path,
)
from ohada_config.schema import LedgerSettings, OhadaLedgerConfig
from ohada_kernel.domain.values import JournalType
from ohada_kernel.exceptions import ConfigurationError
from ohada_modules.automation.config import AutomationFlow, FailurePolicy


@pytest.fixture
def write_config(tmp_path):
    def _write(data: dict, name: str = "ledger.yaml"):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data))
        return path

    return _write


class TestPackagedDefaults:
    def test_defaults_match_dataclass_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        config = load_config()
        defaults = OhadaLedgerConfig()

        assert config.source == str(DEFAULT_CONFIG_PATH)
        assert config.ledger == defaults.ledger
        assert config.automation == defaults.automation
        assert config.reporting == defaults.reporting

    def test_default_values(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        config = load_config()

        assert config.ledger.local_currency == "CDF"
        assert config.ledger.balance_tolerance == Decimal("0.01")
        assert config.automation.journals.sales == "VT"
        assert config.automation.standard_vat_rate == Decimal("0.16")
        assert config.reporting.trial_balance_tolerance == Decimal("0.1")
        assert config.reporting.opening_journal_type is JournalType.OPENING


class TestPathResolution:
    def test_explicit_path_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.yaml"))
        assert resolve_config_path(tmp_path / "explicit.yaml") == tmp_path / "explicit.yaml"

    def test_environment_variable(self, monkeypatch, write_config):
        path = write_config({"ledger": {"local_currency": "XAF"}})
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        config = load_config()
        assert config.source == str(path)
        assert config.ledger.local_currency == "XAF"

    def test_empty_file_yields_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        config = load_config(path)
        assert config.ledger == LedgerSettings()


class TestParsing:
    def test_partial_sections(self):
        config = parse_config(
            {
                "ledger": {"balance_tolerance": "0", "reference_sequence_width": 5},
                "automation": {"failure_policies": {"payroll": "log_and_continue"}},
                "reporting": {"balance_sheet_tolerance": "0.5"},
            }
        )
        assert config.ledger.balance_tolerance == Decimal("0")
        assert config.ledger.reference_sequence_width == 5
        assert (
            config.automation.policy_for(AutomationFlow.PAYROLL)
            is FailurePolicy.LOG_AND_CONTINUE
        )
        assert config.reporting.balance_sheet_tolerance == Decimal("0.5")

    def test_entry_service_options(self):
        settings = parse_config({"ledger": {"local_currency": "XOF"}}).ledger
        assert settings.entry_service_options() == {
            "local_currency": "XOF",
            "balance_tolerance": Decimal("0.01"),
            "reference_sequence_width": 4,
            "max_reference_attempts": 3,
        }

    def test_unknown_section(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config({"payments": {}})
        assert exc_info.value.section == "root"

    @pytest.mark.parametrize(
        "ledger",
        [
            {"local_currency": "FRANC"},
            {"reference_sequence_width": 0},
            {"max_reference_attempts": "many"},
            {"balance_tolerance": "abc"},
        ],
    )
    def test_invalid_ledger_settings(self, ledger):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config({"ledger": ledger})
        assert exc_info.value.section == "ledger"

    def test_invoice_flow_cannot_log_and_continue(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config({"automation": {"failure_policies": {"invoice": "log_and_continue"}}})
        assert exc_info.value.section == "automation"

    def test_unknown_policy(self):
        with pytest.raises(ConfigurationError):
            parse_config({"automation": {"failure_policies": {"payment": "retry"}}})

    @pytest.mark.parametrize(
        "reporting",
        [
            {"trial_balance_tolerance": "-1"},
            {"opening_journal_type": "carry_forward"},
            {"show_zero_lines": True},
        ],
    )
    def test_invalid_reporting_settings(self, reporting):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config({"reporting": reporting})
        assert exc_info.value.section == "reporting"


class TestChecksum:
    def test_stable_across_key_order(self):
        a = {"ledger": {"local_currency": "CDF", "balance_tolerance": "0.01"}}
        b = {"ledger": {"balance_tolerance": "0.01", "local_currency": "CDF"}}
        assert compute_checksum(a) == compute_checksum(b)

    def test_changes_with_content(self):
        assert compute_checksum({"ledger": {"local_currency": "CDF"}}) != compute_checksum(
            {"ledger": {"local_currency": "XAF"}}
        )

    def test_same_file_same_checksum(self, write_config):
        path = write_config({"reporting": {"trial_balance_tolerance": "0.05"}})
        assert load_config(path).checksum == load_config(path).checksum
        assert len(load_config(path).checksum) == 64


def test_get_active_config_logs_source(write_config, captured_logs):
    path = write_config({"ledger": {"local_currency": "XAF"}})
    config = get_active_config(path)

    events = [r for r in captured_logs() if r["message"] == "config_loaded"]
    assert events[0]["source"] == str(path)
    assert events[0]["checksum"] == config.checksum
    assert events[0]["local_currency"] == "XAF"
