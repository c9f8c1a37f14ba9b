"""AutomationConfig defaults, parsing and failure-policy rules."""

from decimal import Decimal

import pytest

from ohada_kernel.exceptions import ConfigurationError
from ohada_modules.automation.config import (
    AutomationConfig,
    AutomationFlow,
    FailurePolicy,
    JournalCodes,
)


class TestDefaults:
    def test_standard_journals_and_prefixes(self):
        config = AutomationConfig.with_defaults()
        assert config.journals == JournalCodes("VT", "HA", "BQ", "CA", "PA")
        assert config.accounts.client == "411"
        assert config.accounts.bank == "52"
        assert config.accounts.cash == "57"
        assert config.standard_vat_rate == Decimal("0.16")

    def test_every_flow_propagates(self):
        config = AutomationConfig()
        assert set(config.failure_policies) == set(AutomationFlow)
        assert set(config.failure_policies.values()) == {FailurePolicy.PROPAGATE}


class TestFromDict:
    def test_nested_sections(self):
        config = AutomationConfig.from_dict(
            {
                "journals": {"bank": "BK"},
                "accounts": {"bank": "521"},
                "standard_vat_rate": "0.18",
                "failure_policies": {"payroll": "log_and_continue"},
            }
        )
        assert config.journals.bank == "BK"
        assert config.journals.sales == "VT"
        assert config.accounts.bank == "521"
        assert config.standard_vat_rate == Decimal("0.18")
        assert config.policy_for(AutomationFlow.PAYROLL) is FailurePolicy.LOG_AND_CONTINUE
        assert config.policy_for(AutomationFlow.PAYMENT) is FailurePolicy.PROPAGATE

    def test_unknown_key_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            AutomationConfig.from_dict({"journal_codes": {}})
        assert exc_info.value.section == "automation"

    def test_unknown_policy_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError):
            AutomationConfig.from_dict({"failure_policies": {"payment": "ignore"}})


class TestPolicyRestrictions:
    @pytest.mark.parametrize(
        "flow", [AutomationFlow.INVOICE, AutomationFlow.PURCHASE_BILL]
    )
    def test_document_flows_cannot_swallow_failures(self, flow):
        with pytest.raises(ConfigurationError):
            AutomationConfig(failure_policies={flow: FailurePolicy.LOG_AND_CONTINUE})

    @pytest.mark.parametrize(
        "flow",
        [AutomationFlow.PAYMENT, AutomationFlow.PAYROLL, AutomationFlow.SALARY_PAYMENT],
    )
    def test_settlement_flows_may_log_and_continue(self, flow):
        config = AutomationConfig(failure_policies={flow: FailurePolicy.LOG_AND_CONTINUE})
        assert config.policy_for(flow) is FailurePolicy.LOG_AND_CONTINUE

    @pytest.mark.parametrize("rate", ["-0.01", "1", "1.5"])
    def test_vat_rate_bounds(self, rate):
        with pytest.raises(ConfigurationError):
            AutomationConfig(standard_vat_rate=Decimal(rate))
