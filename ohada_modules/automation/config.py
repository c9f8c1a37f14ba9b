"""
Posting Automation Configuration Schema.

Journal codes, account prefixes, the standard VAT rate and the failure
policy of each automation flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Self

from ohada_kernel.exceptions import ConfigurationError
from ohada_kernel.logging_config import get_logger

logger = get_logger("modules.automation.config")


class AutomationFlow(str, Enum):
    INVOICE = "invoice"
    PAYMENT = "payment"
    PURCHASE_BILL = "purchase_bill"
    PAYROLL = "payroll"
    SALARY_PAYMENT = "salary_payment"


class FailurePolicy(str, Enum):
    """What a flow does when its journal, accounts or fiscal year cannot be resolved."""

    PROPAGATE = "propagate"
    LOG_AND_CONTINUE = "log_and_continue"


# Invoice and purchase postings roll back the triggering business operation
# on failure; they always propagate.
SWITCHABLE_FLOWS = frozenset(
    {AutomationFlow.PAYMENT, AutomationFlow.PAYROLL, AutomationFlow.SALARY_PAYMENT}
)


@dataclass(frozen=True)
class JournalCodes:
    sales: str = "VT"
    purchases: str = "HA"
    bank: str = "BQ"
    cash: str = "CA"
    payroll: str = "PA"


@dataclass(frozen=True)
class AccountPrefixes:
    """Code prefixes resolved to the company's lowest-level matching account."""

    client: str = "411"
    supplier: str = "401"
    sales: str = "701"
    purchases: str = "601"
    vat_collected: str = "443"
    vat_deductible: str = "445"
    bank: str = "52"
    cash: str = "57"
    salaries: str = "641"
    employer_charges: str = "646"
    social_security: str = "431"
    withheld_tax: str = "442"
    net_pay_due: str = "422"


def _default_policies() -> dict[AutomationFlow, FailurePolicy]:
    return {flow: FailurePolicy.PROPAGATE for flow in AutomationFlow}


@dataclass(frozen=True)
class AutomationConfig:
    """
    Configuration schema for posting automation.

    Every flow propagates resolution failures by default.  Payment, payroll
    and salary payment postings may be switched to ``log_and_continue``.
    """

    journals: JournalCodes = field(default_factory=JournalCodes)
    accounts: AccountPrefixes = field(default_factory=AccountPrefixes)
    standard_vat_rate: Decimal = Decimal("0.16")
    failure_policies: dict[AutomationFlow, FailurePolicy] = field(
        default_factory=_default_policies,
    )

    def __post_init__(self):
        rate = Decimal(str(self.standard_vat_rate))
        if not Decimal("0") <= rate < Decimal("1"):
            raise ConfigurationError("automation", "standard_vat_rate must be in [0, 1)")
        object.__setattr__(self, "standard_vat_rate", rate)

        policies = _default_policies()
        for flow, policy in self.failure_policies.items():
            policies[AutomationFlow(flow)] = FailurePolicy(policy)
        for flow, policy in policies.items():
            if policy is FailurePolicy.LOG_AND_CONTINUE and flow not in SWITCHABLE_FLOWS:
                raise ConfigurationError(
                    "automation",
                    f"flow '{flow.value}' must propagate failures",
                )
        object.__setattr__(self, "failure_policies", policies)

    def policy_for(self, flow: AutomationFlow) -> FailurePolicy:
        return self.failure_policies[flow]

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("automation_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        data = dict(data)
        if isinstance(data.get("journals"), dict):
            data["journals"] = JournalCodes(**data["journals"])
        if isinstance(data.get("accounts"), dict):
            data["accounts"] = AccountPrefixes(**data["accounts"])
        if "standard_vat_rate" in data:
            data["standard_vat_rate"] = Decimal(str(data["standard_vat_rate"]))
        logger.info(
            "automation_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        try:
            return cls(**data)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError("automation", str(exc)) from exc
