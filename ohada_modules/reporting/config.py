"""
Reporting Configuration Schema.

Tolerances and journal conventions used when deriving OHADA statements.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Self

from ohada_kernel.domain.values import JournalType
from ohada_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")


@dataclass(frozen=True)
class ReportingConfig:
    """
    Configuration schema for the reporting module.

    ``opening_journal_type`` identifies the journal whose entries carry
    opening balances: the cash-flow statement counts them as starting cash
    and the equity-changes statement as initial equity.
    """

    trial_balance_tolerance: Decimal = Decimal("0.1")
    balance_sheet_tolerance: Decimal = Decimal("1.0")
    opening_journal_type: JournalType = JournalType.OPENING

    # Dashboard current ratio when there are assets but no current liabilities
    current_ratio_cap: Decimal = Decimal("9.99")

    def __post_init__(self):
        for name in ("trial_balance_tolerance", "balance_sheet_tolerance"):
            value = Decimal(str(getattr(self, name)))
            if value < 0:
                raise ValueError(f"{name} cannot be negative")
            object.__setattr__(self, name, value)
        object.__setattr__(
            self, "current_ratio_cap", Decimal(str(self.current_ratio_cap))
        )
        object.__setattr__(
            self, "opening_journal_type", JournalType(self.opening_journal_type)
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary.  Unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown reporting settings: {sorted(unknown)}")
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
