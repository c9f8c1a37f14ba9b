"""
Configuration schema (``ohada_config.schema``).

Frozen dataclasses for the parsed configuration.  Module sections reuse the
modules' own config types (``AutomationConfig``, ``ReportingConfig``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from ohada_modules.automation.config import AutomationConfig
from ohada_modules.reporting.config import ReportingConfig


@dataclass(frozen=True)
class LedgerSettings:
    """Entry engine settings."""

    local_currency: str = "CDF"
    balance_tolerance: Decimal = Decimal("0.01")
    reference_sequence_width: int = 4
    max_reference_attempts: int = 3

    def __post_init__(self):
        if len(self.local_currency) != 3:
            raise ValueError("local_currency must be a 3-letter ISO 4217 code")
        if self.reference_sequence_width < 1:
            raise ValueError("reference_sequence_width must be positive")
        if self.max_reference_attempts < 1:
            raise ValueError("max_reference_attempts must be positive")

    def entry_service_options(self) -> dict[str, Any]:
        """Keyword arguments for ``EntryService``."""
        return {
            "local_currency": self.local_currency,
            "balance_tolerance": self.balance_tolerance,
            "reference_sequence_width": self.reference_sequence_width,
            "max_reference_attempts": self.max_reference_attempts,
        }


@dataclass(frozen=True)
class OhadaLedgerConfig:
    """The complete runtime configuration."""

    ledger: LedgerSettings = field(default_factory=LedgerSettings)
    automation: AutomationConfig = field(default_factory=AutomationConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    source: str = "<defaults>"
    checksum: str = ""
