"""
Configuration Loader (``ohada_config.loader``).

Responsibility
--------------
Reads a YAML configuration file and parses it into ``OhadaLedgerConfig``.

Failure modes
-------------
* Missing file -> ``FileNotFoundError`` propagates.
* Malformed YAML -> ``yaml.YAMLError`` propagates.
* Unknown section or invalid value -> ``ConfigurationError`` naming the
  section.

Audit relevance
---------------
``compute_checksum`` gives a deterministic SHA-256 of the parsed content so
a running process can be tied to the configuration it loaded.
"""

from __future__ import annotations

import hashlib
import json
import os
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from ohada_config.schema import LedgerSettings, OhadaLedgerConfig
from ohada_kernel.exceptions import ConfigurationError
from ohada_modules.automation.config import AutomationConfig
from ohada_modules.reporting.config import ReportingConfig

CONFIG_ENV_VAR = "OHADA_LEDGER_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

_SECTIONS = ("ledger", "automation", "reporting")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def resolve_config_path(path: Path | str | None = None) -> Path:
    """Explicit path, else ``$OHADA_LEDGER_CONFIG``, else the packaged defaults."""
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def compute_checksum(data: dict[str, Any]) -> str:
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_ledger_settings(data: dict[str, Any]) -> LedgerSettings:
    try:
        return LedgerSettings(
            local_currency=str(data.get("local_currency", "CDF")),
            balance_tolerance=Decimal(str(data.get("balance_tolerance", "0.01"))),
            reference_sequence_width=int(data.get("reference_sequence_width", 4)),
            max_reference_attempts=int(data.get("max_reference_attempts", 3)),
        )
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise ConfigurationError("ledger", str(exc)) from exc


def parse_reporting_config(data: dict[str, Any]) -> ReportingConfig:
    try:
        return ReportingConfig.from_dict(data)
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise ConfigurationError("reporting", str(exc)) from exc


def parse_config(data: dict[str, Any], source: str = "<dict>") -> OhadaLedgerConfig:
    """Parse the top-level mapping.  Missing sections take their defaults."""
    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise ConfigurationError("root", f"unknown sections: {sorted(unknown)}")
    return OhadaLedgerConfig(
        ledger=parse_ledger_settings(data.get("ledger") or {}),
        automation=AutomationConfig.from_dict(data.get("automation") or {}),
        reporting=parse_reporting_config(data.get("reporting") or {}),
        source=source,
        checksum=compute_checksum(data),
    )


def load_config(path: Path | str | None = None) -> OhadaLedgerConfig:
    config_path = resolve_config_path(path)
    return parse_config(load_yaml_file(config_path), source=str(config_path))
