"""
ohada_config -- single public entrypoint for ledger configuration.

Responsibility:
    ``get_active_config()`` reads the YAML configuration (an explicit path,
    the ``OHADA_LEDGER_CONFIG`` environment variable, or the packaged
    ``defaults.yaml``) and returns a frozen ``OhadaLedgerConfig``.

Architecture position:
    Configuration.  Sits above ``ohada_kernel`` and ``ohada_modules`` and
    hands each of them its own settings; the kernel never imports this
    package.

Audit relevance:
    Every call logs ``config_loaded`` with the source path and the checksum
    of the parsed content.
"""

from __future__ import annotations

from pathlib import Path

from ohada_config.loader import load_config
from ohada_config.schema import LedgerSettings, OhadaLedgerConfig
from ohada_kernel.logging_config import get_logger

logger = get_logger("config")


def get_active_config(path: Path | str | None = None) -> OhadaLedgerConfig:
    """Load and validate the active configuration."""
    config = load_config(path)
    logger.info(
        "config_loaded",
        extra={
            "source": config.source,
            "checksum": config.checksum,
            "local_currency": config.ledger.local_currency,
        },
    )
    return config


__all__ = ["LedgerSettings", "OhadaLedgerConfig", "get_active_config"]
