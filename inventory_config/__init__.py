"""
inventory_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the way to obtain configuration at runtime through
    ``get_active_config()``: role bindings, the default chart of accounts
    and engine settings, parsed from a YAML configuration set.

Architecture position:
    Configuration -- sits above ``inventory_kernel``.  The kernel MUST NEVER
    import from ``inventory_config``; ``bridges`` translates configuration
    into kernel inputs (AccountMapping, ShipmentAlertEvaluator).

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ConfigurationError`` -- malformed YAML or invalid structure.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``INVENTORY_CONFIG_TRACE`` log entry with config id, version and
    checksum, tying posted entries to the configuration that governed them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from inventory_config.loader import load_config
from inventory_config.schema import InventoryLedgerConfig

_logger = logging.getLogger("inventory_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | None = None) -> InventoryLedgerConfig:
    """
    Load and validate the active configuration set.

    Args:
        path: Override path to a configuration YAML file.  Defaults to
            inventory_config/sets/default.yaml.
    """
    config = load_config(path or _DEFAULT_CONFIG_PATH)
    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "currency": config.currency,
            "role_binding_count": len(config.role_bindings),
        },
    )
    return config


__all__ = ["InventoryLedgerConfig", "get_active_config"]
