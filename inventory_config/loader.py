"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the typed, frozen
``inventory_config.schema`` dataclasses.  Runtime callers go through
``inventory_config.get_active_config()``.

Invariants enforced
-------------------
* Every posting role is a known role name and is bound at most once.
* Account codes are non-empty strings; account types are known.
* Engine settings are positive.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML or invalid structure  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import (
    AccountDef,
    EngineSettings,
    InventoryLedgerConfig,
    RoleBinding,
)
from inventory_kernel.domain.account_mapping import AccountRole
from inventory_kernel.domain.dtos import AccountType
from inventory_kernel.exceptions import ConfigurationError

_KNOWN_ROLES = frozenset(role.value for role in AccountRole)
_KNOWN_ACCOUNT_TYPES = frozenset(t.value for t in AccountType)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration root in {path} must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 checksum of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    if key not in data or data[key] in (None, ""):
        raise ConfigurationError(f"Missing required key '{key}' in {where}")
    return data[key]


def _code(value: Any, where: str) -> str:
    code = str(value).strip() if value is not None else ""
    if not code:
        raise ConfigurationError(f"Empty account code in {where}")
    return code


def parse_role_bindings(data: Any) -> tuple[RoleBinding, ...]:
    if not isinstance(data, dict) or not data:
        raise ConfigurationError("role_bindings must be a non-empty mapping of role -> code")
    bindings = []
    for role, code in data.items():
        if role not in _KNOWN_ROLES:
            raise ConfigurationError(
                f"Unknown role '{role}' in role_bindings; known roles: {sorted(_KNOWN_ROLES)}"
            )
        bindings.append(RoleBinding(role=role, account_code=_code(code, f"role_bindings.{role}")))
    return tuple(bindings)


def parse_account(data: Any) -> AccountDef:
    if not isinstance(data, dict):
        raise ConfigurationError(f"Account definition must be a mapping, got {data!r}")
    account_type = _require(data, "type", "accounts entry")
    if account_type not in _KNOWN_ACCOUNT_TYPES:
        raise ConfigurationError(f"Unknown account type '{account_type}'")
    return AccountDef(
        code=_code(_require(data, "code", "accounts entry"), "accounts entry"),
        name=str(_require(data, "name", "accounts entry")),
        account_type=account_type,
    )


def _positive_decimal(value: Any, key: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except InvalidOperation as exc:
        raise ConfigurationError(f"engine.{key} must be a number, got {value!r}") from exc
    if not result.is_finite() or result <= 0:
        raise ConfigurationError(f"engine.{key} must be positive, got {value!r}")
    return result


def parse_engine(data: Any) -> EngineSettings:
    if data is None:
        return EngineSettings()
    if not isinstance(data, dict):
        raise ConfigurationError("engine must be a mapping")
    defaults = EngineSettings()
    attempts = data.get("max_cas_attempts", defaults.max_cas_attempts)
    if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
        raise ConfigurationError(f"engine.max_cas_attempts must be a positive integer, got {attempts!r}")
    return EngineSettings(
        max_cas_attempts=attempts,
        alert_threshold_percent=_positive_decimal(
            data.get("alert_threshold_percent", defaults.alert_threshold_percent),
            "alert_threshold_percent",
        ),
        ready_to_ship_percent=_positive_decimal(
            data.get("ready_to_ship_percent", defaults.ready_to_ship_percent),
            "ready_to_ship_percent",
        ),
    )


def parse_config(data: dict[str, Any]) -> InventoryLedgerConfig:
    """Parse a configuration document that has already been loaded."""
    accounts_data = data.get("accounts") or []
    if not isinstance(accounts_data, list):
        raise ConfigurationError("accounts must be a list")
    version = _require(data, "version", "configuration")
    if isinstance(version, bool) or not isinstance(version, int):
        raise ConfigurationError(f"version must be an integer, got {version!r}")

    return InventoryLedgerConfig(
        config_id=str(_require(data, "config_id", "configuration")),
        version=version,
        currency=str(data.get("currency", "USD")),
        role_bindings=parse_role_bindings(_require(data, "role_bindings", "configuration")),
        accounts=tuple(parse_account(entry) for entry in accounts_data),
        engine=parse_engine(data.get("engine")),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> InventoryLedgerConfig:
    return parse_config(load_yaml_file(path))
