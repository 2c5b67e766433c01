"""
Settings Loader (``retail_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the frozen
``retail_config.schema`` dataclasses. The single public entry point for
runtime settings is ``retail_config.get_active_settings()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Money values are parsed from their string form into ``Decimal``, never
  through float.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  document for settings identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid values  -> ``ValueError`` from the schema ``__post_init__``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from retail_config.schema import (
    CodeSettings,
    CreditSettings,
    RetailSettings,
    StockSettings,
    StoreSettings,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, name: str) -> Decimal:
    """Parse a YAML scalar into Decimal via its string form."""
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"{name} must be a number, got {value!r}") from e


def parse_store(data: dict[str, Any]) -> StoreSettings:
    return StoreSettings(
        name=data["name"],
        currency=data.get("currency", "EGP"),
    )


def parse_codes(data: dict[str, Any]) -> CodeSettings:
    prefixes = data.get("prefixes") or {}
    if not isinstance(prefixes, dict):
        raise ValueError("codes.prefixes must be a mapping of kind -> prefix")
    return CodeSettings(
        prefixes={str(k).upper(): str(v) for k, v in prefixes.items()},
        dated_width=int(data.get("dated_width", 4)),
        plain_width=int(data.get("plain_width", 6)),
    )


def parse_credit(data: dict[str, Any]) -> CreditSettings:
    return CreditSettings(
        default_customer_limit=parse_decimal(
            data.get("default_customer_limit", "0"), "credit.default_customer_limit"
        ),
        enforce_on_sale=bool(data.get("enforce_on_sale", True)),
    )


def parse_stock(data: dict[str, Any]) -> StockSettings:
    return StockSettings(max_commit_attempts=int(data.get("max_commit_attempts", 5)))


def parse_settings(data: dict[str, Any]) -> RetailSettings:
    """
    Parse a full settings document.

    Preconditions:
        - ``data`` has ``settings_id``, ``version`` and ``store`` keys.
    Postconditions:
        - Returns a frozen ``RetailSettings`` whose checksum is
          ``compute_checksum(data)``.
    Raises:
        KeyError: a required key is missing.
        ValueError: a value fails schema validation.
    """
    return RetailSettings(
        settings_id=data["settings_id"],
        version=int(data["version"]),
        store=parse_store(data["store"]),
        codes=parse_codes(data.get("codes") or {}),
        credit=parse_credit(data.get("credit") or {}),
        stock=parse_stock(data.get("stock") or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
