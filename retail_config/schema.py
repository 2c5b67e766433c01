"""
Retail settings schema.

Defines the human-authored settings artifact. YAML files are parsed into
these frozen types by the loader; bridges turn them into kernel inputs.
Every type validates itself in ``__post_init__`` and raises ValueError
with a descriptive message, so a bad file fails at load time rather than
at the first sale.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal

_CURRENCY_RE = re.compile(r"[A-Z]{3}")

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StoreSettings:
    """Identity of the store the settings apply to."""

    name: str
    currency: str = "EGP"

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("store.name is required")
        if not _CURRENCY_RE.fullmatch(self.currency):
            raise ValueError(
                f"store.currency must be a three-letter ISO code, got {self.currency!r}"
            )


@dataclass(frozen=True)
class CodeSettings:
    """Business code prefixes (keyed by CodePrefix member name) and pad widths."""

    prefixes: dict[str, str] = field(default_factory=dict)
    dated_width: int = 4
    plain_width: int = 6

    def __post_init__(self) -> None:
        if self.dated_width < 1:
            raise ValueError("codes.dated_width must be positive")
        if self.plain_width < 1:
            raise ValueError("codes.plain_width must be positive")
        values = list(self.prefixes.values())
        if len(set(values)) != len(values):
            raise ValueError(f"codes.prefixes must be distinct, got {values}")


@dataclass(frozen=True)
class CreditSettings:
    """Credit policy defaults for customers."""

    default_customer_limit: Decimal = Decimal("0")
    enforce_on_sale: bool = True

    def __post_init__(self) -> None:
        if self.default_customer_limit < 0:
            raise ValueError("credit.default_customer_limit cannot be negative")


@dataclass(frozen=True)
class StockSettings:
    """Compare-and-write retry budget for stock commits."""

    max_commit_attempts: int = 5

    def __post_init__(self) -> None:
        if self.max_commit_attempts < 1:
            raise ValueError("stock.max_commit_attempts must be at least 1")


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RetailSettings:
    """Complete settings artifact, identified by id, version and checksum."""

    settings_id: str
    version: int
    store: StoreSettings
    codes: CodeSettings = field(default_factory=CodeSettings)
    credit: CreditSettings = field(default_factory=CreditSettings)
    stock: StockSettings = field(default_factory=StockSettings)
    checksum: str = ""

    def __post_init__(self) -> None:
        if not self.settings_id:
            raise ValueError("settings_id is required")
        if self.version < 1:
            raise ValueError("version must be >= 1")
