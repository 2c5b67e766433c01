"""
Config -> Kernel Bridges.

Functions that convert RetailSettings into kernel-compatible inputs.
These live in retail_config (the producer) because the kernel must NEVER
import retail_config.

Usage:
    from retail_config.bridges import build_code_book

    settings = get_active_settings()
    book = build_code_book(settings)
    book.generate(CodePrefix.INVOICE, 17, on=date.today())
"""

from __future__ import annotations

from decimal import Decimal

from retail_config.schema import RetailSettings
from retail_kernel.domain.codes import CodeBook, CodePrefix


def build_code_book(settings: RetailSettings) -> CodeBook:
    """
    Build a CodeBook from the ``codes`` section.

    Kinds missing from ``codes.prefixes`` keep their standard prefix.

    Raises:
        ValueError: a prefix key does not name a CodePrefix member, or
            widths/prefixes are rejected by CodeBook.
        InvalidPrefixError: a prefix breaks the code format.
    """
    configured = settings.codes.prefixes
    unknown = set(configured) - {kind.name for kind in CodePrefix}
    if unknown:
        raise ValueError(f"Unknown code kinds in settings: {sorted(unknown)}")

    prefixes = {kind: configured.get(kind.name, kind.value) for kind in CodePrefix}
    return CodeBook(
        prefixes=prefixes,
        dated_width=settings.codes.dated_width,
        plain_width=settings.codes.plain_width,
    )


def default_credit_limit(settings: RetailSettings) -> Decimal:
    """Credit limit applied to customers without an explicit limit."""
    return settings.credit.default_customer_limit
