"""
Codes -- Deterministic, human-readable business identifiers.

Responsibility:
    Formats codes such as ``INV-20240115-0001`` and ``CUST-000042`` from a
    prefix, an optional date and a host-supplied sequence number, and
    parses the sequence back out.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O, no clock.
    The kernel does not allocate sequences. The host supplies a
    non-repeating sequence (e.g. a database counter); ``next_sequence``
    only helps seed such a counter from existing codes.

Invariants enforced:
    code_distinctness -- distinct (prefix, date, sequence) tuples format to
        distinct codes. Prefixes are non-empty uppercase ASCII
        alphanumerics without hyphens, so the first segment always
        identifies the prefix; zero-padding never truncates, so each
        non-negative sequence has exactly one rendering.

Format:
    PREFIX-YYYYMMDD-NNNN   (dated, 4-digit minimum pad)
    PREFIX-NNNNNN          (undated, 6-digit minimum pad)

Failure modes:
    - NegativeSequenceError when sequence < 0.
    - InvalidPrefixError for an empty, lowercase, hyphenated or non-ASCII
      prefix.
    - InvalidSequenceError when sequence is not an int.
    - InvalidCodeDateError for a date part that is neither a date nor an
      ASCII YYYYMMDD string, or a missing date on a dated kind.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Mapping

from retail_kernel.exceptions import (
    InvalidCodeDateError,
    InvalidPrefixError,
    InvalidSequenceError,
    NegativeSequenceError,
)

DATED_SEQUENCE_WIDTH = 4
PLAIN_SEQUENCE_WIDTH = 6

_PREFIX_RE = re.compile(r"[A-Z0-9]+")
_SEQUENCE_RE = re.compile(r"-([0-9]+)\Z")
_DATE_PART_RE = re.compile(r"[0-9]{8}")


class CodePrefix(str, Enum):
    """Business document kinds that carry generated codes."""

    INVOICE = "INV"
    PURCHASE = "PUR"
    CUSTOMER = "CUST"
    SUPPLIER = "SUPP"
    PRODUCT = "PROD"
    RETURN = "RET"
    TRANSFER = "TRF"
    DAMAGE = "DMG"


# Kinds whose codes embed the document date.
DATED_PREFIXES: frozenset[CodePrefix] = frozenset(
    {
        CodePrefix.INVOICE,
        CodePrefix.PURCHASE,
        CodePrefix.RETURN,
        CodePrefix.TRANSFER,
        CodePrefix.DAMAGE,
    }
)


def _check_prefix(prefix: str) -> str:
    if not isinstance(prefix, str) or not prefix:
        raise InvalidPrefixError(prefix, "prefix must be a non-empty string")
    if not prefix.isascii() or not _PREFIX_RE.fullmatch(prefix):
        raise InvalidPrefixError(
            prefix, "prefix must be uppercase ASCII letters and digits without '-'"
        )
    return prefix


def _render_date(date_part: date | datetime | str) -> str:
    if isinstance(date_part, (date, datetime)):
        return date_part.strftime("%Y%m%d")
    if isinstance(date_part, str) and _DATE_PART_RE.fullmatch(date_part):
        return date_part
    raise InvalidCodeDateError(date_part)


def format_code(
    prefix: str,
    date_part: date | datetime | str | None,
    sequence: int,
    *,
    dated_width: int = DATED_SEQUENCE_WIDTH,
    plain_width: int = PLAIN_SEQUENCE_WIDTH,
) -> str:
    """
    Join prefix, optional date and zero-padded sequence with '-'.

    Postconditions:
        - format_code("INV", date(2024, 1, 15), 1) == "INV-20240115-0001"
        - format_code("CUST", None, 42) == "CUST-000042"
        - Sequences wider than the pad are rendered in full.

    Raises:
        NegativeSequenceError: sequence < 0.
        InvalidSequenceError: sequence is not an int.
        InvalidCodeDateError: date_part is malformed.
    """
    _check_prefix(prefix)
    if isinstance(sequence, bool) or not isinstance(sequence, int):
        raise InvalidSequenceError(sequence)
    if sequence < 0:
        raise NegativeSequenceError(sequence)

    if date_part is None:
        return f"{prefix}-{sequence:0{plain_width}d}"
    return f"{prefix}-{_render_date(date_part)}-{sequence:0{dated_width}d}"


def extract_sequence(code: str) -> int | None:
    """Trailing numeric group after the last '-', or None."""
    match = _SEQUENCE_RE.search(code)
    return int(match.group(1)) if match else None


def all_unique(codes: Iterable[str]) -> bool:
    """True iff no two codes are equal."""
    seen: set[str] = set()
    for code in codes:
        if code in seen:
            return False
        seen.add(code)
    return True


def next_sequence(
    codes: Iterable[str],
    prefix: str,
    date_part: date | datetime | str | None = None,
) -> int:
    """
    One past the highest sequence among codes of the same prefix/date.

    Returns 1 when no code matches. This reads existing codes only; it is
    not an allocator and gives no uniqueness guarantee under concurrency.
    """
    _check_prefix(prefix)
    head = f"{prefix}-" if date_part is None else f"{prefix}-{_render_date(date_part)}-"
    highest = 0
    for code in codes:
        if not code.startswith(head):
            continue
        tail = code[len(head):]
        if tail.isdigit() and tail.isascii():
            highest = max(highest, int(tail))
    return highest + 1


@dataclass(frozen=True)
class CodeBook:
    """
    Prefixes and pad widths for every CodePrefix kind.

    The defaults reproduce the standard formats; a settings file can
    override prefixes and widths (see retail_config.bridges).
    """

    prefixes: Mapping[CodePrefix, str] = field(
        default_factory=lambda: {kind: kind.value for kind in CodePrefix}
    )
    dated_width: int = DATED_SEQUENCE_WIDTH
    plain_width: int = PLAIN_SEQUENCE_WIDTH

    def __post_init__(self) -> None:
        for kind in CodePrefix:
            _check_prefix(self.prefixes.get(kind, ""))
        if len(set(self.prefixes.values())) != len(self.prefixes):
            raise ValueError("CodeBook prefixes must be distinct per kind")
        if self.dated_width < 1 or self.plain_width < 1:
            raise ValueError("Sequence widths must be positive")

    def generate(
        self,
        kind: CodePrefix,
        sequence: int,
        on: date | datetime | str | None = None,
    ) -> str:
        """Code for ``kind``; dated kinds require ``on``."""
        if kind in DATED_PREFIXES and on is None:
            raise InvalidCodeDateError(on)
        date_part = on if kind in DATED_PREFIXES else None
        return format_code(
            self.prefixes[kind],
            date_part,
            sequence,
            dated_width=self.dated_width,
            plain_width=self.plain_width,
        )


DEFAULT_CODE_BOOK = CodeBook()


def invoice_number(on: date | datetime, sequence: int) -> str:
    return DEFAULT_CODE_BOOK.generate(CodePrefix.INVOICE, sequence, on)


def purchase_number(on: date | datetime, sequence: int) -> str:
    return DEFAULT_CODE_BOOK.generate(CodePrefix.PURCHASE, sequence, on)


def return_number(on: date | datetime, sequence: int) -> str:
    return DEFAULT_CODE_BOOK.generate(CodePrefix.RETURN, sequence, on)


def transfer_number(on: date | datetime, sequence: int) -> str:
    return DEFAULT_CODE_BOOK.generate(CodePrefix.TRANSFER, sequence, on)


def damage_number(on: date | datetime, sequence: int) -> str:
    return DEFAULT_CODE_BOOK.generate(CodePrefix.DAMAGE, sequence, on)


def customer_code(sequence: int) -> str:
    return DEFAULT_CODE_BOOK.generate(CodePrefix.CUSTOMER, sequence)


def supplier_code(sequence: int) -> str:
    return DEFAULT_CODE_BOOK.generate(CodePrefix.SUPPLIER, sequence)


def product_code(sequence: int) -> str:
    return DEFAULT_CODE_BOOK.generate(CodePrefix.PRODUCT, sequence)
