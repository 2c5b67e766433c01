"""
Field validators -- shape checks for host input.

Pure predicates with no dependency on the calculators. They never raise:
every function answers with a bool (or a RequiredFieldsResult), so the
host's input layer can run them on raw form data.

Phone numbers follow the local (Egyptian) numbering plan:
    mobile        01[0125]XXXXXXXX         (11 digits)
    mobile intl   +2001[0125]XXXXXXXX
    landline      0[2-9]XXXXXXX(X)         (9-10 digits)
Spaces, hyphens and parentheses are ignored.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

_PHONE_NOISE_RE = re.compile(r"[\s\-()]")
_MOBILE_RE = re.compile(r"01[0125][0-9]{8}")
_MOBILE_INTL_RE = re.compile(r"\+2001[0125][0-9]{8}")
_LANDLINE_RE = re.compile(r"0[2-9][0-9]{7,8}")


@dataclass(frozen=True)
class RequiredFieldsResult:
    is_valid: bool
    missing_fields: tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return self.is_valid


def is_valid_email(email: Any) -> bool:
    if not email or not isinstance(email, str):
        return False
    return _EMAIL_RE.fullmatch(email.strip()) is not None


def is_valid_phone(phone: Any) -> bool:
    if not phone or not isinstance(phone, str):
        return False
    cleaned = _PHONE_NOISE_RE.sub("", phone)
    return any(
        pattern.fullmatch(cleaned)
        for pattern in (_MOBILE_RE, _MOBILE_INTL_RE, _LANDLINE_RE)
    )


def _as_decimal(value: Any) -> Decimal | None:
    """Finite Decimal for numeric input, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        return Decimal(str(value)) if math.isfinite(value) else None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = Decimal(value) if isinstance(value, (Decimal, int, str)) else None
    except (InvalidOperation, ValueError):
        return None
    if result is None or not result.is_finite():
        return None
    return result


def is_valid_number(value: Any) -> bool:
    """True for finite numbers and numeric strings; False for None, '' and bools."""
    return _as_decimal(value) is not None


def is_positive_number(value: Any) -> bool:
    number = _as_decimal(value)
    return number is not None and number > 0


def is_non_negative_number(value: Any) -> bool:
    number = _as_decimal(value)
    return number is not None and number >= 0


def is_valid_length(value: Any, min_length: int = 0, max_length: float = math.inf) -> bool:
    """Length of the stripped string lies in [min_length, max_length]."""
    if not isinstance(value, str):
        return False
    length = len(value.strip())
    return min_length <= length <= max_length


def _naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(UTC).replace(tzinfo=None)


def _parse_date(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not value or not isinstance(value, str):
        return None
    try:
        return _naive_utc(datetime.fromisoformat(value.strip()))
    except ValueError:
        return None


def is_valid_date_range(start: Any, end: Any) -> bool:
    """Both ends parse as ISO dates and start <= end."""
    start_at = _parse_date(start)
    end_at = _parse_date(end)
    if start_at is None or end_at is None:
        return False
    return start_at <= end_at


def validate_required_fields(
    record: Mapping[str, Any],
    required_keys: Iterable[str],
) -> RequiredFieldsResult:
    """Absent keys, None and '' count as missing."""
    missing = tuple(
        key for key in required_keys if record.get(key) is None or record.get(key) == ""
    )
    return RequiredFieldsResult(is_valid=not missing, missing_fields=missing)
