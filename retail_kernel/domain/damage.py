"""
Damage -- Cost of damage events and write-off totals.

Responsibility:
    Prices a damage event (quantity x unit cost) and builds the immutable
    DamageRecord the host persists alongside the DAMAGE stock operation.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    closed_enumerations -- damage_type must be a DamageType; strings are
        accepted only when they name a member exactly.
    single_rounding -- total_cost is rounded once.

Failure modes:
    - NegativeQuantityError / NegativeCostError on negative inputs.
    - InvalidDamageTypeError for a tag outside DamageType.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable

from retail_kernel.domain.values import (
    ZERO,
    Number,
    require_non_negative,
    round_money,
)
from retail_kernel.exceptions import (
    InvalidDamageTypeError,
    NegativeCostError,
    NegativeQuantityError,
)


class DamageType(str, Enum):
    """Closed set of damage causes."""

    PHYSICAL_DAMAGE = "PHYSICAL_DAMAGE"
    WATER_DAMAGE = "WATER_DAMAGE"
    EXPIRED = "EXPIRED"
    MANUFACTURING_DEFECT = "MANUFACTURING_DEFECT"
    STORAGE_DAMAGE = "STORAGE_DAMAGE"
    TRANSIT_DAMAGE = "TRANSIT_DAMAGE"
    OTHER = "OTHER"


@dataclass(frozen=True)
class DamageRecord:
    """
    A priced damage event.

    Guarantees:
        - total_cost == round_money(quantity * unit_cost)
        - damage_type is a DamageType member
    """

    product_id: str
    quantity: Decimal
    unit_cost: Decimal
    damage_type: DamageType
    total_cost: Decimal


def is_valid_damage_type(value: Any) -> bool:
    """True if value is a DamageType or the exact name of one."""
    if isinstance(value, DamageType):
        return True
    return isinstance(value, str) and value in DamageType._value2member_map_


def _parse_damage_type(value: Any) -> DamageType:
    if not is_valid_damage_type(value):
        raise InvalidDamageTypeError(value)
    return DamageType(value)


def damage_cost(quantity: Number, unit_cost: Number) -> Decimal:
    """
    Cost of a damage event: quantity x unit_cost, rounded.

    Raises:
        NegativeQuantityError: quantity < 0.
        NegativeCostError: unit_cost < 0.
    """
    qty = require_non_negative(quantity, "quantity", NegativeQuantityError)
    cost = require_non_negative(unit_cost, "unit_cost", NegativeCostError)
    return round_money(qty * cost)


def build_damage_record(
    product_id: str,
    quantity: Number,
    unit_cost: Number,
    damage_type: DamageType | str,
) -> DamageRecord:
    """
    Validate the damage type and price the event.

    Raises:
        InvalidDamageTypeError, NegativeQuantityError, NegativeCostError.
    """
    kind = _parse_damage_type(damage_type)
    total = damage_cost(quantity, unit_cost)
    return DamageRecord(
        product_id=product_id,
        quantity=require_non_negative(quantity, "quantity", NegativeQuantityError),
        unit_cost=require_non_negative(unit_cost, "unit_cost", NegativeCostError),
        damage_type=kind,
        total_cost=total,
    )


def total_write_off(records: Iterable[DamageRecord]) -> Decimal:
    """Rounded sum of total_cost across damage records."""
    return round_money(sum((record.total_cost for record in records), ZERO))
