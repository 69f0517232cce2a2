"""Reservation price computation.

All amounts are ``Decimal`` and rounded half-up to cents.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Tuple

from festival_booking.utils.exceptions import InvalidValue

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    table_count: int
    area: Decimal
    price_per_table: Decimal
    price_per_area: Decimal


@dataclass(frozen=True)
class PriceBreakdown:
    total_price: Decimal
    offered_tables_discount: Decimal
    monetary_discount: Decimal
    final_price: Decimal


def compute_prices(
    lines: Iterable[PricedLine],
    tables_offered: int = 0,
    monetary_discount: Decimal = ZERO,
) -> PriceBreakdown:
    """Compute the total and final price of a reservation.

    Offered tables are valued at the average table price of the reservation
    and can never exceed the number of tables booked. The final price is
    clamped to ``[0, total]``.
    """
    if tables_offered is None or tables_offered < 0:
        raise InvalidValue("tables_offered must be zero or positive")
    monetary_discount = Decimal(monetary_discount or 0)
    if monetary_discount < 0:
        raise InvalidValue("monetary_discount must be zero or positive")

    lines = list(lines)
    table_total = sum(line.table_count for line in lines)
    tables_price = sum((line.table_count * Decimal(line.price_per_table) for line in lines), ZERO)
    area_price = sum((Decimal(line.area) * Decimal(line.price_per_area) for line in lines), ZERO)
    total = to_money(tables_price + area_price)

    offered_discount = ZERO
    if table_total and tables_offered:
        average_table_price = tables_price / table_total
        offered_discount = to_money(min(tables_offered, table_total) * average_table_price)

    final = max(ZERO, total - offered_discount - to_money(monetary_discount))
    return PriceBreakdown(
        total_price=total,
        offered_tables_discount=offered_discount,
        monetary_discount=to_money(monetary_discount),
        final_price=min(final, total),
    )


def merge_lines(lines: Iterable[Tuple[str, int, Decimal]]) -> dict[str, Tuple[int, Decimal]]:
    """Merge requested lines per zone, summing table counts and areas."""
    merged: dict[str, Tuple[int, Decimal]] = {}
    for zone_id, table_count, area in lines:
        if table_count is None or table_count < 1:
            raise InvalidValue(f"table_count must be at least 1 for zone {zone_id}")
        area = Decimal(area or 0)
        if area < 0:
            raise InvalidValue(f"area must be zero or positive for zone {zone_id}")
        tables, total_area = merged.get(zone_id, (0, ZERO))
        merged[zone_id] = (tables + table_count, total_area + area)
    return merged
