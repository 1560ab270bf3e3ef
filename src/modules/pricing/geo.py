"""Geography helpers for delivery pricing (Singapore postal codes)."""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple

from modules.pricing.dtos import DeliveryZone
from modules.pricing.exceptions import InvalidPostalCode

EARTH_RADIUS_KM = 6371
AVERAGE_SPEED_KMH = Decimal("30")
HANDOVER_BUFFER_MINUTES = Decimal("15")
DELAY_FACTOR = Decimal("1.5")
ADJACENT_SECTOR_SPAN = 5

_POSTAL_CODE = re.compile(r"^\d{6}$")
_ONE_DECIMAL = Decimal("0.1")


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> Decimal:
    """Great-circle distance in km, rounded to one decimal place."""
    d_lat = math.radians(float(lat2) - float(lat1))
    d_lon = math.radians(float(lon2) - float(lon1))
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(float(lat1)))
        * math.cos(math.radians(float(lat2)))
        * math.sin(d_lon / 2) ** 2
    )
    distance = EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return Decimal(repr(distance)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)


def is_within_radius(
    origin: Tuple[float, float],
    destination: Tuple[float, float],
    radius_km: Decimal,
) -> bool:
    return haversine_km(*origin, *destination) <= Decimal(str(radius_km))


def normalise_postal_code(postal_code: str) -> str:
    value = (postal_code or "").strip()
    if not _POSTAL_CODE.match(value):
        raise InvalidPostalCode(attr="postal_code")
    return value


def postal_sector(postal_code: str) -> int:
    """The first two digits of a postal code identify its sector."""
    return int(normalise_postal_code(postal_code)[:2])


def is_special_area(postal_code: str, special_prefixes: Iterable[str]) -> bool:
    code = normalise_postal_code(postal_code)
    return any(prefix and code.startswith(prefix.strip()) for prefix in special_prefixes)


def resolve_zone(
    merchant_postal_code: Optional[str],
    delivery_postal_code: str,
    special_prefixes: Iterable[str] = (),
) -> DeliveryZone:
    """Bucket a delivery by postal-sector distance from the merchant.

    Special areas win over the sector heuristic.  Without a merchant postal
    code the delivery counts as cross-zone.
    """
    if is_special_area(delivery_postal_code, special_prefixes):
        return DeliveryZone.SPECIAL
    if not merchant_postal_code:
        return DeliveryZone.CROSS
    difference = abs(postal_sector(merchant_postal_code) - postal_sector(delivery_postal_code))
    if difference == 0:
        return DeliveryZone.SAME
    if difference <= ADJACENT_SECTOR_SPAN:
        return DeliveryZone.ADJACENT
    return DeliveryZone.CROSS


def estimate_delivery_minutes(
    distance_km: Decimal, preparation_minutes: int = 30
) -> Tuple[int, int]:
    """(min, max) minutes from order to door at 30 km/h plus a handover buffer."""
    travel = Decimal(str(distance_km)) / AVERAGE_SPEED_KMH * 60
    lower = Decimal(preparation_minutes) + travel + HANDOVER_BUFFER_MINUTES
    upper = lower * DELAY_FACTOR
    return (
        int(lower.quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
        int(upper.quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
    )
