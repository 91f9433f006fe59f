from __future__ import annotations

from typing import Any, Iterable, Mapping

from booking_engine.application.exceptions import ValidationError
from booking_engine.application.utils.money import round_half_up
from booking_engine.core.config import settings
from booking_engine.domain.entities.cart import BookingType, CartLine, GeoPoint


def half_day_unit_price(base_price: float, factor: float | None = None) -> int:
    return round_half_up(base_price * (settings.HALF_DAY_PRICE_FACTOR if factor is None else factor))


def normalize_cart(items: Iterable[Mapping[str, Any]]) -> list[CartLine]:
    lines = [normalize_cart_item(item) for item in items]
    if not lines:
        raise ValidationError("Cart is empty")
    return lines


def normalize_cart_item(item: Mapping[str, Any]) -> CartLine:
    """
    Turn either cart item shape into a CartLine.

    Catalogue items carry a nested `worker` document ({_id, location.coordinates=[lng, lat]});
    direct bookings carry `workerId` and optionally `workerLocation` ({latitude, longitude}).
    """
    booking_type = _parse_booking_type(item.get("bookingType") or item.get("booking_type"))
    days = _parse_days(item.get("days"), booking_type)
    price = _parse_price(item, booking_type)

    worker = item.get("worker") if isinstance(item.get("worker"), Mapping) else None
    worker_id = (worker or {}).get("_id") or item.get("workerId") or item.get("worker_id")
    if worker_id is None and isinstance(item.get("worker"), str):
        worker_id = item["worker"]

    location = _worker_location(worker, item.get("workerLocation") or item.get("worker_location"))

    return CartLine(
        price=price,
        days=days,
        booking_type=booking_type,
        category=str(item.get("category") or ""),
        service=str(item.get("service") or ""),
        service_id=_optional_str(item.get("serviceId") or item.get("service_id")),
        worker_id=_optional_str(worker_id),
        worker_location=location,
    )


def _parse_booking_type(raw: Any) -> BookingType:
    if raw is None:
        return BookingType.FULL_DAY
    if isinstance(raw, BookingType):
        return raw
    try:
        return BookingType(str(raw).strip().lower())
    except ValueError:
        raise ValidationError(f"Unsupported booking type: {raw}") from None


def _parse_days(raw: Any, booking_type: BookingType) -> int:
    if raw is None:
        days = 1
    else:
        try:
            days = int(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid number of days: {raw}") from None
    if days < 1:
        raise ValidationError("Days must be at least 1")
    if booking_type is not BookingType.MULTIPLE_DAYS and days != 1:
        raise ValidationError(f"{booking_type.value} bookings cover exactly one day")
    return days


def _parse_price(item: Mapping[str, Any], booking_type: BookingType) -> float:
    raw = item.get("price")
    if raw is None and item.get("basePrice") is not None:
        base = _as_number(item["basePrice"], "basePrice")
        return float(half_day_unit_price(base)) if booking_type is BookingType.HALF_DAY else base
    if raw is None:
        raise ValidationError("Price is required for all items.")
    price = _as_number(raw, "price")
    if price < 0:
        raise ValidationError("Price cannot be negative")
    return price


def _worker_location(worker: Mapping[str, Any] | None, direct: Any) -> GeoPoint | None:
    if worker:
        coordinates = (worker.get("location") or {}).get("coordinates")
        if isinstance(coordinates, (list, tuple)) and len(coordinates) == 2:
            # GeoJSON order: [longitude, latitude]
            return GeoPoint(latitude=float(coordinates[1]), longitude=float(coordinates[0]))
    if isinstance(direct, GeoPoint):
        return direct
    if isinstance(direct, Mapping) and direct.get("latitude") is not None and direct.get("longitude") is not None:
        return GeoPoint(latitude=float(direct["latitude"]), longitude=float(direct["longitude"]))
    return None


def _as_number(raw: Any, field: str) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {raw}") from None


def _optional_str(value: Any) -> str | None:
    return None if value in (None, "") else str(value)
