import pytest

from booking_engine.application.exceptions import ValidationError
from booking_engine.application.utils.allocation import allocate_bill, split_evenly, split_proportionally
from booking_engine.application.utils.cart import half_day_unit_price, normalize_cart, normalize_cart_item
from booking_engine.domain.entities.bill import Bill
from booking_engine.domain.entities.cart import BookingType, CartLine, GeoPoint


def test_catalogue_item_with_nested_worker_document():
    line = normalize_cart_item(
        {
            "category": "Cleaning",
            "service": "Deep clean",
            "price": 800,
            "worker": {"_id": "w42", "location": {"coordinates": [77.60, 12.90]}},
        }
    )
    assert line.worker_id == "w42"
    assert line.worker_location == GeoPoint(latitude=12.90, longitude=77.60)
    assert line.booking_type is BookingType.FULL_DAY
    assert line.total == 800


def test_direct_booking_item_shape():
    line = normalize_cart_item(
        {
            "category": "Painting",
            "service": "Painter",
            "price": 1000,
            "days": 3,
            "bookingType": "multiple-days",
            "workerId": "w7",
            "workerLocation": {"latitude": 12.9, "longitude": 77.6},
        }
    )
    assert line.worker_id == "w7"
    assert line.days == 3
    assert line.total == 3000
    assert line.worker_location == GeoPoint(12.9, 77.6)


def test_half_day_price_derived_from_base_price():
    assert half_day_unit_price(1000) == 600
    assert half_day_unit_price(999) == 599
    line = normalize_cart_item({"basePrice": 500, "bookingType": "half-day"})
    assert line.price == 300


@pytest.mark.parametrize(
    "item, message",
    [
        ({"service": "x"}, "Price is required"),
        ({"price": -1}, "negative"),
        ({"price": 100, "bookingType": "weekly"}, "Unsupported booking type"),
        ({"price": 100, "days": 0, "bookingType": "multiple-days"}, "at least 1"),
        ({"price": 100, "days": 2, "bookingType": "full-day"}, "exactly one day"),
    ],
)
def test_malformed_items_rejected(item, message):
    with pytest.raises(ValidationError, match=message):
        normalize_cart_item(item)


def test_empty_cart_rejected():
    with pytest.raises(ValidationError, match="Cart is empty"):
        normalize_cart([])


def test_split_proportionally_remainder_on_last():
    assert split_proportionally(100, [1, 1, 1]) == [33, 33, 34]
    assert split_proportionally(10, [0, 0]) == [0, 10]
    assert split_proportionally(0, [5, 5]) == [0, 0]


def test_split_evenly_remainder_on_last():
    assert split_evenly(25, 2) == [12, 13]
    assert split_evenly(25, 0) == []


def test_bulk_allocation_sums_to_bill_totals():
    """Each cart line becomes one booking; the shares add back up to the bill."""
    lines = [CartLine(price=300), CartLine(price=200, days=2), CartLine(price=150)]
    bill = Bill(
        subtotal=850,
        platform_fee=25,
        travel_charge=31,
        coupon_discount=85,
        coins_used=40,
        coin_discount=40,
        wallet_amount_used=100,
        final_payable=681,
    )
    shares = allocate_bill(lines, bill)

    assert len(shares) == 3
    assert sum(s.coupon_discount for s in shares) == 85
    assert sum(s.coins_used for s in shares) == 40
    assert sum(s.wallet_amount_used for s in shares) == 100
    assert sum(s.final_price for s in shares) == 681
    assert [s.platform_fee for s in shares] == [8, 8, 9]
    assert sum(s.travel_charge for s in shares) == 31


def test_allocation_caps_coupon_at_subtotal():
    bill = Bill(
        subtotal=100,
        platform_fee=0,
        travel_charge=0,
        coupon_discount=250,
        coins_used=0,
        coin_discount=0,
        wallet_amount_used=0,
        final_payable=0,
    )
    shares = allocate_bill([CartLine(price=60), CartLine(price=40)], bill)
    assert [s.coupon_discount for s in shares] == [60, 40]
