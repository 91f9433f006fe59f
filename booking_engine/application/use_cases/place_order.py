from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from booking_engine.application.exceptions import GatewayError, StateConflictError, ValidationError
from booking_engine.application.ports.checkout_presenter import CheckoutPresenterPort
from booking_engine.application.ports.payment_gateway import PaymentGatewayPort
from booking_engine.application.use_cases.apply_coupon import ensure_coupon_fresh
from booking_engine.application.use_cases.booking_lifecycle import BookingLifecycle
from booking_engine.application.utils.allocation import allocate_bill
from booking_engine.application.utils.money import to_minor_units
from booking_engine.core.config import settings
from booking_engine.domain.entities.bill import Bill
from booking_engine.domain.entities.booking import Booking, BookingDraft, PaymentMethod, PaymentStatus
from booking_engine.domain.entities.cart import CartLine
from booking_engine.domain.entities.coupon import AppliedCoupon
from booking_engine.domain.entities.payment import (
    CheckoutAttempt,
    CheckoutAttemptState,
    GatewayOrder,
    GatewayOutcome,
    GatewayOutcomeKind,
)

REQUIRED_ADDRESS_FIELDS = ("street", "city", "state", "zipCode")
MAX_TRACKED_SESSIONS = 1024


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CheckoutRequest:
    session_id: str
    cart_lines: list[CartLine]
    bill: Bill
    payment_method: PaymentMethod
    address: dict[str, str]
    phone: str
    coupon: AppliedCoupon | None = None


@dataclass(frozen=True)
class OrderPlacement:
    attempt_token: str
    state: CheckoutAttemptState
    bookings: list[Booking] = field(default_factory=list)
    payment_id: str | None = None


class PlaceOrderUseCase:
    """
    Commits a computed bill: cash-on-completion and fully covered orders go
    straight to booking creation; online orders go through gateway order,
    checkout UI, server-side verification, and only then booking creation.

    A failed, cancelled or unverified payment never leaves a booking behind.
    One attempt per checkout session may be in flight at a time.
    """

    def __init__(
        self,
        gateway: PaymentGatewayPort,
        presenter: CheckoutPresenterPort,
        lifecycle: BookingLifecycle,
        currency: str | None = None,
        confirmation_timeout_seconds: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._gateway = gateway
        self._presenter = presenter
        self._lifecycle = lifecycle
        self._currency = currency or settings.CURRENCY
        self._timeout = (
            confirmation_timeout_seconds
            if confirmation_timeout_seconds is not None
            else settings.GATEWAY_CONFIRMATION_TIMEOUT_SECONDS
        )
        self._clock = clock or _utcnow
        self._attempts: dict[str, CheckoutAttempt] = {}
        # Latest attempt token per session, oldest session first; only these attempts are kept.
        self._latest: OrderedDict[str, str] = OrderedDict()
        self._in_flight: dict[str, str] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def execute(self, request: CheckoutRequest) -> OrderPlacement:
        self._validate(request)
        attempt = self._begin(request)
        try:
            if request.bill.final_payable == 0:
                bookings = self._place(request, attempt, PaymentStatus.PAID, PaymentMethod.WALLET, None)
                attempt.state = CheckoutAttemptState.PLACED
            elif request.payment_method is PaymentMethod.CASH:
                bookings = self._place(request, attempt, PaymentStatus.PENDING, PaymentMethod.CASH, None)
                attempt.state = CheckoutAttemptState.PLACED
            else:
                bookings = self._pay_online(request, attempt)
            return OrderPlacement(
                attempt_token=attempt.token,
                state=attempt.state,
                bookings=bookings,
                payment_id=attempt.payment_id,
            )
        finally:
            self._finish(attempt)

    def get_attempt(self, token: str) -> CheckoutAttempt | None:
        """The latest attempt of a session; earlier attempts of that session are forgotten."""
        with self._lock:
            return self._attempts.get(token)

    def in_flight(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._in_flight

    def _pay_online(self, request: CheckoutRequest, attempt: CheckoutAttempt) -> list[Booking]:
        log_extra = {"session_id": request.session_id, "attempt_token": attempt.token}
        try:
            order = self._gateway.create_order(to_minor_units(request.bill.final_payable), self._currency)
        except GatewayError as e:
            self._fail(attempt, CheckoutAttemptState.FAILED, str(e))
            raise

        attempt.order = order
        attempt.state = CheckoutAttemptState.ORDER_CREATED
        self._logger.info("Gateway order created", extra={**log_extra, "order_id": order.order_id})

        attempt.state = CheckoutAttemptState.AWAITING_GATEWAY_CONFIRMATION
        outcome = self._await_outcome(order)

        if outcome.kind is GatewayOutcomeKind.CANCELLED:
            self._fail(attempt, CheckoutAttemptState.CANCELLED, outcome.reason or "cancelled")
            raise GatewayError("Payment cancelled", outcome="cancelled")
        if outcome.kind is GatewayOutcomeKind.FAILED:
            self._fail(attempt, CheckoutAttemptState.FAILED, outcome.reason or "failed")
            raise GatewayError(f"Payment failed: {outcome.reason or 'unknown error'}")
        if outcome.order_id != order.order_id or not outcome.payment_id or not outcome.signature:
            self._fail(attempt, CheckoutAttemptState.FAILED, "incomplete gateway response")
            raise GatewayError("Gateway response does not match the order")

        try:
            verified = self._gateway.verify(order.order_id, outcome.payment_id, outcome.signature)
        except GatewayError as e:
            self._fail(attempt, CheckoutAttemptState.FAILED, str(e))
            raise
        if not verified:
            self._fail(attempt, CheckoutAttemptState.FAILED, "invalid signature")
            raise GatewayError("Payment verification failed")

        attempt.state = CheckoutAttemptState.VERIFIED
        attempt.payment_id = outcome.payment_id
        self._logger.info("Payment verified", extra={**log_extra, "order_id": order.order_id})

        try:
            return self._place(request, attempt, PaymentStatus.PAID, PaymentMethod.ONLINE, outcome.payment_id)
        except Exception as e:
            # Money is captured but no booking exists; needs manual reconciliation.
            self._logger.error(
                "Booking placement failed after verified payment",
                extra={**log_extra, "order_id": order.order_id, "error": str(e)},
            )
            raise

    def _await_outcome(self, order: GatewayOrder) -> GatewayOutcome:
        try:
            return self._presenter.present(order, self._timeout)
        except TimeoutError:
            return GatewayOutcome.failed("timed out waiting for gateway confirmation")

    def _place(
        self,
        request: CheckoutRequest,
        attempt: CheckoutAttempt,
        payment_status: PaymentStatus,
        payment_method: PaymentMethod,
        payment_id: str | None,
    ) -> list[Booking]:
        bill = request.bill
        drafts: list[BookingDraft] = []
        for share in allocate_bill(request.cart_lines, bill):
            line = share.line
            drafts.append(BookingDraft(
                category=line.category,
                service=line.service,
                price=line.total,
                final_price=share.final_price,
                days=line.days,
                booking_type=line.booking_type,
                service_id=line.service_id,
                worker_id=line.worker_id,
                platform_fee=share.platform_fee,
                travel_charge=share.travel_charge,
                distance_km=bill.distance_km,
                coupon_code=request.coupon.code if request.coupon else None,
                coupon_discount=share.coupon_discount,
                coins_used=share.coins_used,
                coin_discount=share.coin_discount,
                wallet_amount_used=share.wallet_amount_used,
                payment_status=payment_status,
                payment_method=payment_method,
                payment_id=payment_id,
                address=dict(request.address),
                phone=request.phone,
                checkout_session_id=request.session_id,
            ))
        bookings = self._lifecycle.create_many(drafts)
        attempt.booking_ids.extend(booking.id for booking in bookings)
        return bookings

    def _validate(self, request: CheckoutRequest) -> None:
        missing = [name for name in REQUIRED_ADDRESS_FIELDS if not (request.address or {}).get(name)]
        if missing or not (request.phone or "").strip():
            raise ValidationError("Please provide complete address and phone number")
        if not request.cart_lines:
            raise ValidationError("Cart is empty")

        subtotal = sum(line.total for line in request.cart_lines)
        if subtotal != request.bill.subtotal:
            raise StateConflictError("Bill does not match the cart; recompute before placing the order")
        ensure_coupon_fresh(request.coupon, subtotal)
        expected_discount = request.coupon.discount_amount if request.coupon else 0.0
        if request.bill.coupon_discount != expected_discount:
            raise StateConflictError("Bill was computed with a different coupon; recompute before placing the order")

    def _begin(self, request: CheckoutRequest) -> CheckoutAttempt:
        with self._lock:
            if request.session_id in self._in_flight:
                raise StateConflictError("An order for this checkout is already being placed")
            attempt = CheckoutAttempt(
                token=uuid.uuid4().hex,
                session_id=request.session_id,
                amount=request.bill.final_payable,
                started_at=self._clock(),
            )
            self._in_flight[request.session_id] = attempt.token
            self._track(attempt)
        self._logger.info(
            "Checkout attempt started",
            extra={"session_id": request.session_id, "attempt_token": attempt.token},
        )
        return attempt

    def _track(self, attempt: CheckoutAttempt) -> None:
        previous = self._latest.pop(attempt.session_id, None)
        if previous is not None:
            self._attempts.pop(previous, None)
        self._latest[attempt.session_id] = attempt.token
        self._attempts[attempt.token] = attempt
        while len(self._latest) > MAX_TRACKED_SESSIONS:
            _, stale = self._latest.popitem(last=False)
            self._attempts.pop(stale, None)

    def _finish(self, attempt: CheckoutAttempt) -> None:
        with self._lock:
            if self._in_flight.get(attempt.session_id) == attempt.token:
                del self._in_flight[attempt.session_id]
        if not attempt.state.is_terminal:
            attempt.state = CheckoutAttemptState.FAILED
        attempt.finished_at = self._clock()

    def _fail(self, attempt: CheckoutAttempt, state: CheckoutAttemptState, reason: str) -> None:
        attempt.state = state
        attempt.failure_reason = reason
        self._logger.warning(
            "Checkout attempt ended without booking",
            extra={"session_id": attempt.session_id, "attempt_token": attempt.token, "reason": reason},
        )
