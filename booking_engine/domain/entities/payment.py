from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class GatewayOutcomeKind(str, Enum):
    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class GatewayOrder:
    order_id: str
    amount_minor: int
    currency: str


@dataclass(frozen=True)
class GatewayOutcome:
    """Result handed back by the gateway's checkout UI."""

    kind: GatewayOutcomeKind
    order_id: str | None = None
    payment_id: str | None = None
    signature: str | None = None
    reason: str | None = None

    @classmethod
    def success(cls, order_id: str, payment_id: str, signature: str) -> "GatewayOutcome":
        return cls(GatewayOutcomeKind.SUCCESS, order_id=order_id, payment_id=payment_id, signature=signature)

    @classmethod
    def cancelled(cls, reason: str = "cancelled by user") -> "GatewayOutcome":
        return cls(GatewayOutcomeKind.CANCELLED, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "GatewayOutcome":
        return cls(GatewayOutcomeKind.FAILED, reason=reason)


class CheckoutAttemptState(str, Enum):
    IDLE = "idle"
    ORDER_CREATED = "order_created"
    AWAITING_GATEWAY_CONFIRMATION = "awaiting_gateway_confirmation"
    VERIFIED = "verified"
    FAILED = "failed"
    CANCELLED = "cancelled"
    PLACED = "placed"  # direct placement: cash or nothing left to pay

    @property
    def is_terminal(self) -> bool:
        return self in (
            CheckoutAttemptState.VERIFIED,
            CheckoutAttemptState.FAILED,
            CheckoutAttemptState.CANCELLED,
            CheckoutAttemptState.PLACED,
        )


@dataclass
class CheckoutAttempt:
    token: str
    session_id: str
    amount: float
    state: CheckoutAttemptState = CheckoutAttemptState.IDLE
    order: GatewayOrder | None = None
    payment_id: str | None = None
    failure_reason: str | None = None
    booking_ids: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None
