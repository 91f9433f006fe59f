from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator

from booking_engine.application.exceptions import OtpError, OtpFailure, ValidationError
from booking_engine.application.ports.otp_delivery import OtpDeliveryPort
from booking_engine.application.ports.otp_store import OtpStorePort
from booking_engine.core.config import settings
from booking_engine.domain.entities.otp import OtpKind, OtpRecord, OtpTicket


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OtpGate:
    """
    Issues and redeems short numeric codes bound to (booking_id, kind).

    Each issue bumps the generation for its key and supersedes earlier codes.
    Codes are stored only as digests and leave the gate solely through the
    delivery port.
    """

    def __init__(
        self,
        store: OtpStorePort,
        delivery: OtpDeliveryPort,
        expiry_minutes: int | None = None,
        max_attempts: int | None = None,
        code_length: int | None = None,
        clock: Callable[[], datetime] | None = None,
        code_factory: Callable[[int], str] | None = None,
    ) -> None:
        self._store = store
        self._delivery = delivery
        self._expiry = timedelta(minutes=expiry_minutes if expiry_minutes is not None else settings.OTP_EXPIRY_MINUTES)
        self._max_attempts = max_attempts if max_attempts is not None else settings.OTP_MAX_ATTEMPTS
        self._code_length = code_length or settings.OTP_LENGTH
        self._clock = clock or _utcnow
        self._code_factory = code_factory or _random_code
        self._locks: dict[tuple[str, OtpKind], _KeyLock] = {}
        self._lock_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def issue(self, booking_id: str, kind: OtpKind) -> OtpTicket:
        with self._locked(booking_id, kind):
            previous = self._store.latest(booking_id, kind)
            generation = (previous.generation if previous else 0) + 1
            code = self._code_factory(self._code_length)
            now = self._clock()
            record = OtpRecord(
                booking_id=booking_id,
                kind=kind,
                generation=generation,
                code_digest=_digest(booking_id, kind, generation, code),
                issued_at=now,
                expires_at=now + self._expiry,
            )
            self._store.put(record)
            self._delivery.deliver(booking_id, kind, code)

        self._logger.info(
            "OTP issued",
            extra={"booking_id": booking_id, "kind": kind.value, "generation": generation},
        )
        return OtpTicket(booking_id=booking_id, kind=kind, generation=generation, expires_at=record.expires_at)

    @contextmanager
    def redeem(self, booking_id: str, kind: OtpKind, code: str) -> Iterator[OtpRecord]:
        """
        Check `code` and hold the key while the caller applies its transition.

        The code is consumed only if the body completes; if it raises, the code
        stays redeemable. A second redeem of a consumed code fails with
        OtpFailure.ALREADY_USED.
        """
        normalized = self._normalize(code)
        with self._locked(booking_id, kind):
            record = self._check(booking_id, kind, normalized)
            yield record
            self._store.put(replace(record, used_at=self._clock()))
        self._logger.info(
            "OTP redeemed",
            extra={"booking_id": booking_id, "kind": kind.value, "generation": record.generation},
        )

    def reject_replay(self, booking_id: str, kind: OtpKind, code: str) -> None:
        """Raise ALREADY_USED if `code` is a consumed code for this key; otherwise return quietly."""
        try:
            normalized = self._normalize(code)
        except ValidationError:
            return
        for record in self._store.history(booking_id, kind):
            if record.is_used and _matches(record, normalized):
                raise OtpError(OtpFailure.ALREADY_USED, "OTP already used")

    def revoke(self, booking_id: str, kind: OtpKind) -> None:
        with self._locked(booking_id, kind):
            latest = self._store.latest(booking_id, kind)
            if latest is not None and not latest.is_used and not latest.revoked:
                self._store.put(replace(latest, revoked=True))
                self._logger.info(
                    "OTP revoked",
                    extra={"booking_id": booking_id, "kind": kind.value, "generation": latest.generation},
                )

    def _check(self, booking_id: str, kind: OtpKind, code: str) -> OtpRecord:
        records = self._store.history(booking_id, kind)
        if not records:
            raise OtpError(OtpFailure.NOT_ISSUED, "No OTP has been requested for this booking")

        latest = records[-1]
        now = self._clock()

        if _matches(latest, code):
            if latest.is_used:
                raise OtpError(OtpFailure.ALREADY_USED, "OTP already used")
            if latest.attempts >= self._max_attempts:
                raise OtpError(OtpFailure.TOO_MANY_ATTEMPTS, "Maximum OTP attempts exceeded. Please request a new OTP.")
            if latest.is_expired(now):
                raise OtpError(OtpFailure.EXPIRED, "OTP has expired")
            return latest

        if any(_matches(older, code) for older in records[:-1]):
            raise OtpError(OtpFailure.SUPERSEDED, "A newer OTP has been sent; use the latest code")
        if latest.is_used:
            raise OtpError(OtpFailure.INVALID, "Invalid OTP")
        if latest.attempts >= self._max_attempts:
            raise OtpError(OtpFailure.TOO_MANY_ATTEMPTS, "Maximum OTP attempts exceeded. Please request a new OTP.")
        if latest.is_expired(now):
            raise OtpError(OtpFailure.EXPIRED, "OTP has expired")

        attempts = latest.attempts + 1
        self._store.put(replace(latest, attempts=attempts))
        remaining = self._max_attempts - attempts
        self._logger.info(
            "OTP mismatch",
            extra={"booking_id": booking_id, "kind": kind.value, "generation": latest.generation, "reason": "invalid"},
        )
        raise OtpError(
            OtpFailure.INVALID,
            f"Invalid OTP. {remaining} attempt(s) remaining.",
            remaining_attempts=remaining,
        )

    def _normalize(self, code: str) -> str:
        if code is None or not str(code).strip():
            raise ValidationError("OTP is required")
        normalized = str(code)
        if len(normalized) != self._code_length or not (normalized.isascii() and normalized.isdigit()):
            raise ValidationError(f"OTP must be a {self._code_length}-digit code")
        return normalized

    @contextmanager
    def _locked(self, booking_id: str, kind: OtpKind) -> Iterator[None]:
        """Serialise work on one key; the entry is dropped once nobody holds or waits for it."""
        key = (booking_id, kind)
        with self._lock_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._lock_lock:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]


class _KeyLock:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


def _random_code(length: int) -> str:
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def _digest(booking_id: str, kind: OtpKind, generation: int, code: str) -> str:
    payload = f"{booking_id}:{kind.value}:{generation}:{code}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _matches(record: OtpRecord, code: str) -> bool:
    expected = _digest(record.booking_id, record.kind, record.generation, code)
    return hmac.compare_digest(expected, record.code_digest)
