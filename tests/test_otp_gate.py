import logging

import pytest

from booking_engine.application.exceptions import OtpError, OtpFailure, ValidationError
from booking_engine.application.use_cases.otp_gate import OtpGate
from booking_engine.domain.entities.otp import OtpKind
from booking_engine.infrastructure.store.memory_otp_store import MemoryOtpStore
from booking_engine.core.logging import CONTEXT_KEYS

from conftest import FixedCodes


def _gate(clock, delivery, *codes, **kwargs):
    return OtpGate(store=MemoryOtpStore(), delivery=delivery, clock=clock, code_factory=FixedCodes(*codes), **kwargs)


def _verify(gate, booking_id, kind, code):
    with gate.redeem(booking_id, kind, code):
        pass


def test_issue_delivers_code_and_returns_ticket_without_it(clock, delivery):
    gate = _gate(clock, delivery, "4821")
    ticket = gate.issue("b1", OtpKind.START)
    assert ticket.generation == 1
    assert not hasattr(ticket, "code")
    assert delivery.last_code("b1", OtpKind.START) == "4821"


def test_random_codes_are_four_digits(clock, delivery):
    gate = OtpGate(store=MemoryOtpStore(), delivery=delivery, clock=clock)
    for _ in range(20):
        gate.issue("b1", OtpKind.START)
        code = delivery.last_code("b1", OtpKind.START)
        assert len(code) == 4 and code.isdigit() and code[0] != "0"


def test_code_is_single_use(clock, delivery):
    gate = _gate(clock, delivery, "4821")
    gate.issue("b1", OtpKind.START)
    _verify(gate, "b1", OtpKind.START, "4821")
    with pytest.raises(OtpError) as exc:
        _verify(gate, "b1", OtpKind.START, "4821")
    assert exc.value.reason is OtpFailure.ALREADY_USED


def test_expired_code_rejected(clock, delivery):
    gate = _gate(clock, delivery, "4821", expiry_minutes=15)
    gate.issue("b1", OtpKind.START)
    clock.advance(minutes=15)
    with pytest.raises(OtpError) as exc:
        _verify(gate, "b1", OtpKind.START, "4821")
    assert exc.value.reason is OtpFailure.EXPIRED
    assert exc.value.should_resend


def test_reissue_supersedes_previous_code(clock, delivery):
    gate = _gate(clock, delivery, "1111", "2222")
    gate.issue("b1", OtpKind.START)
    ticket = gate.issue("b1", OtpKind.START)
    assert ticket.generation == 2
    with pytest.raises(OtpError) as exc:
        _verify(gate, "b1", OtpKind.START, "1111")
    assert exc.value.reason is OtpFailure.SUPERSEDED
    _verify(gate, "b1", OtpKind.START, "2222")


def test_codes_bound_to_booking_and_kind(clock, delivery):
    gate = _gate(clock, delivery, "4821", "5555")
    gate.issue("b1", OtpKind.START)
    gate.issue("b2", OtpKind.START)
    with pytest.raises(OtpError) as exc:
        _verify(gate, "b2", OtpKind.START, "4821")
    assert exc.value.reason is OtpFailure.INVALID
    with pytest.raises(OtpError) as exc:
        _verify(gate, "b1", OtpKind.COMPLETION, "4821")
    assert exc.value.reason is OtpFailure.NOT_ISSUED


def test_wrong_attempts_are_limited(clock, delivery):
    gate = _gate(clock, delivery, "4821", max_attempts=5)
    gate.issue("b1", OtpKind.START)
    for remaining in (4, 3, 2, 1, 0):
        with pytest.raises(OtpError) as exc:
            _verify(gate, "b1", OtpKind.START, "0000")
        assert exc.value.remaining_attempts == remaining
    with pytest.raises(OtpError) as exc:
        _verify(gate, "b1", OtpKind.START, "4821")
    assert exc.value.reason is OtpFailure.TOO_MANY_ATTEMPTS


def test_code_stays_redeemable_when_transition_fails(clock, delivery):
    gate = _gate(clock, delivery, "4821")
    gate.issue("b1", OtpKind.START)
    with pytest.raises(RuntimeError):
        with gate.redeem("b1", OtpKind.START, "4821"):
            raise RuntimeError("write failed")
    _verify(gate, "b1", OtpKind.START, "4821")


def test_revoked_code_rejected(clock, delivery):
    gate = _gate(clock, delivery, "4821")
    gate.issue("b1", OtpKind.START)
    gate.revoke("b1", OtpKind.START)
    with pytest.raises(OtpError) as exc:
        _verify(gate, "b1", OtpKind.START, "4821")
    assert exc.value.reason is OtpFailure.EXPIRED


def test_malformed_code_is_validation_error(clock, delivery):
    gate = _gate(clock, delivery, "4821")
    gate.issue("b1", OtpKind.START)
    with pytest.raises(ValidationError):
        _verify(gate, "b1", OtpKind.START, "48a1")
    with pytest.raises(ValidationError):
        _verify(gate, "b1", OtpKind.START, "")


def test_padded_code_is_not_an_exact_match(clock, delivery):
    gate = _gate(clock, delivery, "4821")
    gate.issue("b1", OtpKind.START)
    for padded in (" 4821", "4821 ", " 4821 "):
        with pytest.raises(ValidationError):
            _verify(gate, "b1", OtpKind.START, padded)
    _verify(gate, "b1", OtpKind.START, "4821")


def test_key_locks_released_after_use(clock, delivery):
    gate = _gate(clock, delivery, "4821", "1111")
    gate.issue("b1", OtpKind.START)
    gate.issue("b2", OtpKind.COMPLETION)
    _verify(gate, "b1", OtpKind.START, "4821")
    gate.revoke("b2", OtpKind.COMPLETION)
    with pytest.raises(OtpError):
        _verify(gate, "b2", OtpKind.COMPLETION, "1111")
    assert gate._locks == {}


def test_code_never_logged(clock, delivery, caplog):
    gate = _gate(clock, delivery, "4821")
    with caplog.at_level(logging.DEBUG):
        gate.issue("b1", OtpKind.START)
        _verify(gate, "b1", OtpKind.START, "4821")
    assert caplog.records
    for record in caplog.records:
        assert "4821" not in record.getMessage()
        for key in CONTEXT_KEYS:
            assert "4821" not in str(getattr(record, key, ""))
