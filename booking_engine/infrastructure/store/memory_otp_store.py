from __future__ import annotations

import threading

from booking_engine.application.ports.otp_store import OtpStorePort
from booking_engine.domain.entities.otp import OtpKind, OtpRecord


class MemoryOtpStore(OtpStorePort):
    def __init__(self) -> None:
        self._records: dict[tuple[str, OtpKind], dict[int, OtpRecord]] = {}
        self._lock = threading.Lock()

    def history(self, booking_id: str, kind: OtpKind) -> list[OtpRecord]:
        with self._lock:
            by_generation = self._records.get((booking_id, kind), {})
            return [by_generation[g] for g in sorted(by_generation)]

    def latest(self, booking_id: str, kind: OtpKind) -> OtpRecord | None:
        records = self.history(booking_id, kind)
        return records[-1] if records else None

    def put(self, record: OtpRecord) -> None:
        with self._lock:
            self._records.setdefault((record.booking_id, record.kind), {})[record.generation] = record
