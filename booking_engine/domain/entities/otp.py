from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class OtpKind(str, Enum):
    START = "start"
    COMPLETION = "completion"


@dataclass(frozen=True)
class OtpRecord:
    booking_id: str
    kind: OtpKind
    generation: int
    code_digest: str = ""
    issued_at: datetime | None = None
    expires_at: datetime | None = None
    attempts: int = 0
    used_at: datetime | None = None
    revoked: bool = False

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def is_expired(self, now: datetime) -> bool:
        if self.revoked:
            return True
        return self.expires_at is not None and now >= self.expires_at


@dataclass(frozen=True)
class OtpTicket:
    """What the requesting party gets back: never the code itself."""

    booking_id: str
    kind: OtpKind
    generation: int
    expires_at: datetime
