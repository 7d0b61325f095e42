from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class VerificationOutcome(Enum):
    VERIFIED = "VERIFIED"
    INVALID = "INVALID"
    ERROR = "ERROR"


@dataclass
class VerificationAttempt:
    attempt_id: str
    transaction_id: str | None
    url: str
    outcome: VerificationOutcome
    status_code: int | None
    timestamp: datetime
    response_time_ms: float
    error: str | None = None
