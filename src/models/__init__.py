from .notification import Notification, PaymentStatus
from .verification import VerificationAttempt, VerificationOutcome

__all__ = [
    "Notification", "PaymentStatus",
    "VerificationAttempt", "VerificationOutcome",
]
