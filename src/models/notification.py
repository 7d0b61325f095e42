from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from dateutil import parser as date_parser
from dateutil.tz import tzoffset

from src.ipn.exceptions import InvalidFieldError, MissingFieldError
from src.ipn.parser import parse_form_body
from src.ipn.amounts import to_decimal, to_minor_units


class PaymentStatus(str, Enum):
    COMPLETED = "Completed"
    PENDING = "Pending"
    FAILED = "Failed"
    REVERSED = "Reversed"
    REFUNDED = "Refunded"
    DENIED = "Denied"
    CANCELED_REVERSAL = "Canceled_Reversal"
    EXPIRED = "Expired"
    VOIDED = "Voided"
    PROCESSED = "Processed"


# payment_date is sent in Pacific time, e.g. "09:04:22 Oct 05, 2026 PDT"
PROCESSOR_TZINFOS = {
    "PST": tzoffset("PST", -8 * 3600),
    "PDT": tzoffset("PDT", -7 * 3600),
}


@dataclass(frozen=True)
class Notification:
    """An Instant Payment Notification parsed from its raw POST body.

    ``raw`` holds the exact bytes received and is what gets sent back for
    verification. ``fields`` holds every decoded field, known or not. The
    typed attributes are projections of ``fields`` and are ``None`` when
    the processor did not send them.

    Example:
        notification = Notification.from_raw(request_body)
        if verifier.verify(notification) and notification.is_complete():
            ...
    """

    raw: bytes
    fields: Mapping[str, str] = field(repr=False, hash=False)
    status: str | None = None
    transaction_id: str | None = None
    type: str | None = None
    gross: str | None = None
    fee: str | None = None
    currency: str | None = None
    item_id: str | None = None
    invoice: str | None = None
    custom: str | None = None
    receiver_email: str | None = None
    payment_date: str | None = None
    test_ipn: str | None = None

    @classmethod
    def from_raw(cls, raw: bytes | str) -> "Notification":
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        fields = parse_form_body(raw)
        return cls(
            raw=raw,
            fields=MappingProxyType(fields),
            status=fields.get("payment_status"),
            transaction_id=fields.get("txn_id"),
            type=fields.get("txn_type"),
            gross=fields.get("mc_gross"),
            fee=fields.get("mc_fee"),
            currency=fields.get("mc_currency"),
            item_id=fields.get("item_number"),
            invoice=fields.get("invoice"),
            custom=fields.get("custom"),
            receiver_email=fields.get("receiver_email"),
            payment_date=fields.get("payment_date"),
            test_ipn=fields.get("test_ipn"),
        )

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.fields.get(name, default)

    @property
    def payment_status(self) -> PaymentStatus | None:
        """The status as a known enum member, or None for absent/unknown values."""
        try:
            return PaymentStatus(self.status)
        except ValueError:
            return None

    def is_complete(self) -> bool:
        return self.status == PaymentStatus.COMPLETED.value

    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING.value

    def is_test(self) -> bool:
        return self.test_ipn == "1"

    def received_at(self) -> datetime:
        """When the processor received the payment.

        The notification itself can arrive much later, e.g. when the
        merchant's server was down and the processor kept retrying.
        """
        if self.payment_date is None:
            raise MissingFieldError("payment_date")
        try:
            return date_parser.parse(self.payment_date, tzinfos=PROCESSOR_TZINFOS)
        except (ValueError, OverflowError) as e:
            raise InvalidFieldError("payment_date", self.payment_date, str(e)) from e

    def gross_amount(self) -> Decimal:
        return to_decimal("mc_gross", self.gross)

    def gross_cents(self) -> int:
        return to_minor_units("mc_gross", self.gross)

    def fee_cents(self) -> int:
        return to_minor_units("mc_fee", self.fee)
