import uuid
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from src.models.notification import Notification

PACIFIC = timezone(timedelta(hours=-7), "PDT")


class NotificationFactory:
    """Factory for form-encoded notification bodies with sensible defaults."""

    @staticmethod
    def fields(txn_type: str = "web_accept", **overrides) -> dict[str, str]:
        now = datetime.now(PACIFIC)
        defaults = {
            "mc_gross": "100.00",
            "protection_eligibility": "Eligible",
            "payer_id": f"PAYER{uuid.uuid4().hex[:8].upper()}",
            "payment_date": now.strftime("%H:%M:%S %b %d, %Y PDT"),
            "payment_status": "Completed",
            "charset": "UTF-8",
            "first_name": "John",
            "last_name": "Smith",
            "mc_fee": "3.20",
            "notify_version": "3.9",
            "custom": "",
            "payer_status": "verified",
            "business": "seller@example.com",
            "quantity": "1",
            "payer_email": "buyer@example.com",
            "txn_id": uuid.uuid4().hex[:17].upper(),
            "payment_type": "instant",
            "receiver_email": "seller@example.com",
            "payment_fee": "",
            "receiver_id": "S8XGHLYDW9T3S",
            "txn_type": txn_type,
            "item_name": "Widget",
            "mc_currency": "USD",
            "item_number": f"item_{uuid.uuid4().hex[:8]}",
            "residence_country": "US",
            "test_ipn": "1",
            "handling_amount": "0.00",
            "transaction_subject": "",
            "payment_gross": "",
            "shipping": "0.00",
            "verify_sign": uuid.uuid4().hex,
        }
        # None removes a field from the body
        for key, value in overrides.items():
            if value is None:
                defaults.pop(key, None)
            else:
                defaults[key] = str(value)
        return defaults

    @staticmethod
    def create_body(txn_type: str = "web_accept", **overrides) -> bytes:
        return urlencode(NotificationFactory.fields(txn_type, **overrides)).encode("ascii")

    @staticmethod
    def create(txn_type: str = "web_accept", **overrides) -> Notification:
        return Notification.from_raw(NotificationFactory.create_body(txn_type, **overrides))
