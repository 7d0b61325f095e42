from .factories import NotificationFactory

__all__ = ["NotificationFactory"]
