from .unit_of_work import UnitOfWork
from .notification_service import NotificationService
from .webhook_authenticator import InboundRequest, WebhookAuthenticator

__all__ = [
    "UnitOfWork",
    "NotificationService",
    "InboundRequest",
    "WebhookAuthenticator",
]
