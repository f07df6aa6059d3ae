from .unit_of_work import SqlAlchemyUnitOfWork
from .http_signature_authenticator import HttpSignatureAuthenticator
from .notification_service import (
    LoggingNotificationService,
    WebhookNotificationService,
    CompositeNotificationService,
    create_notification_service,
)

__all__ = [
    "SqlAlchemyUnitOfWork",
    "HttpSignatureAuthenticator",
    "LoggingNotificationService",
    "WebhookNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
]
