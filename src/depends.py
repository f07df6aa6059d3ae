from functools import lru_cache
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.http_signature_authenticator import HttpSignatureAuthenticator
from src.app.services.webhook_authenticator import WebhookAuthenticator

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


@lru_cache(maxsize=1)
def get_webhook_authenticator() -> WebhookAuthenticator:
    return HttpSignatureAuthenticator(
        hmac_secret=ApplicationConfig.WEBHOOK_HMAC_SECRET,
        public_keys=ApplicationConfig.WEBHOOK_PUBLIC_KEYS,
        allow_unsigned=ApplicationConfig.WEBHOOK_ALLOW_UNSIGNED,
        max_age_seconds=ApplicationConfig.WEBHOOK_SIGNATURE_MAX_AGE_SECONDS,
    )
