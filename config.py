import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./credits.db")
    API_PREFIX = data.get("API_PREFIX", "/api/v1")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Payment provider callbacks
    PAYMENT_PROVIDER = data.get("PAYMENT_PROVIDER", "pawapay")
    WEBHOOK_ALLOW_UNSIGNED = bool(data.get("WEBHOOK_ALLOW_UNSIGNED", False))
    WEBHOOK_HMAC_SECRET = data.get("WEBHOOK_HMAC_SECRET", "")
    WEBHOOK_PUBLIC_KEYS = data.get("WEBHOOK_PUBLIC_KEYS", {})  # keyid -> PEM
    WEBHOOK_SIGNATURE_MAX_AGE_SECONDS = data.get("WEBHOOK_SIGNATURE_MAX_AGE_SECONDS", 300)  # 0 disables

    # Credit ledger
    LEDGER_MAX_RETRIES = data.get("LEDGER_MAX_RETRIES", 10)
    LEDGER_PAGE_SIZE_MAX = data.get("LEDGER_PAGE_SIZE_MAX", 100)

    # Ledger Reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily
    RECONCILIATION_NOTIFICATION_WEBHOOK = data.get("RECONCILIATION_NOTIFICATION_WEBHOOK", None)
