import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return None
    return float(raw)


class Settings:
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    SESSION_KEY_PREFIX: str = os.getenv("SESSION_KEY_PREFIX", "paygate:tab:")
    # 0 keeps the tab store until it is cleared by a reset (no expiry)
    SESSION_TTL_SEC: int = int(os.getenv("SESSION_TTL_SEC", "0"))

    # Backend endpoints
    GATEWAY_BASE_URL: str = os.getenv("GATEWAY_BASE_URL", "http://localhost:3000")
    VALIDATE_USER_PATH: str = os.getenv("VALIDATE_USER_PATH", "/api/validate-user")
    COMPLETE_TRANSACTION_PATH: str = os.getenv("COMPLETE_TRANSACTION_PATH", "/api/complete-transaction")
    # Unset means no timeout: a hung request keeps the form busy.
    GATEWAY_TIMEOUT_SEC: Optional[float] = _optional_float("GATEWAY_TIMEOUT_SEC")

    PIN_MAX_LENGTH: int = int(os.getenv("PIN_MAX_LENGTH", "4"))

    TAB_COOKIE_NAME: str = os.getenv("TAB_COOKIE_NAME", "paygate_tab")
    # In-process tab controllers: LRU cap and idle eviction (0 disables either)
    TAB_REGISTRY_MAX_TABS: int = int(os.getenv("TAB_REGISTRY_MAX_TABS", "10000"))
    TAB_IDLE_SEC: int = int(os.getenv("TAB_IDLE_SEC", "1800"))
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"

settings = Settings()
