import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    APP_VERSION: str = "2.0.0"
    PRODUCT_NAME: str = "Nthcreation"

    # --- AI ---
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4-turbo")
    AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "20"))

    # --- RATE LIMITS ---
    RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "10"))
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    AI_RATE_LIMIT_MAX_REQUESTS = int(os.getenv("AI_RATE_LIMIT_MAX_REQUESTS", "20"))
    AI_RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("AI_RATE_LIMIT_WINDOW_SECONDS", "3600"))
    EVICTION_INTERVAL_SECONDS = int(os.getenv("EVICTION_INTERVAL_SECONDS", "300"))

    # --- COST ---
    DAILY_AI_LIMIT = int(os.getenv("DAILY_AI_LIMIT", "100"))
    DAILY_WINDOW_SECONDS = 24 * 60 * 60
    COST_WARNING_RATIO = 0.8

    # --- REQUEST SIZE ---
    MAX_STEPS = 50
    MAX_GOAL_CHARS = 500

    # --- ANALYTICS ---
    MAX_LOGS = 1000
    HISTORY_DAYS = 30

    # --- ACCESS ---
    ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*")
    API_KEY = os.getenv("API_KEY", "")
    ADMIN_KEY = os.getenv("ADMIN_KEY", "")

    # --- SERVER ---
    HOST = os.getenv("HOST", "127.0.0.1")
    PORT = int(os.getenv("PORT", "8000"))

    @property
    def ai_enabled(self) -> bool:
        return bool(self.OPENAI_API_KEY)

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()] or ["*"]


@lru_cache
def get_settings():
    return Settings()
