from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here.
    """

    app_env: str = os.getenv("APP_ENV", "development")
    openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-search-preview")
    health_check_model: str = os.getenv(
        "HEALTH_CHECK_MODEL", "gpt-4o-search-preview-2025-03-11"
    )
    finder_max_tokens: int = int(os.getenv("FINDER_MAX_TOKENS", "2000"))
    lisa_max_tokens: int = int(os.getenv("LISA_MAX_TOKENS", "3000"))
    health_max_tokens: int = int(os.getenv("HEALTH_MAX_TOKENS", "50"))
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "60.0"))
    lisa_prompt_path: Optional[str] = os.getenv("LISA_PROMPT_PATH")

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() in {"dev", "development", "local"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
