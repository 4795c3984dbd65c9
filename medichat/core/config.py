from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env lives at the project root: medichat/core/config.py -> medichat/core -> medichat -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"

OPENAI_KEY_PREFIX = "sk-"

RECORD_STORE_BACKENDS = ("database", "local")


class Settings(BaseSettings):
    openai_api_key: str = ""
    # Comma separated. When set, keys are tried in order on auth / rate-limit failures.
    openai_api_keys: str = ""
    openai_model: str = "gpt-4o-mini"
    # Audio input needs an audio-capable chat model.
    openai_audio_model: str = "gpt-4o-audio-preview"
    openai_timeout: float = 30.0
    database_url: str = "sqlite:///./medichat.db"
    # "database" (SQL table, one row per record) or "local" (one JSON array per user key)
    record_store: str = "database"
    local_store_dir: str = "./data/analyses"
    cors_origins: str = "*"
    rate_limit_per_minute: int = 60
    upload_max_mb: int = 10
    environment: str = "development"
    log_level: str = "INFO"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("openai_api_key", "openai_api_keys", mode="before")
    @classmethod
    def strip_openai_key(cls, v: str | None) -> str:
        """Copy/paste whitespace around keys is the most common misconfiguration."""
        return (v or "").strip()

    @field_validator("record_store", mode="before")
    @classmethod
    def check_record_store(cls, v: str | None) -> str:
        value = (v or "database").strip().lower()
        if value not in RECORD_STORE_BACKENDS:
            raise ValueError(f"RECORD_STORE must be one of {', '.join(RECORD_STORE_BACKENDS)}.")
        return value


settings = Settings()


def get_openai_keys() -> list[str]:
    """
    Usable OpenAI keys (prefixed with sk-, no whitespace).
    OPENAI_API_KEYS wins when present; otherwise OPENAI_API_KEY as a single entry.
    """
    keys_raw = (settings.openai_api_keys or "").strip()
    if keys_raw:
        keys = [k.strip() for k in keys_raw.split(",") if k.strip() and k.strip().startswith(OPENAI_KEY_PREFIX)]
        if keys:
            return keys
    single = (settings.openai_api_key or "").strip()
    if single and single.startswith(OPENAI_KEY_PREFIX):
        return [single]
    return []


def is_openai_configured() -> bool:
    return len(get_openai_keys()) > 0
