import os
from typing import Optional

DEFAULT_MODEL = "gpt-4o-mini"


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _seconds(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from e


# 자격 증명은 호출 시점마다 다시 읽음
def get_api_key() -> Optional[str]:
    return os.getenv("OPENAI_API_KEY") or None


def get_base_url() -> Optional[str]:
    return os.getenv("OPENAI_BASE_URL") or None


def get_model() -> str:
    return os.getenv("NL2SQL_MODEL", DEFAULT_MODEL)


def get_llm_timeout() -> float:
    return _seconds("NL2SQL_LLM_TIMEOUT", 30.0)


def get_request_timeout() -> float:
    return _seconds("NL2SQL_REQUEST_TIMEOUT", 60.0)


def get_database_url() -> Optional[str]:
    raw = os.getenv("DATABASE_URL")
    if not raw:
        return None
    # psycopg 3 드라이버 명시 (SQLAlchemy용)
    if raw.startswith("postgresql://"):
        return raw.replace("postgresql://", "postgresql+psycopg://", 1)
    return raw


def get_schema_file() -> Optional[str]:
    return os.getenv("NL2SQL_SCHEMA_FILE") or None


def is_read_only() -> bool:
    return _flag("NL2SQL_READ_ONLY", True)


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
