"""
Runtime settings for the ratings assistant.
Values come from the environment (.env is loaded with python-dotenv).
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_TAB_KEYWORD = "Poll"
DEFAULT_TAB_NAME = "Sheet1"
DEFAULT_SHEET_RANGE = "A1:P1000"
DEFAULT_MODEL = "llama-3.3-70b-versatile"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_DATA_CHARS = 60000
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 1


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def _env_number(name: str, default, cast):
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("config_invalid_value: %s=%r, using default %s", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    """Scalar settings consumed by the pipeline. Build with Settings.from_env()."""

    sheet_id: Optional[str] = None
    service_account_key: Optional[str] = None
    tab_keyword: str = DEFAULT_TAB_KEYWORD
    default_tab: str = DEFAULT_TAB_NAME
    sheet_range: str = DEFAULT_SHEET_RANGE
    workbook_path: Optional[str] = None
    groq_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    max_data_chars: int = DEFAULT_MAX_DATA_CHARS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            sheet_id=_env_str("GOOGLE_SHEET_ID"),
            service_account_key=_env_str("GOOGLE_SERVICE_ACCOUNT_KEY"),
            tab_keyword=_env_str("SHEET_TAB_KEYWORD", DEFAULT_TAB_KEYWORD),
            default_tab=_env_str("SHEET_DEFAULT_TAB", DEFAULT_TAB_NAME),
            sheet_range=_env_str("SHEET_RANGE", DEFAULT_SHEET_RANGE),
            workbook_path=_env_str("RATINGS_WORKBOOK"),
            groq_api_key=_env_str("GROQ_API_KEY"),
            model=_env_str("GROQ_MODEL", DEFAULT_MODEL),
            max_tokens=_env_number("COMPLETION_MAX_TOKENS", DEFAULT_MAX_TOKENS, int),
            temperature=_env_number("COMPLETION_TEMPERATURE", DEFAULT_TEMPERATURE, float),
            max_data_chars=_env_number("PROMPT_MAX_DATA_CHARS", DEFAULT_MAX_DATA_CHARS, int),
            timeout_seconds=_env_number("REQUEST_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS, float),
            max_retries=_env_number("MAX_RETRIES", DEFAULT_MAX_RETRIES, int),
        )
