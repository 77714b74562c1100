"""Static configuration for pagescope.

All user-editable settings come from the environment, optionally through a
local .env file (python-dotenv), so targets, keywords and secrets can change
without touching Python. Values are parsed once at import time.
"""

import math
import os
from typing import Callable, List, Optional, TypeVar

from dotenv import load_dotenv

from core.config import DEFAULT_DETAIL_URL_PATTERN, DEFAULT_WAITING_ROOM_PATTERN
from core.errors import ConfigurationError

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

_TRUE_VALUES = {"1", "true", "yes", "on"}

MIN_INTERVAL_SECONDS = 10

DEFAULT_URLS = (
    "https://ticketon.kz/sports/futbolniy-klub-kairat,"
    "https://ticketon.kz/almaty,"
    "https://ticketon.kz/sports"
)
DEFAULT_KEYWORDS = "Кайрат&Реал, Kairat&Real, Реал Мадрид, Real Madrid"


def parse_bool(raw: Optional[str], default: bool = False) -> bool:
    """Interpret an env flag; unset or blank keeps the default."""

    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def parse_list(raw: Optional[str]) -> List[str]:
    """Split a comma-separated value, dropping blanks."""

    return [item.strip() for item in (raw or "").split(",") if item.strip()]


def parse_number(raw: Optional[str], default: float) -> float:
    """Parse a numeric env value; unset or blank keeps the default."""

    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{raw!r} is not a number") from None
    if not math.isfinite(value):
        raise ConfigurationError(f"{raw!r} is not a finite number")
    return value


def parse_interval(raw: Optional[str], default: int = 60) -> int:
    """Scan interval in seconds, never below MIN_INTERVAL_SECONDS."""

    return max(MIN_INTERVAL_SECONDS, int(parse_number(raw, default)))


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default)


# Malformed values fall back to their default and are reported by the app's
# settings validation.
CONFIG_ERRORS: List[str] = []

_T = TypeVar("_T")


def _checked(name: str, parse: Callable[[Optional[str]], _T], default: _T) -> _T:
    try:
        return parse(os.getenv(name))
    except ConfigurationError as exc:
        CONFIG_ERRORS.append(f"{name}: {exc}")
        return default


def _number(name: str, default: float) -> float:
    return _checked(name, lambda raw: parse_number(raw, default), default)


# Targets are scanned strictly in this order.
URLS = parse_list(_env("URLS", DEFAULT_URLS))
CHECK_INTERVAL_SEC = _checked("CHECK_INTERVAL_SEC", parse_interval, 60)
ONE_SHOT = parse_bool(os.getenv("ONE_SHOT"))

# Keyword rules: "a&b, c" means (a AND b) OR c.
KEYWORDS = _env("KEYWORDS", DEFAULT_KEYWORDS)

# Dedup controls.
# - FORCE_NOTIFY: ignore notification history (testing)
# - NOTIFY_TTL_HOURS: forget notifications after this many hours
# - DEEP_CHECK: fingerprint detail pages to re-notify on content change
FORCE_NOTIFY = parse_bool(os.getenv("FORCE_NOTIFY"))
NOTIFY_TTL_HOURS = _number("NOTIFY_TTL_HOURS", 48)
DEEP_CHECK = parse_bool(os.getenv("DEEP_CHECK"), default=True)

DETAIL_URL_PATTERN = _env("DETAIL_URL_PATTERN", DEFAULT_DETAIL_URL_PATTERN)
WAITING_ROOM_PATTERN = _env("WAITING_ROOM_PATTERN", DEFAULT_WAITING_ROOM_PATTERN)
NOTIFY_DELAY_SEC = _number("NOTIFY_DELAY_SEC", 0.9)

# Where to store notification state; relative paths resolve from the cwd.
STATE_FILE = os.path.abspath(_env("STATE_FILE", "state.json"))

# Notification method switches adapters without changing core logic.
# - bot: TELEGRAM_BOT_TOKEN + TELEGRAM_CHAT_ID
# - saved_messages: API_ID + API_HASH (Telethon user session)
NOTIFICATION_METHOD = _env("NOTIFICATION_METHOD", "bot").strip().lower()
TELEGRAM_BOT_TOKEN = _env("TELEGRAM_BOT_TOKEN")
TELEGRAM_CHAT_ID = _env("TELEGRAM_CHAT_ID")
API_ID = _env("API_ID")
API_HASH = _env("API_HASH")
SESSION_NAME = _env("SESSION_NAME", "pagescope")
SAVED_MESSAGES_TARGET = _env("SAVED_MESSAGES_TARGET", "me")

# Renderer.
HEADLESS = parse_bool(os.getenv("HEADLESS"), default=True)
USER_AGENT = _env("USER_AGENT")
BROWSER_LOCALE = _env("BROWSER_LOCALE", "ru-RU")
NAV_ATTEMPTS = max(1, int(_number("NAV_ATTEMPTS", 2)))
NAV_TIMEOUT_SEC = _number("NAV_TIMEOUT_SEC", 60)

# Logging.
LOG_LEVEL = _env("LOG_LEVEL", "INFO")
LOG_CONSOLE = parse_bool(os.getenv("LOG_CONSOLE"), default=True)
LOG_FILE = _env("LOG_FILE")
LOG_FILE_MAX_BYTES = int(_number("LOG_FILE_MAX_BYTES", 5 * 1024 * 1024))
LOG_FILE_BACKUPS = int(_number("LOG_FILE_BACKUPS", 5))
LOG_REDACT = parse_bool(os.getenv("LOG_REDACT"), default=True)
# Env names whose values are masked in every log line.
REDACT_ENV_NAMES = ("TELEGRAM_BOT_TOKEN", "API_HASH", "2FA")
