"""
Configuration for the Hackathon Digest application.

Every run rebuilds its configuration from the environment. Missing or
malformed optional values fall back to built-in defaults; only the API key of
the selected search provider is mandatory.
"""

from dataclasses import dataclass
import logging
import os
from typing import List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"
DEFAULT_RECENCY_HOURS = 168  # one week
DEFAULT_MAX_ITEMS = 36
DEFAULT_RECIPIENT_EMAIL = "hackathons@example.com"
DEFAULT_SEARCH_PROVIDER = "openai"
DEFAULT_OPENAI_MODEL = "gpt-4.1"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_TIMEZONE = "America/Denver"

DEFAULT_LOCATIONS: Tuple[str, ...] = (
    "Denver, Colorado (and nearby)",
    "Czech Republic (Česko – whole country: Praha, Brno, Ostrava, etc.)",
    "Near me (user's approximate location)",
)

DEFAULT_CHALLENGE_FOCUS: Tuple[str, ...] = (
    "Apple Swift Student Challenge, WWDC Swift challenges",
    "Swift programming challenges and competitions",
    "React and JavaScript coding challenges",
    "Web development hackathons and coding competitions",
)

SEARCH_PROVIDERS = ("openai", "gemini")

API_KEY_VARS = {
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_KEY",
}

_TRUE_VALUES = ("true", "1", "yes", "y", "on")
_FALSE_VALUES = ("false", "0", "no", "n", "off")


class MissingSecretError(RuntimeError):
    """Raised when a required API key is not present in the environment."""


def parse_int(value: Optional[str], default: int) -> int:
    """Parses an integer, returning the default when absent or invalid."""
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        logger.warning("Invalid integer value %r. Using default %d.", value, default)
        return default


def parse_bool(value: Optional[str], default: bool) -> bool:
    """Parses a boolean flag such as 'true', 'no' or '1'."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return default


def parse_list(value: Optional[str]) -> List[str]:
    """Splits a comma-separated value into trimmed, non-empty entries."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_recipient_emails(value: Optional[str], default: str) -> List[str]:
    """Parses RECIPIENT_EMAIL, falling back to a single default address."""
    recipients = parse_list(value)
    return recipients if recipients else [default]


def parse_timezone(value: Optional[str], default: str) -> str:
    """Returns the IANA zone name if it is known, otherwise the default."""
    if not value or not value.strip():
        return default
    name = value.strip()
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown time zone %r. Using default %s.", value, default)
        return default
    return name


@dataclass(frozen=True)
class DigestConfig:
    """Resolved settings for a single digest run."""

    language: str = DEFAULT_LANGUAGE
    locations: Tuple[str, ...] = DEFAULT_LOCATIONS
    challenge_focus: Tuple[str, ...] = DEFAULT_CHALLENGE_FOCUS
    recency_hours: int = DEFAULT_RECENCY_HOURS
    max_items: int = DEFAULT_MAX_ITEMS
    must_include_sources: bool = True
    recipient_emails: Tuple[str, ...] = (DEFAULT_RECIPIENT_EMAIL,)
    search_provider: str = DEFAULT_SEARCH_PROVIDER
    openai_model: str = DEFAULT_OPENAI_MODEL
    gemini_model: str = DEFAULT_GEMINI_MODEL
    timezone: str = DEFAULT_TIMEZONE


@dataclass(frozen=True)
class SmtpSettings:
    """Outbound mail settings read from the SMTP_* variables."""

    host: str = "smtp.gmail.com"
    port: int = 587
    secure: bool = False
    user: Optional[str] = None
    password: Optional[str] = None
    app_password: Optional[str] = None
    sender: Optional[str] = None

    @property
    def resolved_password(self) -> Optional[str]:
        """SMTP_PASSWORD, or the app password (e.g. for Gmail) when unset."""
        return self.password or self.app_password

    @property
    def from_address(self) -> Optional[str]:
        """SMTP_FROM, or the login user when unset."""
        return self.sender or self.user


def _env(env: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if env is None else env


def load_config(env: Optional[Mapping[str, str]] = None) -> DigestConfig:
    """Builds a DigestConfig from environment variables."""
    env = _env(env)

    provider = (env.get("SEARCH_PROVIDER") or DEFAULT_SEARCH_PROVIDER).strip().lower()
    if provider not in SEARCH_PROVIDERS:
        logger.warning(
            "Unknown SEARCH_PROVIDER %r. Using %s.", provider, DEFAULT_SEARCH_PROVIDER
        )
        provider = DEFAULT_SEARCH_PROVIDER

    locations = parse_list(env.get("LOCATIONS"))
    challenge_focus = parse_list(env.get("CHALLENGE_TOPICS"))

    return DigestConfig(
        language=(env.get("LANGUAGE") or DEFAULT_LANGUAGE).strip().lower(),
        locations=tuple(locations) if locations else DEFAULT_LOCATIONS,
        challenge_focus=(
            tuple(challenge_focus) if challenge_focus else DEFAULT_CHALLENGE_FOCUS
        ),
        recency_hours=parse_int(env.get("RECENCY_HOURS"), DEFAULT_RECENCY_HOURS),
        max_items=parse_int(env.get("MAX_ITEMS"), DEFAULT_MAX_ITEMS),
        must_include_sources=parse_bool(env.get("MUST_INCLUDE_SOURCES"), True),
        recipient_emails=tuple(
            parse_recipient_emails(env.get("RECIPIENT_EMAIL"), DEFAULT_RECIPIENT_EMAIL)
        ),
        search_provider=provider,
        openai_model=env.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
        gemini_model=env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        timezone=parse_timezone(env.get("DIGEST_TIMEZONE"), DEFAULT_TIMEZONE),
    )


def load_smtp_settings(env: Optional[Mapping[str, str]] = None) -> SmtpSettings:
    """Reads the SMTP_* variables. Credentials are validated at send time."""
    env = _env(env)
    return SmtpSettings(
        host=env.get("SMTP_HOST") or "smtp.gmail.com",
        port=parse_int(env.get("SMTP_PORT"), 587),
        secure=parse_bool(env.get("SMTP_SECURE"), False),
        user=env.get("SMTP_USER") or None,
        password=env.get("SMTP_PASSWORD") or None,
        app_password=env.get("SMTP_APP_PASSWORD") or None,
        sender=env.get("SMTP_FROM") or None,
    )


def require_api_key(provider: str, env: Optional[Mapping[str, str]] = None) -> str:
    """Returns the API key for the search provider or raises MissingSecretError."""
    var_name = API_KEY_VARS[provider]
    api_key = _env(env).get(var_name)
    if not api_key:
        raise MissingSecretError(
            f"{var_name} environment variable is required. "
            "Please set it in your CI secrets or .env file."
        )
    return api_key
