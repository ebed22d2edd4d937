"""Configuration management for the watcher.

Handles all application configuration including environment variables, the
YAML search defaults file, and built-in defaults. Configuration is loaded once
by `load_config` into an immutable `Config` value that is handed to the
components explicitly; nothing below this module reads the environment.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

TRUTHY_TOKENS = frozenset({"1", "true", "yes", "y", "on"})


def parse_bool_token(raw: Any, default: bool) -> bool:
    """Interpret an environment flag the way the operator writes it.

    Args:
        raw: Raw value from the environment (or an already parsed bool).
        default: Value used when the flag is unset or blank.

    Returns:
        True for one of the recognised truthy tokens, False for anything else.
    """
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if not text:
        return default
    return text in TRUTHY_TOKENS


class TelegramConfig(BaseSettings):
    """Telegram delivery settings.

    Attributes:
        bot_token: Bot API token, embedded in the endpoint path.
        chat_id: Destination chat for listing notifications.
        api_base: Bot API base URL.
        timeout: HTTP request timeout in seconds.
    """

    model_config = SettingsConfigDict(frozen=True, env_file=".env", extra="ignore")

    bot_token: str = Field(..., min_length=1, validation_alias="TG_BOT_TOKEN")
    chat_id: str = Field(..., min_length=1, validation_alias="TG_CHAT_ID")
    api_base: str = Field(default="https://api.telegram.org", validation_alias="TG_API_BASE")
    timeout: int = Field(default=20, ge=1, validation_alias="TG_TIMEOUT")


class SearchConfig(BaseSettings):
    """Search and acquisition settings.

    Attributes:
        query: Free-text search query, used verbatim in the search form.
        headless: Whether the browser runs headless.
        user_data_dir: Optional persistent browser profile directory.
        max_attempts: Number of full acquisition attempts per run.
        backoff_seconds: Linear backoff step between failed attempts.
        sent_path: Location of the persisted sent-IDs JSON array.
    """

    model_config = SettingsConfigDict(frozen=True, env_file=".env", extra="ignore")

    query: str = Field(..., min_length=1, validation_alias="SEARCH_QUERY")
    headless: bool = Field(default=True, validation_alias="HEADLESS")
    user_data_dir: str | None = Field(default=None, validation_alias="USER_DATA_DIR")
    max_attempts: int = Field(default=4, ge=1, validation_alias="MAX_ATTEMPTS")
    backoff_seconds: float = Field(default=10.0, ge=0, validation_alias="RETRY_BACKOFF_SECONDS")
    sent_path: Path = Field(default=Path("data/sent.json"), validation_alias="SENT_PATH")

    @field_validator("headless", mode="before")
    @classmethod
    def _parse_headless(cls, value: Any) -> bool:
        return parse_bool_token(value, default=True)

    @field_validator("user_data_dir", mode="before")
    @classmethod
    def _blank_profile_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SiteConfig(BaseModel):
    """Fixed search filters sent with every query.

    Attributes:
        price_min: Lower rent bound in CHF.
        price_max: Upper rent bound in CHF.
        wg_state: Region filter.
        permanent: Permanent/temporary filter.
        studio: Whether to restrict to studios.
        student: Student-only filter.
        typeofwg: Shared flat type filter.
    """

    model_config = ConfigDict(frozen=True)

    price_min: int = 200
    price_max: int = 2000
    wg_state: str = "all"
    permanent: str = "all"
    studio: bool = False
    student: str = "none"
    typeofwg: str = "all"


class Config(BaseModel):
    """Immutable application configuration.

    Aggregates the typed sections loaded from the environment and the YAML
    search defaults. Built once per process by `load_config`.
    """

    model_config = ConfigDict(frozen=True)

    telegram: TelegramConfig
    search: SearchConfig
    site: SiteConfig = Field(default_factory=SiteConfig)


def _load_site_config(config_dir: Path) -> SiteConfig:
    """Load search filter defaults from YAML configuration.

    Returns:
        SiteConfig from `search.yml`, or built-in defaults when absent.
    """
    search_path = config_dir / "search.yml"
    if not search_path.exists():
        return SiteConfig()

    with open(search_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return SiteConfig(**data.get("filters", {}))


def _missing_fields(error: ValidationError) -> list[str]:
    names = []
    for item in error.errors():
        loc = item.get("loc") or ("?",)
        names.append(str(loc[0]))
    return names


def load_config(config_dir: Path | None = None) -> Config:
    """Load the process configuration.

    Args:
        config_dir: Directory holding `search.yml`, defaults to wgwatch/config.

    Returns:
        Fully populated, immutable Config.

    Raises:
        ConfigError: If a required variable is missing or a value is invalid.
    """
    if config_dir is None:
        config_dir = Path(__file__).parent / "config"

    try:
        telegram = TelegramConfig()
        search = SearchConfig()
    except ValidationError as e:
        raise ConfigError(f"Missing or invalid env: {', '.join(_missing_fields(e))}") from e

    try:
        site = _load_site_config(Path(config_dir))
    except (ValidationError, yaml.YAMLError) as e:
        raise ConfigError(f"Invalid search defaults in {config_dir}: {e}") from e

    return Config(telegram=telegram, search=search, site=site)
