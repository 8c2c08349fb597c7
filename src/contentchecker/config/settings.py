"""Configuration management for contentchecker.

Loads settings from a YAML configuration file with environment variable
overrides for sensitive values (webhook URL, API token) and for the
platform-provided task/actor identifiers. Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/contentchecker.yaml")
DEFAULT_MAIL_API_URL = "https://api.apify.com/v2/acts/apify~send-mail/runs"


class ProxyConfig(BaseModel):
    """Proxy settings, passed through to the browser unchanged."""

    model_config = ConfigDict(frozen=True)

    server: str | None = Field(default=None, description="Proxy server URL, e.g. http://host:8000")
    username: str | None = Field(default=None)
    password: SecretStr | None = Field(default=None)


class WatchConfig(BaseModel):
    """The watched page and how to report on it.

    Defaults are resolved once here, so ``screenshot_selector`` is always
    populated and ``inform_on_error`` is always a real boolean.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(min_length=1)
    content_selector: str = Field(min_length=1)
    screenshot_selector: str = Field(min_length=1, description="Defaults to content_selector")
    send_notification_to: list[str] = Field(default_factory=list)
    send_notification_text: str | None = Field(default=None)
    navigation_timeout: int = Field(default=30000, gt=0, description="Milliseconds")
    inform_on_error: bool = Field(default=False)
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)

    @field_validator("send_notification_to", mode="before")
    @classmethod
    def _split_recipients(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("inform_on_error", mode="before")
    @classmethod
    def _strict_bool(cls, value: object) -> object:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            if value == "true":
                return True
            if value == "false":
                return False
        raise ValueError(
            f"inform_on_error must be a boolean or 'true'/'false', got {value!r}"
        )

    @model_validator(mode="before")
    @classmethod
    def _default_screenshot_selector(cls, data: object) -> object:
        if isinstance(data, dict) and not data.get("screenshot_selector"):
            data = {**data, "screenshot_selector": data.get("content_selector")}
        return data


class BrowserConfig(BaseModel):
    headless: bool = Field(default=True)
    viewport_width: int = Field(default=1920, gt=0)
    viewport_height: int = Field(default=1080, gt=0)
    settle_delay: float = Field(default=5.0, ge=0, description="Seconds to wait after navigation")
    screenshot_retries: int = Field(default=10, ge=1)


class StoreConfig(BaseModel):
    directory: Path = Field(default=Path("storage/key_value_stores"))
    watch_key: str = Field(default="default", min_length=1)
    public_base_url: str | None = Field(
        default=None,
        description="Base URL under which store records are published, e.g. https://api.apify.com/v2",
    )


class NotifyConfig(BaseModel):
    slack_webhook_url: SecretStr | None = Field(default=None)
    mail_api_url: str = Field(default=DEFAULT_MAIL_API_URL)
    mail_api_token: SecretStr = Field(default=SecretStr(""))
    timeout: float = Field(default=30.0, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the contentchecker system.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "CONTENTCHECKER_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # Configuration sections
    watch: WatchConfig
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    notify: NotifyConfig = Field(default_factory=NotifyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: YAML file > CONTENTCHECKER_ env vars > .env file > defaults.
    The YAML data is passed as init arguments, which pydantic-settings ranks
    highest. The unprefixed platform variables (APIFY_ACTOR_TASK_ID,
    APIFY_ACT_ID, APIFY_TOKEN, SLACK_WEBHOOK_URL) only fill values the YAML
    leaves unset.

    Raises:
        pydantic.ValidationError: If the watch section is missing or invalid.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    # Load .env file manually for non-prefixed vars
    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply platform environment variables that carry no prefix."""
    # A task id is preferred so several checkers under one account keep
    # separate stores.
    watch_key = os.environ.get("APIFY_ACTOR_TASK_ID") or os.environ.get("APIFY_ACT_ID", "")
    token = os.environ.get("APIFY_TOKEN", "")
    webhook = os.environ.get("SLACK_WEBHOOK_URL", "")

    if "store" not in yaml_data:
        yaml_data["store"] = {}
    if "notify" not in yaml_data:
        yaml_data["notify"] = {}

    if watch_key and not yaml_data["store"].get("watch_key"):
        yaml_data["store"]["watch_key"] = watch_key

    if token and not yaml_data["notify"].get("mail_api_token"):
        yaml_data["notify"]["mail_api_token"] = token

    if webhook and not yaml_data["notify"].get("slack_webhook_url"):
        yaml_data["notify"]["slack_webhook_url"] = webhook
