"""Configuration loading from environment variables."""

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, field_validator

from lanns_ticker.ports.settings import HeartbeatConfig

__all__ = ["Settings", "load_settings"]

load_dotenv()

logger = logging.getLogger(__name__)
_http_url_adapter = TypeAdapter(HttpUrl)

ENV_PREFIX = "LANNS_"


class Settings(BaseModel):
    """Runtime configuration of the LanNS ticker.

    Intervals are validated as positive here; the 30 s / 2x refresh floors are
    applied when the HeartbeatConfig is built.
    """

    url: str = Field(..., description="Base URL of the LanNS discovery service.")
    app_name: str = Field(..., min_length=1, description="Announced application name.")
    app_description: str = Field(default="", description="Announced description.")
    app_port: int | None = Field(default=None, ge=1, le=65535, description="Application port.")
    app_url_path: str = Field(default="", description="Application URL path.")
    app_protocol: str = Field(default="http", description="Application protocol.")
    network_interface_filter: str = Field(
        default="",
        description="Semicolon-separated interface-name prefixes; empty means all.",
    )
    refresh_interval_in_seconds: int = Field(default=60, gt=0)
    expire_time_in_seconds: int = Field(default=120, gt=0)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate that the service URL is a valid HTTP(S) URL.

        Raises:
            ValueError: If URL is invalid or not http(s).
        """
        try:
            url = _http_url_adapter.validate_python(v)
            if url.scheme not in ("http", "https"):
                raise ValueError("Only http:// and https:// URLs allowed")
        except Exception as e:
            raise ValueError(f"Invalid LanNS service URL: {e}") from e
        return v

    def to_config(self) -> HeartbeatConfig:
        """Build the clamped heartbeat config."""
        return HeartbeatConfig(
            service_url=self.url,
            app_name=self.app_name,
            app_description=self.app_description,
            app_port=self.app_port,
            app_url_path=self.app_url_path,
            app_protocol=self.app_protocol,
            network_interface_filter=self.network_interface_filter,
            refresh_interval_in_sec=self.refresh_interval_in_seconds,
            expire_time_in_sec=self.expire_time_in_seconds,
        )


def load_settings() -> Settings:
    """Load and validate settings from the environment.

    Required environment variables:
    - LANNS_URL: http(s) URL of the discovery service.
    - LANNS_APP_NAME: Announced application name.

    Optional: LANNS_APP_DESCRIPTION, LANNS_APP_PORT, LANNS_APP_URL_PATH,
    LANNS_APP_PROTOCOL, LANNS_NETWORK_INTERFACE_FILTER,
    LANNS_REFRESH_INTERVAL_IN_SECONDS, LANNS_EXPIRE_TIME_IN_SECONDS.

    Returns:
        Validated Settings object.

    Raises:
        RuntimeError: If required env vars are missing.
        ValueError: If configuration is invalid.
    """
    try:
        url = os.environ[f"{ENV_PREFIX}URL"]
        app_name = os.environ[f"{ENV_PREFIX}APP_NAME"]
    except KeyError as e:
        raise RuntimeError(f"Missing required environment variable: {e.args[0]}") from e

    optional = {
        field: os.environ[f"{ENV_PREFIX}{field.upper()}"]
        for field in (
            "app_description",
            "app_port",
            "app_url_path",
            "app_protocol",
            "network_interface_filter",
            "refresh_interval_in_seconds",
            "expire_time_in_seconds",
        )
        if f"{ENV_PREFIX}{field.upper()}" in os.environ
    }

    settings = Settings(url=url, app_name=app_name, **optional)

    logger.info(
        f"Ticker configured: service={settings.url}, "
        f"app={settings.app_name}, port={settings.app_port}, "
        f"refresh={settings.refresh_interval_in_seconds}s, "
        f"filter={settings.network_interface_filter or '<none>'}"
    )

    return settings
