"""Heartbeat configuration port (DTO)."""

from dataclasses import dataclass

__all__ = ["HeartbeatConfig", "MIN_REFRESH_INTERVAL_SEC"]

MIN_REFRESH_INTERVAL_SEC = 30
DEFAULT_REFRESH_INTERVAL_SEC = 60
DEFAULT_EXPIRE_TIME_SEC = 120


@dataclass(frozen=True)
class HeartbeatConfig:
    """Immutable settings of one heartbeat scheduler.

    Intervals are clamped at construction: refresh to at least 30 seconds,
    expiry to at least twice the refresh interval.

    Attributes:
        service_url: Base URL of the LanNS discovery service.
        app_name: Name announced for the application.
        app_description: Free-text description.
        app_port: Port the application listens on.
        app_url_path: Path under which the application is served.
        app_protocol: Protocol the application speaks.
        network_interface_filter: Semicolon-separated interface-name prefixes.
        refresh_interval_in_sec: Seconds between pulses.
        expire_time_in_sec: Seconds the service keeps an entry alive.
    """

    service_url: str
    app_name: str
    app_description: str = ""
    app_port: int | None = None
    app_url_path: str = ""
    app_protocol: str = "http"
    network_interface_filter: str = ""
    refresh_interval_in_sec: int = DEFAULT_REFRESH_INTERVAL_SEC
    expire_time_in_sec: int = DEFAULT_EXPIRE_TIME_SEC

    def __post_init__(self) -> None:
        refresh = max(MIN_REFRESH_INTERVAL_SEC, self.refresh_interval_in_sec or DEFAULT_REFRESH_INTERVAL_SEC)
        expire = max(2 * refresh, self.expire_time_in_sec or DEFAULT_EXPIRE_TIME_SEC)
        object.__setattr__(self, "refresh_interval_in_sec", refresh)
        object.__setattr__(self, "expire_time_in_sec", expire)

    @property
    def interface_prefixes(self) -> tuple[str, ...]:
        """Trimmed, non-empty entries of the interface filter, in order."""
        return tuple(p.strip() for p in self.network_interface_filter.split(";") if p.strip())
