"""Configuration check for container orchestration."""

import logging

from lanns_ticker.adapters.driven.config.settings import load_settings
from lanns_ticker.adapters.driven.logging.logging_config import configure_logs

__all__ = ["main"]

logger = logging.getLogger(__name__)


def main() -> int:
    """Check that the ticker configuration loads.

    Validates that the required environment variables are set and that
    the service URL and intervals are valid.

    Returns:
        0 if healthy, 1 if unhealthy.
    """
    configure_logs()

    try:
        _ = load_settings().to_config()
    except Exception as exc:
        logger.error(f"Ticker healthcheck FAILED: {exc}")
        return 1

    logger.info("Ticker healthcheck OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
