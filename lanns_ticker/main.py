"""Application entrypoint: announce an app to LanNS until terminated."""

import asyncio
import logging

from lanns_ticker.adapters.driven.config.settings import load_settings
from lanns_ticker.adapters.driven.http.client import HttpClient
from lanns_ticker.adapters.driven.logging.logging_config import configure_logs
from lanns_ticker.adapters.driven.metrics.pulse_metrics import PulseMetrics
from lanns_ticker.adapters.driven.network.interfaces import list_interfaces
from lanns_ticker.adapters.driving.signals import make_stop_on_sigterm
from lanns_ticker.core.ticker import HeartbeatScheduler

__all__ = ["main", "run", "report_pulse_error"]

logger = logging.getLogger(__name__)


def report_pulse_error(error: Exception) -> None:
    """Log a pulse failure; the ticker keeps running."""
    logger.warning(f"LanNS pulse failed ({getattr(error, 'code', type(error).__name__)}): {error}")


async def main() -> None:
    """Start the LanNS ticker.

    Startup sequence:
    1. Configure logging.
    2. Load and validate configuration.
    3. Start pulsing through a shared HTTP client.
    4. Shut down gracefully on SIGTERM/SIGINT.
    """
    configure_logs()
    logger.info("Starting LanNS ticker...")

    try:
        config = load_settings().to_config()
    except (RuntimeError, ValueError) as exc:
        logger.error(
            "Configuration error: %s\n"
            "Hint: check LANNS_URL, LANNS_APP_NAME and the optional LANNS_* variables.",
            exc,
        )
        return

    stop = make_stop_on_sigterm()

    async with HttpClient() as http:
        ticker = HeartbeatScheduler(
            config,
            http,
            interfaces_fn=list_interfaces,
            metrics=PulseMetrics(),
        )
        try:
            ticker.start(report_pulse_error)
            await stop.wait()
        except Exception as e:
            logger.error(f"Unhandled exception in ticker: {e}", exc_info=True)
        finally:
            await ticker.shutdown()

        logger.info("LanNS ticker stopped.")


def run() -> None:
    """Console-script entrypoint."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user (Ctrl+C).")


if __name__ == "__main__":
    run()
