"""Heartbeat scheduler that periodically announces the app to a LanNS service."""

import asyncio
import json
import logging
import socket
from collections.abc import Callable
from typing import Any

from lanns_ticker.core.addressing import resolve_private_ip
from lanns_ticker.errors import DiscoveryServiceError, ProtocolError, SerializationError
from lanns_ticker.ports.http import HttpClientPort
from lanns_ticker.ports.metrics import MetricsPort, PulseAttemptDto
from lanns_ticker.ports.network import InterfacesFn
from lanns_ticker.ports.settings import HeartbeatConfig

__all__ = ["HeartbeatScheduler", "OnError", "log_error"]

logger = logging.getLogger(__name__)

OnError = Callable[[Exception], None]

PULSE_PATH = "/api"
USER_AGENT = "LanNS Client"
CONTENT_TYPE = "text/plain"


def log_error(error: Exception) -> None:
    """Default error handler: log the failure and keep going."""
    logger.error(f"LanNS pulse failed: {error}")


def _chained(error: Exception, cause: BaseException) -> Exception:
    error.__cause__ = cause
    return error


class HeartbeatScheduler:
    """Announce an application to a LanNS discovery service on a timer.

    States are Stopped (initial) and Running. start() while running is a
    no-op, so at most one timer task exists per instance. Each pulse runs in
    its own task (fire-and-forget): a slow discovery service never delays the
    schedule, and overlapping pulses are allowed.

    All errors of a pulse are delivered to the on_error callback; none escape
    the timer. Everything runs on a single event loop, so no locking is needed.
    """

    def __init__(
        self,
        config: HeartbeatConfig,
        client: HttpClientPort,
        *,
        interfaces_fn: InterfacesFn,
        hostname_fn: Callable[[], str] = socket.gethostname,
        metrics: MetricsPort | None = None,
    ) -> None:
        """Initialize the scheduler in the Stopped state.

        Args:
            config: Immutable heartbeat settings.
            client: HTTP client used to post pulses.
            interfaces_fn: Returns interface name -> addresses; called on every pulse.
            hostname_fn: Returns the announced hostname.
            metrics: Optional collector updated after every pulse.
        """
        self.config = config
        self.client = client
        self.interfaces_fn = interfaces_fn
        self.hostname_fn = hostname_fn
        self.metrics = metrics
        self._timer: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def is_running(self) -> bool:
        """True while the recurring timer is armed."""
        return self._timer is not None

    def start(self, on_error: OnError | None = None) -> "HeartbeatScheduler":
        """Fire one pulse now and arm the recurring timer.

        Must be called from a running event loop. No-op when already running.

        Args:
            on_error: Receives every pulse failure; defaults to logging it.

        Returns:
            Self, for chaining.
        """
        if self._timer is None:
            loop = asyncio.get_running_loop()
            self._fire(on_error, scheduled_at=loop.time())
            self._timer = loop.create_task(self._run_timer(on_error))
            logger.info(
                f"LanNS ticker started: app={self.config.app_name}, "
                f"service={self.config.service_url}, "
                f"every {self.config.refresh_interval_in_sec}s"
            )
        return self

    def stop(self) -> "HeartbeatScheduler":
        """Cancel future pulses. Pulses already in flight still complete.

        Returns:
            Self, for chaining.
        """
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.info("LanNS ticker stopped.")
        return self

    def restart(self, on_error: OnError | None = None) -> "HeartbeatScheduler":
        """Stop, then start again with a fresh timer."""
        return self.stop().start(on_error)

    async def shutdown(self) -> None:
        """Stop the timer, then cancel and await in-flight pulses."""
        timer = self._timer
        self.stop()
        tasks = [task for task in (timer, *self._pending) if task is not None]
        for task in self._pending:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_timer(self, on_error: OnError | None) -> None:
        """Fire a pulse every refresh interval on a monotonic schedule."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            next_tick += self.config.refresh_interval_in_sec
            await asyncio.sleep(max(0, next_tick - loop.time()))
            self._fire(on_error, scheduled_at=next_tick)

    def _fire(self, on_error: OnError | None, scheduled_at: float) -> None:
        """Run one pulse in the background."""
        task = asyncio.get_running_loop().create_task(self._run_once(on_error, scheduled_at))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_once(self, on_error: OnError | None, scheduled_at: float) -> None:
        try:
            await self.pulse(on_error, scheduled_at=scheduled_at)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Unexpected error in pulse task: {e}", exc_info=True)

    def build_payload(self, private_ip: str) -> dict[str, Any]:
        """Build the pulse message for the discovery service."""
        config = self.config
        return {
            "name": "pulse",
            "parameters": {
                "appname": config.app_name,
                "description": config.app_description,
                "expiretimeinseconds": config.expire_time_in_sec,
                "hostname": self.hostname_fn(),
                "port": config.app_port,
                "urlpath": config.app_url_path,
                "protocol": config.app_protocol,
                "privateip": private_ip,
            },
        }

    async def pulse(self, on_error: OnError | None = None, *, scheduled_at: float | None = None) -> None:
        """Send one pulse.

        Steps:
        1. Resolve the private LAN address; if there is none, skip silently.
        2. Serialize the payload; failures go to on_error.
        3. POST it to <service_url>/api as text/plain.
        4. Check the JSON reply; a falsy "succeed" reports its "error" field.

        Args:
            on_error: Receives every failure; defaults to logging it.
            scheduled_at: Loop time the pulse was due, for metrics.
        """
        report = self._reporter(on_error or log_error)
        loop = asyncio.get_running_loop()
        scheduled = loop.time() if scheduled_at is None else scheduled_at

        try:
            private_ip = resolve_private_ip(self.interfaces_fn(), self.config.interface_prefixes)
        except Exception as e:  # noqa: BLE001
            report(e)
            return
        if private_ip is None:
            logger.debug("No private address found, pulse skipped.")
            return

        try:
            body = json.dumps(self.build_payload(private_ip))
        except (TypeError, ValueError) as e:
            report(_chained(SerializationError(f"Pulse payload is not JSON serializable: {e}"), e))
            return

        url = self.config.service_url.rstrip("/") + PULSE_PATH
        fired = loop.time()
        status_code: int | None = None
        try:
            result = await self.client.post(
                url,
                body,
                headers={"User-Agent": USER_AGENT, "Content-Type": CONTENT_TYPE},
            )
        except Exception as e:  # noqa: BLE001
            report(_chained(DiscoveryServiceError(f"Problem with LanNS request: {e}"), e))
            status_code = getattr(e, "status_code", None)
            failed = True
        else:
            status_code = result.status_code
            failed = not self._check_reply(result.body, report)

        if self.metrics:
            self.metrics.update(
                PulseAttemptDto(
                    scheduled_at_sec=scheduled,
                    fired_at_sec=fired,
                    is_failed=failed,
                    status_code=status_code,
                )
            )
            logger.debug(f"Pulse metrics: {self.metrics}")

    @staticmethod
    def _check_reply(body: str, report: OnError) -> bool:
        """Validate the service reply; report and return False on failure."""
        try:
            reply = json.loads(body)
        except ValueError as e:
            report(_chained(ProtocolError(f"Invalid JSON from LanNS service: {e}"), e))
            return False

        if not isinstance(reply, dict):
            report(ProtocolError(f"Unexpected LanNS reply: {body[:200]!r}"))
            return False

        if not reply.get("succeed"):
            detail = reply.get("error")
            message = str(detail) if detail is not None else "LanNS service reported failure"
            report(ProtocolError(message, detail=detail))
            return False

        return True

    @staticmethod
    def _reporter(on_error: OnError) -> OnError:
        """Wrap on_error so a failing handler cannot break the tick."""

        def report(error: Exception) -> None:
            try:
                on_error(error)
            except Exception:  # noqa: BLE001
                logger.exception("on_error handler raised")

        return report
