"""Telemetry sinks: in-memory, logging, HTTP upload and fan-out."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from threading import Lock

from requests import Session
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from .errors import SinkError
from .events import TelemetryEvent
from .models import TelemetrySink
from .validation import is_supported_url


def make_retry_session(user_agent: str) -> Session:
    """Create requests session with retry/backoff defaults."""
    session = Session()
    session.headers.update({"User-Agent": user_agent})
    retry = Retry(
        total=3,
        backoff_factor=0.6,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=frozenset({"POST"}),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class MemorySink:
    """Keeps tracked events in arrival order."""

    def __init__(self) -> None:
        self._events: list[TelemetryEvent] = []
        self._lock = Lock()

    @property
    def events(self) -> list[TelemetryEvent]:
        with self._lock:
            return list(self._events)

    def track(self, event: TelemetryEvent) -> None:
        with self._lock:
            self._events.append(event)

    def drain(self) -> list[TelemetryEvent]:
        """Return the collected events and start over with an empty buffer."""
        with self._lock:
            events, self._events = self._events, []
        return events


class LoggingSink:
    """Writes each event to the log."""

    def __init__(self, *, logger: logging.Logger) -> None:
        self._logger = logger

    def track(self, event: TelemetryEvent) -> None:
        self._logger.info("Telemetry %s provider=%s", event.event_name, event.provider_name)


class HttpSink:
    """Uploads events as JSON; upload failures are logged, never raised."""

    def __init__(
        self,
        *,
        session: Session,
        endpoint: str,
        timeout: float,
        logger: logging.Logger,
    ) -> None:
        if not is_supported_url(endpoint):
            raise SinkError(f"Unsupported telemetry endpoint: {endpoint}")
        self._session = session
        self._endpoint = endpoint
        self._timeout = timeout
        self._logger = logger

    def track(self, event: TelemetryEvent) -> None:
        payload = dict(event.as_dict())
        payload["recorded_at_utc"] = (
            datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        )
        try:
            response = self._session.post(self._endpoint, json=payload, timeout=self._timeout)
            response.raise_for_status()
        except RequestException as exc:
            self._logger.warning("Telemetry upload failed for %s: %s", event.event_name, exc)


class FanOutSink:
    """Forwards every event to each wrapped sink in order."""

    def __init__(self, sinks: Iterable[TelemetrySink]) -> None:
        self._sinks = tuple(sinks)

    def track(self, event: TelemetryEvent) -> None:
        for sink in self._sinks:
            sink.track(event)
