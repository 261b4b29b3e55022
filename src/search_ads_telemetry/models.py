"""Protocols for host collaborators and lightweight model types."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from .events import TelemetryEvent


class TelemetrySink(Protocol):
    """Contract for the downstream metrics recorder."""

    def track(self, event: TelemetryEvent) -> None:
        """Record one event; the result is never consumed."""


class MessageHandler(Protocol):
    """Contract for content message handlers registered on a web extension."""

    def on_message(self, message: Any, source: Any | None = None) -> Any:
        """Handle one message; must return a non-None reply."""


class WebExtension(Protocol):
    """Handle to an installed web extension."""

    def has_message_handler(self, session: Any, message_id: str) -> bool:
        """Return True if a handler is registered for this session and channel."""

    def register_message_handler(
        self, session: Any, message_id: str, handler: MessageHandler
    ) -> None:
        """Register a content message handler for this session and channel."""


class ExtensionInstaller(Protocol):
    """Contract for the host engine that installs web extensions."""

    def install_extension(
        self,
        extension_id: str,
        url: str,
        *,
        allow_content_messaging: bool,
        on_success: Callable[[WebExtension], None],
        on_error: Callable[[str, BaseException], None],
    ) -> None:
        """Install an extension and report the outcome through a callback."""


@dataclass(frozen=True)
class SessionSnapshot:
    """A tab together with its current engine session, if it has one."""

    tab_id: str
    engine_session: Any | None = None


SessionListener = Callable[[SessionSnapshot], None]


class SessionStore(Protocol):
    """Feed of session snapshots.

    The store notifies listeners only when a tab's engine session identity
    changes, serially per session.
    """

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener and return a callable that unsubscribes it."""
