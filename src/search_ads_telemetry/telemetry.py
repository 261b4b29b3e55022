"""Ads telemetry bridge between the host browser and the provider catalog."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from typing import Any

from .config import (
    ADS_EXTENSION_ID,
    ADS_EXTENSION_RESOURCE_URL,
    ADS_MESSAGE_DOCUMENT_URLS_KEY,
    ADS_MESSAGE_ID,
    ADS_MESSAGE_SESSION_URL_KEY,
    MESSAGE_REPLY,
)
from .errors import MessageContractError
from .events import SearchAdClicked, SearchWithAds
from .logging_utils import get_logger
from .matching import contains_ads, resolve_provider
from .models import ExtensionInstaller, SessionSnapshot, SessionStore, TelemetrySink, WebExtension
from .providers import PROVIDERS, SearchProviderModel


def parse_ads_message(message: Any) -> tuple[str, list[str]]:
    """Return ``(url, urls)`` from a content message or raise MessageContractError."""
    if isinstance(message, (str, bytes)):
        try:
            message = json.loads(message)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MessageContractError(f"Received unexpected message: {message!r}") from exc
    if not isinstance(message, dict):
        raise MessageContractError(f"Received unexpected message: {message!r}")

    url = message.get(ADS_MESSAGE_SESSION_URL_KEY)
    if not isinstance(url, str):
        raise MessageContractError(
            f"Message field {ADS_MESSAGE_SESSION_URL_KEY!r} must be a string: {message!r}"
        )
    urls = message.get(ADS_MESSAGE_DOCUMENT_URLS_KEY)
    if not isinstance(urls, list) or not all(isinstance(item, str) for item in urls):
        raise MessageContractError(
            f"Message field {ADS_MESSAGE_DOCUMENT_URLS_KEY!r} must be a list of strings: "
            f"{message!r}"
        )
    return url, urls


class AdsTelemetry:
    """Reports searches with ads and ad clicks for known search providers."""

    def __init__(
        self,
        sink: TelemetrySink,
        *,
        providers: tuple[SearchProviderModel, ...] = PROVIDERS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._sink = sink
        self._providers = providers
        self._logger = logger or get_logger()
        self._unsubscribe: Callable[[], None] | None = None

    def install(self, installer: ExtensionInstaller, store: SessionStore) -> None:
        """Install the ads web extension and start watching engine sessions."""

        def on_success(extension: WebExtension) -> None:
            self._logger.debug("Installed ads extension")
            self.uninstall()
            self._unsubscribe = store.subscribe(
                lambda snapshot: self.on_session_changed(extension, snapshot)
            )

        def on_error(extension_id: str, error: BaseException) -> None:
            self._logger.error(
                "Could not install ads extension %s", extension_id, exc_info=error
            )

        installer.install_extension(
            ADS_EXTENSION_ID,
            ADS_EXTENSION_RESOURCE_URL,
            allow_content_messaging=True,
            on_success=on_success,
            on_error=on_error,
        )

    def uninstall(self) -> None:
        """Stop watching sessions; registered handlers stay in place."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_session_changed(self, extension: WebExtension, snapshot: SessionSnapshot) -> None:
        """Attach the content message handler to a new engine session once."""
        engine_session = snapshot.engine_session
        if engine_session is None:
            return
        if extension.has_message_handler(engine_session, ADS_MESSAGE_ID):
            return
        self._logger.debug("Registering ads message handler for tab %s", snapshot.tab_id)
        extension.register_message_handler(
            engine_session, ADS_MESSAGE_ID, AdsTelemetryContentMessageHandler(self)
        )

    def track_ad_clicked(self, session_url: str | None, url_path: Sequence[str]) -> None:
        """Report an ad click when the navigation path holds an ad URL of the session's provider."""
        if session_url is None:
            return
        provider = resolve_provider(session_url, self._providers)
        if provider is not None and contains_ads(provider, url_path):
            self._sink.track(SearchAdClicked(provider.name))

    def track_search_with_ads(self, url: str, urls: Sequence[str]) -> None:
        provider = resolve_provider(url, self._providers)
        if provider is not None and contains_ads(provider, urls):
            self._sink.track(SearchWithAds(provider.name))


class AdsTelemetryContentMessageHandler:
    """Receives document URLs from the ads content script of one session."""

    def __init__(self, telemetry: AdsTelemetry) -> None:
        self._telemetry = telemetry

    def on_message(self, message: Any, source: Any | None = None) -> Any:
        url, urls = parse_ads_message(message)
        self._telemetry.track_search_with_ads(url, urls)
        return MESSAGE_REPLY
