import logging
from collections.abc import Callable
from typing import Any

import pytest

from search_ads_telemetry.config import (
    ADS_EXTENSION_ID,
    ADS_EXTENSION_RESOURCE_URL,
    ADS_MESSAGE_ID,
    MESSAGE_REPLY,
)
from search_ads_telemetry.errors import MessageContractError
from search_ads_telemetry.events import SearchAdClicked, SearchWithAds
from search_ads_telemetry.models import SessionSnapshot
from search_ads_telemetry.sinks import MemorySink
from search_ads_telemetry.telemetry import (
    AdsTelemetry,
    AdsTelemetryContentMessageHandler,
    parse_ads_message,
)


class FakeExtension:
    def __init__(self) -> None:
        self.handlers: dict[tuple[int, str], Any] = {}

    def has_message_handler(self, session: Any, message_id: str) -> bool:
        return (id(session), message_id) in self.handlers

    def register_message_handler(self, session: Any, message_id: str, handler: Any) -> None:
        self.handlers[(id(session), message_id)] = handler


class FakeInstaller:
    def __init__(self, extension: FakeExtension | None = None) -> None:
        self._extension = extension
        self.calls: list[dict[str, Any]] = []

    def install_extension(
        self,
        extension_id: str,
        url: str,
        *,
        allow_content_messaging: bool,
        on_success: Callable[[Any], None],
        on_error: Callable[[str, BaseException], None],
    ) -> None:
        self.calls.append(
            {"id": extension_id, "url": url, "messaging": allow_content_messaging}
        )
        if self._extension is None:
            on_error(extension_id, RuntimeError("install failed"))
        else:
            on_success(self._extension)


class FakeStore:
    def __init__(self) -> None:
        self.listeners: list[Callable[[SessionSnapshot], None]] = []

    def subscribe(self, listener: Callable[[SessionSnapshot], None]) -> Callable[[], None]:
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    def publish(self, snapshot: SessionSnapshot) -> None:
        for listener in list(self.listeners):
            listener(snapshot)


def _telemetry() -> tuple[AdsTelemetry, MemorySink]:
    sink = MemorySink()
    return AdsTelemetry(sink, logger=logging.getLogger("test")), sink


def test_search_with_ads_emitted_for_google_page() -> None:
    telemetry, sink = _telemetry()
    handler = AdsTelemetryContentMessageHandler(telemetry)
    reply = handler.on_message(
        {
            "url": "https://www.google.com/search?q=shoes",
            "urls": [
                "https://www.googleadservices.com/pagead/aclk?sa=L",
                "https://example.com/shoes",
            ],
        }
    )
    assert reply == MESSAGE_REPLY
    assert reply
    assert sink.events == [SearchWithAds("google")]


def test_yahoo_page_never_reports_ads() -> None:
    telemetry, sink = _telemetry()
    handler = AdsTelemetryContentMessageHandler(telemetry)
    handler.on_message(
        {
            "url": "https://search.yahoo.com/search?p=x",
            "urls": ["https://www.googleadservices.com/pagead/aclk", "https://duckduckgo.com/y.js"],
        }
    )
    assert sink.events == []


def test_unknown_provider_page_is_ignored() -> None:
    telemetry, sink = _telemetry()
    handler = AdsTelemetryContentMessageHandler(telemetry)
    handler.on_message({"url": "https://example.com/", "urls": ["https://www.bing.com/aclk"]})
    assert sink.events == []


def test_message_as_json_text() -> None:
    telemetry, sink = _telemetry()
    handler = AdsTelemetryContentMessageHandler(telemetry)
    handler.on_message(
        '{"url": "https://www.bing.com/search?q=x", "urls": ["https://www.bing.com/aclk?x"]}'
    )
    assert sink.events == [SearchWithAds("bing")]


@pytest.mark.parametrize(
    "message",
    [
        {"url": "https://www.google.com/search?q=shoes"},
        {"urls": ["https://www.googleadservices.com/pagead/aclk"]},
        {"url": "https://www.google.com/search?q=shoes", "urls": "not-a-list"},
        {"url": 5, "urls": []},
        {"url": "https://www.google.com/search?q=shoes", "urls": [1, 2]},
        ["https://www.google.com/search?q=shoes"],
        "not json",
        b'\xff\xfe{"url":1}',
        None,
    ],
)
def test_malformed_message_raises_and_tracks_nothing(message: Any) -> None:
    telemetry, sink = _telemetry()
    handler = AdsTelemetryContentMessageHandler(telemetry)
    with pytest.raises(MessageContractError):
        handler.on_message(message)
    assert sink.events == []


def test_parse_ads_message_returns_fields() -> None:
    assert parse_ads_message({"url": "u", "urls": ["a", "b"]}) == ("u", ["a", "b"])


def test_track_ad_clicked_duckduckgo() -> None:
    telemetry, sink = _telemetry()
    telemetry.track_ad_clicked("https://duckduckgo.com/?q=x", ["https://duckduckgo.com/y.js?ad=1"])
    assert sink.events == [SearchAdClicked("duckduckgo")]


def test_track_ad_clicked_without_session_url() -> None:
    telemetry, sink = _telemetry()
    telemetry.track_ad_clicked(None, ["https://duckduckgo.com/y.js?ad=1"])
    assert sink.events == []


def test_track_ad_clicked_non_ad_path() -> None:
    telemetry, sink = _telemetry()
    telemetry.track_ad_clicked("https://www.google.com/search?q=x", ["https://example.com/"])
    assert sink.events == []


def test_install_registers_one_handler_per_session() -> None:
    telemetry, _sink = _telemetry()
    extension = FakeExtension()
    installer = FakeInstaller(extension)
    store = FakeStore()

    telemetry.install(installer, store)
    assert installer.calls == [
        {"id": ADS_EXTENSION_ID, "url": ADS_EXTENSION_RESOURCE_URL, "messaging": True}
    ]

    session = object()
    store.publish(SessionSnapshot(tab_id="tab-1", engine_session=session))
    first = extension.handlers[(id(session), ADS_MESSAGE_ID)]
    store.publish(SessionSnapshot(tab_id="tab-1", engine_session=session))

    assert len(extension.handlers) == 1
    assert extension.handlers[(id(session), ADS_MESSAGE_ID)] is first
    assert isinstance(first, AdsTelemetryContentMessageHandler)


def test_session_without_engine_session_is_skipped() -> None:
    telemetry, _sink = _telemetry()
    extension = FakeExtension()
    telemetry.on_session_changed(extension, SessionSnapshot(tab_id="tab-1"))
    assert extension.handlers == {}


def test_registered_handler_reports_to_sink() -> None:
    telemetry, sink = _telemetry()
    extension = FakeExtension()
    store = FakeStore()
    telemetry.install(FakeInstaller(extension), store)

    session = object()
    store.publish(SessionSnapshot(tab_id="tab-2", engine_session=session))
    handler = extension.handlers[(id(session), ADS_MESSAGE_ID)]
    handler.on_message(
        {"url": "https://www.bing.com/search?q=x", "urls": ["https://www.bing.com/aclick?x"]}
    )
    assert sink.events == [SearchWithAds("bing")]


def test_install_failure_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    telemetry, _sink = _telemetry()
    store = FakeStore()
    with caplog.at_level(logging.ERROR, logger="test"):
        telemetry.install(FakeInstaller(extension=None), store)
    assert "Could not install ads extension" in caplog.text
    assert store.listeners == []


def test_reinstall_replaces_previous_subscription() -> None:
    telemetry, _sink = _telemetry()
    store = FakeStore()
    telemetry.install(FakeInstaller(FakeExtension()), store)
    telemetry.install(FakeInstaller(FakeExtension()), store)
    assert len(store.listeners) == 1

    telemetry.uninstall()
    assert store.listeners == []


def test_uninstall_stops_session_updates() -> None:
    telemetry, _sink = _telemetry()
    extension = FakeExtension()
    store = FakeStore()
    telemetry.install(FakeInstaller(extension), store)
    telemetry.uninstall()

    store.publish(SessionSnapshot(tab_id="tab-3", engine_session=object()))
    assert store.listeners == []
    assert extension.handlers == {}
