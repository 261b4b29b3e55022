"""Telemetry events emitted by the ads engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class TelemetryEvent:
    """Base event carrying the provider it is attributed to."""

    event_name: ClassVar[str] = "telemetry_event"

    provider_name: str

    def as_dict(self) -> dict[str, str]:
        return {"event": self.event_name, "provider": self.provider_name}


@dataclass(frozen=True)
class SearchWithAds(TelemetryEvent):
    """A results page of a known provider contained at least one ad URL."""

    event_name: ClassVar[str] = "search_with_ads"


@dataclass(frozen=True)
class SearchAdClicked(TelemetryEvent):
    """The user navigated into an ad URL descending from a provider page."""

    event_name: ClassVar[str] = "search_ad_clicked"
