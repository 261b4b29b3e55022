"""Identifiers and runtime configuration model."""

from __future__ import annotations

from dataclasses import dataclass

from .validation import validate_runtime_constraints

ADS_EXTENSION_ID = "mozacBrowserAds"
ADS_EXTENSION_RESOURCE_URL = "resource://android/assets/extensions/ads/"
ADS_MESSAGE_ID = "MozacBrowserAds"
ADS_MESSAGE_SESSION_URL_KEY = "url"
ADS_MESSAGE_DOCUMENT_URLS_KEY = "urls"

# The host transport rejects None replies.
MESSAGE_REPLY = "ok"

DEFAULT_USER_AGENT = "SearchAdsTelemetry/1.0"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_OUTPUT = "ads_events.csv"
ENDPOINT_ENV_VAR = "ADS_TELEMETRY_ENDPOINT"


@dataclass(frozen=True)
class ReplayConfig:
    """Validated configuration used by the replay pipeline."""

    input_path: str
    output: str = DEFAULT_OUTPUT
    endpoint: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    show_progress: bool = True

    def __post_init__(self) -> None:
        validate_runtime_constraints(
            input_path=self.input_path,
            output=self.output,
            endpoint=self.endpoint,
            request_timeout=self.request_timeout,
        )
