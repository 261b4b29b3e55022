"""Replay recorded page and click observations through the ads engine."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from tqdm import tqdm

from .config import ReplayConfig
from .errors import MessageContractError
from .io_csv import event_to_row, write_rows
from .models import TelemetrySink
from .sinks import FanOutSink, HttpSink, LoggingSink, MemorySink, make_retry_session
from .telemetry import AdsTelemetry, AdsTelemetryContentMessageHandler
from .validation import load_records

PAGE_RECORD = "page"
CLICK_RECORD = "click"


def _click_arguments(record: dict[str, Any]) -> tuple[str | None, list[str]]:
    session_url = record.get("session_url")
    url_path = record.get("url_path")
    if session_url is not None and not isinstance(session_url, str):
        raise MessageContractError(f"Click record session_url must be a string: {record!r}")
    if not isinstance(url_path, list) or not all(isinstance(item, str) for item in url_path):
        raise MessageContractError(f"Click record url_path must be a list of strings: {record!r}")
    return session_url, url_path


def replay_record(
    record: dict[str, Any],
    *,
    telemetry: AdsTelemetry,
    handler: AdsTelemetryContentMessageHandler,
) -> None:
    """Route one record to the content message handler or the click tracker."""
    record_type = record.get("type")
    if record_type == PAGE_RECORD:
        message = {key: value for key, value in record.items() if key != "type"}
        handler.on_message(message)
    elif record_type == CLICK_RECORD:
        session_url, url_path = _click_arguments(record)
        telemetry.track_ad_clicked(session_url, url_path)
    else:
        raise MessageContractError(f"Unknown record type: {record_type!r}")


def replay_records(
    records: Iterable[dict[str, Any]],
    *,
    sink: TelemetrySink,
    show_progress: bool = False,
    logger: logging.Logger,
) -> list[dict[str, str]]:
    """Replay records in order and return one CSV row per emitted event."""
    memory = MemorySink()
    telemetry = AdsTelemetry(FanOutSink([memory, sink]), logger=logger)
    handler = AdsTelemetryContentMessageHandler(telemetry)

    iterator: Iterable[dict[str, Any]] = records
    if show_progress:
        iterator = tqdm(records, desc="replaying observations")

    rows: list[dict[str, str]] = []
    for record in iterator:
        replay_record(record, telemetry=telemetry, handler=handler)
        source = str(record.get("type"))
        rows.extend(event_to_row(event, source) for event in memory.drain())
    logger.info("Emitted %d telemetry events", len(rows))
    return rows


def run_replay(config: ReplayConfig, *, logger: logging.Logger) -> str:
    """Build concrete sinks, replay the input file, and write CSV output."""
    records = load_records(config.input_path)
    logger.info("Loaded %d records from %s", len(records), config.input_path)

    sinks: list[TelemetrySink] = [LoggingSink(logger=logger)]
    if config.endpoint:
        sinks.append(
            HttpSink(
                session=make_retry_session(config.user_agent),
                endpoint=config.endpoint,
                timeout=config.request_timeout,
                logger=logger,
            )
        )
    rows = replay_records(
        records,
        sink=FanOutSink(sinks),
        show_progress=config.show_progress,
        logger=logger,
    )
    write_rows(config.output, rows)
    return config.output
