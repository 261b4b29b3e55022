"""CSV serialization helpers."""

from __future__ import annotations

import csv
from datetime import datetime, timezone
from pathlib import Path

from .events import TelemetryEvent

CSV_FIELDS = [
    "event",
    "provider",
    "source",
    "recorded_at_utc",
]


def event_to_row(event: TelemetryEvent, source: str, now: datetime | None = None) -> dict[str, str]:
    """Flatten an event into a CSV row tagged with the record it came from."""
    recorded_at = now or datetime.now(timezone.utc)
    return {
        "event": event.event_name,
        "provider": event.provider_name,
        "source": source,
        "recorded_at_utc": recorded_at.isoformat().replace("+00:00", "Z"),
    }


def write_rows(path: str, rows: list[dict[str, str]]) -> None:
    """Write event rows to CSV with stable schema."""
    output_path = Path(path)
    with output_path.open("w", newline="", encoding="utf-8") as file_obj:
        writer = csv.DictWriter(file_obj, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
