"""Tiny helpers for protobuf JSON durations and timestamps."""

from datetime import date, datetime, timezone
from typing import Optional, Union


def parse_duration_seconds(value: Optional[Union[str, int, float]]) -> int:
    if value is None or value == "":
        return 0  # omitted zero duration
    if isinstance(value, (int, float)):
        return int(value)
    text = value.strip()
    if not text.endswith("s"):
        raise ValueError(f"Invalid duration: {value!r}")
    return int(float(text[:-1]))  # whole seconds, fraction dropped


def format_duration(seconds: int) -> str:
    return f"{int(seconds)}s"  # '123s'


def epoch_to_timestamp(seconds: int) -> str:
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")  # RFC 3339, UTC


def now_timestamp() -> str:
    dt = datetime.now(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_timestamp(value: Union[date, datetime]) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)  # YAML timestamps without offset are UTC
        return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return f"{value.isoformat()}T00:00:00Z"
