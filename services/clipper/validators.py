from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlparse

# Minutes may be unpadded, seconds always take two digits.
TIMESTAMP_PATTERN = re.compile(r"^([0-5]?\d):([0-5]\d)$")

MISSING_FIELDS_MESSAGE = "Missing required parameters."
BAD_TIMESTAMP_MESSAGE = "Invalid timestamp format. Please use MM:SS."
BAD_ORDER_MESSAGE = "End time must be after start time."


class ValidationError(ValueError):
    pass


@dataclass(frozen=True)
class Timestamp:
    """An ``MM:SS`` offset into the source video."""

    minutes: int
    seconds: int

    @property
    def total_seconds(self) -> int:
        return self.minutes * 60 + self.seconds

    def __str__(self) -> str:
        return f"{self.minutes:02d}:{self.seconds:02d}"


def parse_timestamp(raw: str) -> Timestamp:
    match = TIMESTAMP_PATTERN.match(raw.strip()) if isinstance(raw, str) else None
    if match is None:
        raise ValidationError(BAD_TIMESTAMP_MESSAGE)
    return Timestamp(minutes=int(match.group(1)), seconds=int(match.group(2)))


def parse_timestamps(raw_start: str | None, raw_end: str | None) -> tuple[Timestamp, Timestamp]:
    """Parse both ends of the requested window without checking their order."""
    if not raw_start or not raw_end:
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    return parse_timestamp(raw_start), parse_timestamp(raw_end)


def validate_time_range(start: Timestamp, end: Timestamp) -> None:
    if end.total_seconds <= start.total_seconds:
        raise ValidationError(BAD_ORDER_MESSAGE)


def validate_video_url(video_url: str | None, allowed_hosts: tuple[str, ...] = ()) -> str:
    if not video_url or not video_url.strip():
        raise ValidationError(MISSING_FIELDS_MESSAGE)

    video_url = video_url.strip()
    parsed = urlparse(video_url)
    host = (parsed.hostname or "").lower()
    if parsed.scheme not in {"http", "https"} or not host:
        raise ValidationError("Only http/https URLs are allowed")

    if allowed_hosts and host not in allowed_hosts:
        raise ValidationError(
            f"Host '{host}' is not allowed. Allowed hosts: {', '.join(sorted(allowed_hosts))}"
        )
    return video_url
