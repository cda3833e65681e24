import pytest

from services.clipper.validators import (
    BAD_ORDER_MESSAGE,
    BAD_TIMESTAMP_MESSAGE,
    MISSING_FIELDS_MESSAGE,
    Timestamp,
    ValidationError,
    parse_timestamp,
    parse_timestamps,
    validate_time_range,
    validate_video_url,
)


@pytest.mark.parametrize(
    "raw,expected",
    [("00:30", 30), ("01:15", 75), ("5:07", 307), ("59:59", 3599), ("0:00", 0)],
)
def test_parse_timestamp_accepts_mm_ss(raw: str, expected: int) -> None:
    assert parse_timestamp(raw).total_seconds == expected


@pytest.mark.parametrize("raw", ["99:99", "60:00", "00:60", "1:5", "123:00", "00-30", "", "aa:bb", "1:02:03"])
def test_parse_timestamp_rejects_malformed(raw: str) -> None:
    with pytest.raises(ValidationError) as info:
        parse_timestamp(raw)
    assert str(info.value) == BAD_TIMESTAMP_MESSAGE


def test_timestamp_serializes_for_ffmpeg() -> None:
    assert str(Timestamp(minutes=1, seconds=5)) == "01:05"
    assert str(parse_timestamp("0:00")) == "00:00"


def test_parse_timestamps_preserves_ordering() -> None:
    start, end = parse_timestamps("00:30", "01:15")
    assert start.total_seconds < end.total_seconds


def test_parse_timestamps_does_not_check_order() -> None:
    start, end = parse_timestamps("02:00", "01:00")
    assert start.total_seconds > end.total_seconds


def test_parse_timestamps_missing_field() -> None:
    try:
        parse_timestamps("00:10", None)
    except ValidationError as exc:
        assert str(exc) == MISSING_FIELDS_MESSAGE
    else:
        assert False, "Expected ValidationError"


@pytest.mark.parametrize("start,end", [("00:10", "00:10"), ("01:00", "00:59")])
def test_validate_time_range_rejects_non_positive_window(start: str, end: str) -> None:
    with pytest.raises(ValidationError, match=BAD_ORDER_MESSAGE):
        validate_time_range(parse_timestamp(start), parse_timestamp(end))


def test_validate_time_range_accepts_one_second_clip() -> None:
    validate_time_range(parse_timestamp("00:00"), parse_timestamp("00:01"))


def test_validate_video_url() -> None:
    assert validate_video_url(" https://youtu.be/abc ") == "https://youtu.be/abc"
    with pytest.raises(ValidationError):
        validate_video_url("ftp://example.com/video.mp4")
    with pytest.raises(ValidationError):
        validate_video_url("not a url")
    with pytest.raises(ValidationError, match="not allowed"):
        validate_video_url("https://evil.example/v", allowed_hosts=("youtube.com",))
