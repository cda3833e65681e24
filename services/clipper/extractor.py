from __future__ import annotations

import logging
from pathlib import Path

from .config import ClipperSettings
from .downloader import CommandError, ExtractionError, run_command
from .validators import Timestamp

logger = logging.getLogger(__name__)


def build_extract_command(
    source_path: Path,
    start: Timestamp,
    end: Timestamp,
    dest_path: Path,
    settings: ClipperSettings,
) -> list[str]:
    # Stream copy only: the cut lands on the keyframe at or before ``start``.
    return [
        settings.ffmpeg_binary,
        "-hide_banner",
        "-loglevel",
        "error",
        "-y",
        "-i",
        str(source_path),
        "-ss",
        str(start),
        "-to",
        str(end),
        "-c",
        "copy",
        str(dest_path),
    ]


def discard_partial_output(dest_path: Path) -> None:
    try:
        dest_path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("could not remove partial output %s: %s", dest_path, exc)


def extract_range(
    source_path: Path,
    start: Timestamp,
    end: Timestamp,
    dest_path: Path,
    settings: ClipperSettings,
) -> Path:
    command = build_extract_command(source_path, start, end, dest_path, settings)
    try:
        run_command(command, settings.extract_timeout_s, ExtractionError, stage="extracting")
        if not dest_path.is_file() or dest_path.stat().st_size == 0:
            raise ExtractionError(f"ffmpeg produced no output at {dest_path}", command=command)
    except CommandError:
        discard_partial_output(dest_path)
        raise
    return dest_path
