from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from .config import ClipperSettings


@dataclass(frozen=True)
class WorkItem:
    """Paths owned by one clip request.

    ``scratch_dir`` is private to the request; the fetch tool may leave
    fragments next to ``temp_input_path`` and they all go with the directory.
    """

    scratch_dir: Path
    temp_input_path: Path
    output_path: Path
    public_ref: str


def unique_token() -> str:
    # Nanosecond clock plus a random suffix, so two calls in the same tick still differ.
    return f"{time.time_ns()}-{uuid.uuid4().hex[:12]}"


def allocate_work_item(settings: ClipperSettings, extension: str = "mp4") -> WorkItem:
    """Build the scratch and public paths for one request. Creates nothing on disk."""
    scratch_dir = Path(settings.scratch_root) / f"video-{unique_token()}"
    output_name = f"clip-{unique_token()}.{extension}"
    return WorkItem(
        scratch_dir=scratch_dir,
        temp_input_path=scratch_dir / f"source.{extension}",
        output_path=settings.clips_dir / output_name,
        public_ref=f"{settings.public_prefix}/{output_name}",
    )
