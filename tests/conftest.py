from __future__ import annotations

from pathlib import Path

import pytest

from services.clipper.config import ClipperSettings


@pytest.fixture
def settings(tmp_path: Path) -> ClipperSettings:
    scratch = tmp_path / "scratch"
    public = tmp_path / "public"
    scratch.mkdir()
    (public / "clips").mkdir(parents=True)
    return ClipperSettings(
        scratch_root=str(scratch),
        public_root=str(public),
        clips_subdir="clips",
        ytdlp_binary="yt-dlp",
        ffmpeg_binary="ffmpeg",
        acquire_timeout_s=5,
        extract_timeout_s=5,
        allowed_hosts=(),
    )
