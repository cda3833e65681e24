from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ClipperSettings:
    """Runtime settings for clip requests."""

    scratch_root: str = os.getenv("CLIPPER_SCRATCH_ROOT", tempfile.gettempdir())
    public_root: str = os.getenv("CLIPPER_PUBLIC_ROOT", "public")
    clips_subdir: str = os.getenv("CLIPPER_CLIPS_SUBDIR", "clips")
    ytdlp_binary: str = os.getenv("CLIPPER_YTDLP_BINARY", "yt-dlp")
    ffmpeg_binary: str = os.getenv("CLIPPER_FFMPEG_BINARY", "ffmpeg")
    format_preference: str = os.getenv(
        "CLIPPER_FORMAT_PREFERENCE",
        "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best",
    )
    acquire_timeout_s: int = int(os.getenv("CLIPPER_ACQUIRE_TIMEOUT_S", "900"))
    extract_timeout_s: int = int(os.getenv("CLIPPER_EXTRACT_TIMEOUT_S", "300"))
    allowed_hosts: tuple[str, ...] = tuple(
        h.strip().lower()
        for h in os.getenv("CLIPPER_ALLOWED_HOSTS", "").split(",")
        if h.strip()
    )

    @property
    def clips_dir(self) -> Path:
        return Path(self.public_root) / self.clips_subdir

    @property
    def public_prefix(self) -> str:
        return "/" + self.clips_subdir.strip("/")
