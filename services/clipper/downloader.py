from __future__ import annotations

import logging
import os
import signal
import subprocess
from pathlib import Path

from .config import ClipperSettings

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    """An external tool exited badly. ``diagnostic`` holds its captured output."""

    def __init__(self, message: str, command: list[str] | None = None, diagnostic: str = "") -> None:
        super().__init__(message)
        self.command = command or []
        self.diagnostic = diagnostic


class AcquisitionError(CommandError):
    pass


class ExtractionError(CommandError):
    pass


class StageTimeoutError(CommandError):
    def __init__(self, message: str, stage: str, command: list[str] | None = None, diagnostic: str = "") -> None:
        super().__init__(message, command=command, diagnostic=diagnostic)
        self.stage = stage


def _captured(stdout: str | bytes | None, stderr: str | bytes | None) -> str:
    parts = []
    for stream in (stderr, stdout):
        if not stream:
            continue
        if isinstance(stream, bytes):
            stream = stream.decode("utf-8", errors="replace")
        parts.append(stream.strip())
    return "\n".join(p for p in parts if p)


def _kill_process_group(process: subprocess.Popen) -> None:
    # The tool runs as a session leader, so its pid is also the group id of
    # every helper it spawned (yt-dlp's ffmpeg merge, for one).
    if hasattr(os, "killpg"):
        try:
            os.killpg(process.pid, signal.SIGKILL)
            return
        except ProcessLookupError:
            return
        except PermissionError:
            pass
    process.kill()


def _communicate(command: list[str], timeout_s: float) -> subprocess.CompletedProcess:
    with subprocess.Popen(
        command,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        encoding="utf-8",
        errors="replace",
        start_new_session=True,
    ) as process:
        try:
            stdout, stderr = process.communicate(timeout=timeout_s)
        except subprocess.TimeoutExpired:
            _kill_process_group(process)
            stdout, stderr = process.communicate()
            raise subprocess.TimeoutExpired(command, timeout_s, output=stdout, stderr=stderr)
    return subprocess.CompletedProcess(command, process.returncode, stdout, stderr)


def run_command(
    command: list[str],
    timeout_s: float,
    error_cls: type[CommandError],
    stage: str,
) -> subprocess.CompletedProcess:
    """Run ``command`` as an argv list once. No shell, no retries.

    Output is decoded leniently; a stray non-UTF-8 byte from a tool never fails the stage.
    """
    logger.debug("stage=%s command=%s", stage, command)
    try:
        completed = _communicate(command, timeout_s)
    except subprocess.TimeoutExpired as exc:
        raise StageTimeoutError(
            f"{stage} exceeded {timeout_s}s timeout",
            stage=stage,
            command=command,
            diagnostic=_captured(exc.stdout, exc.stderr),
        ) from exc
    except OSError as exc:
        raise error_cls(f"{stage} could not start {command[0]}: {exc}", command=command, diagnostic=str(exc)) from exc

    if completed.returncode != 0:
        raise error_cls(
            f"{stage} failed with exit code {completed.returncode}",
            command=command,
            diagnostic=_captured(completed.stdout, completed.stderr),
        )
    return completed


def build_download_command(video_url: str, dest_path: Path, settings: ClipperSettings) -> list[str]:
    return [
        settings.ytdlp_binary,
        "--no-playlist",
        "--no-progress",
        "--quiet",
        "--no-warnings",
        "-f",
        settings.format_preference,
        "--merge-output-format",
        "mp4",
        "-o",
        str(dest_path),
        "--",
        video_url,
    ]


def download_video(video_url: str, dest_path: Path, settings: ClipperSettings) -> Path:
    """Fetch ``video_url`` into ``dest_path``.

    On failure ``dest_path`` may or may not exist; the caller owns its removal.
    """
    command = build_download_command(video_url, dest_path, settings)
    run_command(command, settings.acquire_timeout_s, AcquisitionError, stage="acquiring")
    if not dest_path.is_file():
        raise AcquisitionError(
            f"yt-dlp exited cleanly but wrote nothing to {dest_path}",
            command=command,
        )
    return dest_path
