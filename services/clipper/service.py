from __future__ import annotations

import logging
import shutil
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Optional

from prometheus_client import Counter, Histogram

from .config import ClipperSettings
from .downloader import AcquisitionError, ExtractionError, StageTimeoutError, download_video
from .extractor import discard_partial_output, extract_range
from .logs import LOGGER_NAME, JsonEventAdapter, bind
from .models import ClipState, ErrorKind
from .paths import WorkItem, allocate_work_item
from .validators import (
    MISSING_FIELDS_MESSAGE,
    Timestamp,
    ValidationError,
    parse_timestamps,
    validate_time_range,
    validate_video_url,
)

logger = logging.getLogger(LOGGER_NAME)

clip_request_duration_seconds = Histogram(
    "clip_request_duration_seconds",
    "End-to-end clip request duration in seconds",
    ["status"],
)
clip_failures_total = Counter(
    "clip_failures_total",
    "Total number of failed clip requests",
    ["error_kind"],
)
clip_cleanup_failures_total = Counter(
    "clip_cleanup_failures_total",
    "Total number of scratch directories that could not be removed",
)

GENERIC_FAILURE_MESSAGE = "An internal server error occurred."
TIMEOUT_MESSAGE = "The request took too long to process."
SUCCESS_MESSAGE = "Clip created successfully!"

TRANSITIONS: dict[ClipState, set[ClipState]] = {
    ClipState.received: {ClipState.validating, ClipState.failed},
    ClipState.validating: {ClipState.acquiring, ClipState.failed},
    ClipState.acquiring: {ClipState.extracting, ClipState.failed},
    ClipState.extracting: {ClipState.finalizing, ClipState.failed},
    ClipState.finalizing: {ClipState.succeeded, ClipState.failed},
    ClipState.succeeded: set(),
    ClipState.failed: set(),
}

Acquirer = Callable[[str, Path, ClipperSettings], Path]
Extractor = Callable[[Path, Timestamp, Timestamp, Path, ClipperSettings], Path]


@dataclass(frozen=True)
class ClipRequest:
    source_url: str
    start: Timestamp
    end: Timestamp


@dataclass
class ClipOutcome:
    request_id: str
    state: ClipState
    message: str
    public_ref: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    diagnostic: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == ClipState.succeeded


@dataclass
class ClipRun:
    request_id: str
    state: ClipState = ClipState.received
    log: JsonEventAdapter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.log = bind(logger, request_id=self.request_id)

    def transition(self, next_state: ClipState) -> None:
        allowed = TRANSITIONS[self.state]
        if next_state not in allowed:
            raise ValueError(f"invalid transition {self.state} -> {next_state}")
        self.state = next_state
        self.log.event(logging.INFO, f"clip_{next_state.value}", state=self.state)


def validate_request(
    url: str | None,
    start: str | None,
    end: str | None,
    allowed_hosts: tuple[str, ...] = (),
) -> ClipRequest:
    if not url or not start or not end:
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    source_url = validate_video_url(url, allowed_hosts)
    start_ts, end_ts = parse_timestamps(start, end)
    validate_time_range(start_ts, end_ts)
    return ClipRequest(source_url=source_url, start=start_ts, end=end_ts)


def remove_scratch_dir(path: Path) -> bool:
    """Delete ``path`` and everything under it if present. Returns whether anything was removed."""
    if not path.exists():
        return False
    shutil.rmtree(path)
    return True


@contextmanager
def scratch_dir(path: Path, log: JsonEventAdapter) -> Iterator[Path]:
    """Create ``path``, yield it and remove it on every exit. Removal errors are logged, never raised."""
    path.mkdir(parents=True, exist_ok=True)
    try:
        yield path
    finally:
        try:
            if remove_scratch_dir(path):
                log.event(logging.INFO, "scratch_removed", path=path)
        except OSError as exc:
            clip_cleanup_failures_total.inc()
            log.event(logging.WARNING, "cleanup_failed", path=path, error=str(exc))


class ClipService:
    def __init__(
        self,
        settings: ClipperSettings | None = None,
        acquirer: Acquirer = download_video,
        extractor: Extractor = extract_range,
    ) -> None:
        self.settings = settings or ClipperSettings()
        self.acquirer = acquirer
        self.extractor = extractor

    def _fail(
        self,
        run: ClipRun,
        kind: ErrorKind,
        message: str,
        diagnostic: str | None = None,
    ) -> ClipOutcome:
        failed_in = run.state
        run.transition(ClipState.failed)
        clip_failures_total.labels(error_kind=kind.value).inc()
        run.log.event(
            logging.WARNING if kind == ErrorKind.validation_error else logging.ERROR,
            "clip_failed",
            failed_in=failed_in,
            error_kind=kind,
            error=message,
            diagnostic=diagnostic,
        )
        return ClipOutcome(
            request_id=run.request_id,
            state=run.state,
            message=message,
            error_kind=kind,
            diagnostic=diagnostic,
        )

    def _produce(self, run: ClipRun, clip: ClipRequest, work: WorkItem) -> None:
        with scratch_dir(work.scratch_dir, run.log):
            self.acquirer(clip.source_url, work.temp_input_path, self.settings)

            run.transition(ClipState.extracting)
            try:
                self.extractor(work.temp_input_path, clip.start, clip.end, work.output_path, self.settings)
            except BaseException:
                discard_partial_output(work.output_path)
                raise

            run.transition(ClipState.finalizing)

    def create_clip(
        self,
        url: str | None,
        start: str | None,
        end: str | None,
        request_id: str | None = None,
    ) -> ClipOutcome:
        run = ClipRun(request_id=request_id or uuid.uuid4().hex)
        started = time.monotonic()
        run.log.event(logging.INFO, "clip_received", url=url, start=start, end=end)

        try:
            run.transition(ClipState.validating)
            clip = validate_request(url, start, end, self.settings.allowed_hosts)

            run.transition(ClipState.acquiring)
            work = allocate_work_item(self.settings)
            self._produce(run, clip, work)

            run.transition(ClipState.succeeded)
            outcome = ClipOutcome(
                request_id=run.request_id,
                state=run.state,
                message=SUCCESS_MESSAGE,
                public_ref=work.public_ref,
            )
        except ValidationError as exc:
            outcome = self._fail(run, ErrorKind.validation_error, str(exc))
        except StageTimeoutError as exc:
            outcome = self._fail(run, ErrorKind.timeout_error, TIMEOUT_MESSAGE, exc.diagnostic or str(exc))
        except AcquisitionError as exc:
            outcome = self._fail(run, ErrorKind.acquisition_error, GENERIC_FAILURE_MESSAGE, exc.diagnostic or str(exc))
        except ExtractionError as exc:
            outcome = self._fail(run, ErrorKind.extraction_error, GENERIC_FAILURE_MESSAGE, exc.diagnostic or str(exc))
        except Exception as exc:
            logger.exception("unexpected failure in clip pipeline request_id=%s", run.request_id)
            outcome = self._fail(run, ErrorKind.internal_error, GENERIC_FAILURE_MESSAGE, repr(exc))

        status = "succeeded" if outcome.succeeded else "failed"
        clip_request_duration_seconds.labels(status=status).observe(time.monotonic() - started)
        return outcome
