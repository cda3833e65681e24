from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ClipState(str, Enum):
    received = "received"
    validating = "validating"
    acquiring = "acquiring"
    extracting = "extracting"
    finalizing = "finalizing"
    succeeded = "succeeded"
    failed = "failed"


class ErrorKind(str, Enum):
    validation_error = "validation_error"
    acquisition_error = "acquisition_error"
    extraction_error = "extraction_error"
    timeout_error = "timeout_error"
    internal_error = "internal_error"


class CreateClipRequest(BaseModel):
    # Optional on the wire so missing fields are reported by the pipeline as a 400.
    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")


class ClipResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    clip_url: str = Field(alias="clipUrl")
    request_id: str = Field(alias="requestId")


class ErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str
    error_kind: ErrorKind = Field(alias="errorKind")
    request_id: str = Field(alias="requestId")
