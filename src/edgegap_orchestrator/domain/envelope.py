# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/edgegap_orchestrator

"""
Result envelope for a single remote call.

Every component branches on the predicates exposed here instead of comparing raw
status codes. Classification is a pure function of the numeric status code.
"""

import json
import re
from enum import Enum
from typing import Any, Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from edgegap_orchestrator.utils.logger import logger

T = TypeVar("T")

JSON_CONTENT_TYPE = "application/json"
GENERIC_FAILURE_MESSAGE = "There was an error while contacting the Edgegap API. Please try again later."

_PLAN_LIMIT_PATTERN = re.compile(r"application limit|limit of (?:your|the) plan|plan limit", re.IGNORECASE)


class StatusClass(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    OTHER = "other"


def classify_status(status_code: Optional[int]) -> StatusClass:
    """Maps a numeric HTTP status code onto the classes the orchestrator branches on."""
    if status_code is None:
        return StatusClass.OTHER
    if 200 <= status_code < 300:
        return StatusClass.SUCCESS
    if status_code == 404:
        return StatusClass.NOT_FOUND
    if status_code == 409:
        return StatusClass.CONFLICT
    if status_code == 400:
        return StatusClass.BAD_REQUEST
    if status_code in (401, 403):
        return StatusClass.UNAUTHORIZED
    return StatusClass.OTHER


class RawResponse(BaseModel):
    """What the transport hands back: status code, body and content type."""

    model_config = ConfigDict(frozen=True)

    status_code: int = Field(..., description="Numeric HTTP status code.")
    body: str = Field(default="", description="Raw response body.")
    content_type: str = Field(default="", description="Media type of the body, without parameters.")
    reason: str = Field(default="", description="HTTP reason phrase.")

    @property
    def is_json(self) -> bool:
        return self.content_type.split(";")[0].strip().lower() == JSON_CONTENT_TYPE


class ErrorInfo(BaseModel):
    """Structured error carried by a failed call."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(default="", description="Machine-oriented identifier (reason phrase or failing step).")
    message: str = Field(..., description="Human-readable message, rendered verbatim by hosts.")


def _parse_error(raw: RawResponse) -> Optional[ErrorInfo]:
    # An empty message means "no error", whatever the status code says.
    try:
        parsed: Any = json.loads(raw.body) if raw.body else None
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    message = parsed.get("message")
    if not isinstance(message, str) or not message.strip():
        return None
    code = parsed.get("error")
    return ErrorInfo(code=code if isinstance(code, str) and code else raw.reason, message=message)


class RemoteCallResult(BaseModel, Generic[T]):
    """
    Immutable outcome of one remote call.

    Attributes:
        status_code: HTTP status code, or None for failures that never reached the platform.
        classification: StatusClass derived from status_code.
        data: Deserialized payload, or None when absent or undecodable.
        error: Structured error parsed from the body.
        warning: Human message kept when a failure was reinterpreted as success.
    """

    model_config = ConfigDict(frozen=True)

    status_code: Optional[int] = None
    classification: StatusClass = StatusClass.OTHER
    data: Optional[T] = None
    error: Optional[ErrorInfo] = None
    warning: Optional[str] = None

    @classmethod
    def from_response(
        cls, raw: RawResponse, payload_model: Optional[Type[BaseModel]] = None
    ) -> "RemoteCallResult[T]":
        """
        Wraps a raw transport response.

        Args:
            raw: The transport response.
            payload_model: Pydantic model to decode a JSON body into.

        Returns:
            The envelope. A body that fails to decode leaves data as None but
            does not change the classification.
        """
        data: Any = None
        if payload_model is not None and raw.is_json and raw.body:
            try:
                data = payload_model.model_validate_json(raw.body)
            except ValidationError as e:
                logger.debug(f"Could not decode {payload_model.__name__} from response ({raw.status_code}): {e}")

        return cls(
            status_code=raw.status_code,
            classification=classify_status(raw.status_code),
            data=data,
            error=_parse_error(raw),
        )

    @classmethod
    def local_failure(cls, code: str, message: str) -> "RemoteCallResult[T]":
        """Failure that happened before (or instead of) a remote call."""
        return cls(status_code=None, classification=StatusClass.OTHER, error=ErrorInfo(code=code, message=message))

    @classmethod
    def local_success(cls, data: Any = None, warning: Optional[str] = None) -> "RemoteCallResult[T]":
        return cls(status_code=None, classification=StatusClass.SUCCESS, data=data, warning=warning)

    # --- Predicates ---

    @property
    def is_success(self) -> bool:
        return self.classification == StatusClass.SUCCESS

    @property
    def is_no_content(self) -> bool:
        return self.status_code == 204

    @property
    def is_conflict(self) -> bool:
        return self.classification == StatusClass.CONFLICT

    @property
    def is_bad_request(self) -> bool:
        return self.classification == StatusClass.BAD_REQUEST

    @property
    def is_not_found(self) -> bool:
        return self.classification == StatusClass.NOT_FOUND

    @property
    def is_unauthorized(self) -> bool:
        return self.classification == StatusClass.UNAUTHORIZED

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @property
    def is_soft_success(self) -> bool:
        return self.is_success and self.warning is not None

    @property
    def is_plan_limit_reached(self) -> bool:
        """Bad request raised because the account reached its application limit."""
        return (
            self.is_bad_request and self.error is not None and _PLAN_LIMIT_PATTERN.search(self.error.message) is not None
        )

    # --- Conversions ---

    def as_soft_success(self) -> "RemoteCallResult[T]":
        """Success-classified copy that keeps the original human message as a warning."""
        warning = self.error.message if self.error else self.warning
        return self.model_copy(update={"classification": StatusClass.SUCCESS, "error": None, "warning": warning})

    def human_message(self) -> str:
        """Text a host should render: warning, then error message, then a generic fallback."""
        if self.warning:
            return self.warning
        if self.error:
            return self.error.message
        if self.is_success:
            return ""
        return GENERIC_FAILURE_MESSAGE
