import json
from typing import Any, Optional, Type

import pytest
from pydantic import BaseModel

from edgegap_orchestrator.config import Settings
from edgegap_orchestrator.domain.envelope import RawResponse, RemoteCallResult

REASONS = {200: "OK", 204: "No Content", 400: "Bad Request", 401: "Unauthorized", 404: "Not Found", 409: "Conflict"}


def make_result(
    status_code: int, body: Optional[Any] = None, model: Optional[Type[BaseModel]] = None
) -> RemoteCallResult:
    """Envelope as the platform layer would build it from a JSON response."""
    raw = RawResponse(
        status_code=status_code,
        body=json.dumps(body) if body is not None else "",
        content_type="application/json" if body is not None else "",
        reason=REASONS.get(status_code, ""),
    )
    return RemoteCallResult.from_response(raw, model)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        environment="production",
        poll_interval_seconds=0.01,
        ready_timeout_seconds=2.0,
        status_refresh_interval_seconds=0.01,
        registry_url="registry.edgegap.com",
        image_repository="studio/demo",
        registry_username="robot$studio",
        registry_token="registry-secret",
    )
