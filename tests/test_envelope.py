import pytest

from edgegap_orchestrator.domain.envelope import (
    GENERIC_FAILURE_MESSAGE,
    RawResponse,
    RemoteCallResult,
    StatusClass,
    classify_status,
)
from edgegap_orchestrator.domain.models import DeploymentStatus, ServerStatus

from .conftest import make_result


@pytest.mark.parametrize(
    "code, expected",
    [
        (200, StatusClass.SUCCESS),
        (204, StatusClass.SUCCESS),
        (404, StatusClass.NOT_FOUND),
        (409, StatusClass.CONFLICT),
        (400, StatusClass.BAD_REQUEST),
        (401, StatusClass.UNAUTHORIZED),
        (403, StatusClass.UNAUTHORIZED),
        (500, StatusClass.OTHER),
        (None, StatusClass.OTHER),
    ],
)
def test_classify_status(code: int, expected: StatusClass) -> None:
    assert classify_status(code) == expected


def test_from_response_decodes_json_payload() -> None:
    result = make_result(
        200,
        {"request_id": "r1", "current_status": "Status.READY", "ports": {"7777": {"external": 31000}}},
        DeploymentStatus,
    )

    assert result.is_success
    assert result.data is not None
    assert result.data.request_id == "r1"
    assert result.data.server_status == ServerStatus.READY
    assert result.data.is_ready
    assert result.error is None


def test_ports_as_array_is_accepted() -> None:
    result = make_result(200, {"request_id": "r1", "ports": [{"name": "game"}]}, DeploymentStatus)
    assert result.data is not None
    assert result.data.ports == [{"name": "game"}]


def test_non_json_body_leaves_payload_empty() -> None:
    raw = RawResponse(status_code=200, body="<html>ok</html>", content_type="text/html", reason="OK")
    result = RemoteCallResult.from_response(raw, DeploymentStatus)

    assert result.is_success
    assert result.data is None


def test_undecodable_payload_keeps_classification() -> None:
    raw = RawResponse(status_code=200, body='{"request_id": 5}', content_type="application/json", reason="OK")
    result = RemoteCallResult.from_response(raw, DeploymentStatus)

    assert result.is_success
    assert result.data is None


def test_error_is_parsed_from_message_and_error_keys() -> None:
    result = make_result(409, {"message": "App already exists", "error": "conflict"})

    assert result.is_conflict
    assert result.has_error
    assert result.error is not None
    assert result.error.message == "App already exists"
    assert result.error.code == "conflict"


def test_error_code_falls_back_to_reason_phrase() -> None:
    result = make_result(400, {"message": "Bad version"})
    assert result.error is not None
    assert result.error.code == "Bad Request"


def test_empty_message_means_no_error() -> None:
    result = make_result(404, {"message": ""})

    assert result.is_not_found
    assert not result.has_error
    assert result.human_message() == GENERIC_FAILURE_MESSAGE


def test_no_content_predicate() -> None:
    result = make_result(204)
    assert result.is_success
    assert result.is_no_content


def test_as_soft_success_keeps_conflict_message() -> None:
    conflict = make_result(409, {"message": "Version v1 already exists"})
    soft = conflict.as_soft_success()

    assert soft.is_success
    assert soft.is_soft_success
    assert soft.error is None
    assert soft.warning == "Version v1 already exists"
    assert soft.status_code == 409
    # The original is untouched.
    assert conflict.is_conflict


def test_plan_limit_predicate() -> None:
    limit = make_result(400, {"message": "You have reached the application limit for your plan."})
    other = make_result(400, {"message": "Invalid name"})
    tag_too_long = make_result(400, {"message": "docker_tag exceeds the 128 character limit"})

    assert limit.is_plan_limit_reached
    assert not other.is_plan_limit_reached
    assert tag_too_long.is_bad_request
    assert not tag_too_long.is_plan_limit_reached


def test_local_failure_and_success() -> None:
    failure = RemoteCallResult.local_failure("image_build", "Build failed")
    success = RemoteCallResult.local_success(warning="heads up")

    assert failure.status_code is None
    assert failure.classification == StatusClass.OTHER
    assert failure.error is not None and failure.error.code == "image_build"
    assert failure.human_message() == "Build failed"
    assert success.is_success
    assert success.human_message() == "heads up"


def test_human_message_empty_for_plain_success() -> None:
    assert make_result(200, {}).human_message() == ""
