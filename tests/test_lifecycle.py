from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from edgegap_orchestrator.api.platform import PlatformApi
from edgegap_orchestrator.domain.models import (
    DeploymentHandle,
    DeploymentStatus,
    ServerStatus,
    StopDeploymentResult,
)
from edgegap_orchestrator.domain.session import Session
from edgegap_orchestrator.lifecycle import DeploymentLifecycle

from .conftest import make_result


@pytest.fixture
def api() -> MagicMock:
    mock_api = MagicMock(spec=PlatformApi)
    mock_api.create_deployment = AsyncMock(
        return_value=make_result(200, {"request_id": "r1", "request_app": "demo"}, DeploymentHandle)
    )
    mock_api.get_deployment_status = AsyncMock()
    mock_api.stop_deployment = AsyncMock()
    return mock_api


def _status(label: str) -> object:
    return make_result(200, {"request_id": "r1", "current_status": label, "fqdn": "abc.pr.edgegap.net"}, DeploymentStatus)


@pytest.mark.asyncio
async def test_create_stores_handle(api: MagicMock) -> None:
    session = Session()
    lifecycle = DeploymentLifecycle(api, session)

    result = await lifecycle.create("demo", "v1", ["1.2.3.4"])

    assert result.is_success
    assert session.deployment is not None
    assert session.deployment.request_id == "r1"
    request = api.create_deployment.await_args.args[0]
    assert request.app_name == "demo"
    assert request.version_name == "v1"
    assert request.ip_list == ["1.2.3.4"]


@pytest.mark.asyncio
async def test_failed_create_leaves_no_handle(api: MagicMock) -> None:
    api.create_deployment.return_value = make_result(400, {"message": "Version not found"})
    session = Session()

    result = await DeploymentLifecycle(api, session).create("demo", "v1", [])

    assert result.is_bad_request
    assert session.deployment is None


@pytest.mark.asyncio
async def test_create_without_request_id_is_a_failure(api: MagicMock) -> None:
    api.create_deployment.return_value = make_result(200, {"unexpected": True}, None)
    session = Session()

    result = await DeploymentLifecycle(api, session).create("demo", "v1", [])

    assert not result.is_success
    assert session.deployment is None


@pytest.mark.asyncio
async def test_create_and_await_ready_polls_until_ready(api: MagicMock) -> None:
    api.get_deployment_status.side_effect = [
        _status("Status.DEPLOYING"),
        _status("Status.DEPLOYING"),
        _status("Status.READY"),
    ]
    session = Session()
    lifecycle = DeploymentLifecycle(api, session, ready_timeout=5)

    result = await lifecycle.create_and_await_ready("demo", "v1", ["1.2.3.4"], poll_interval=0.001)

    assert result.is_success
    assert result.data is not None and result.data.request_id == "r1"
    assert api.get_deployment_status.await_count == 3
    assert lifecycle.last_status is not None
    assert lifecycle.last_status.data is not None
    assert lifecycle.last_status.data.is_ready
    assert session.deployment is not None


@pytest.mark.asyncio
async def test_create_and_await_ready_timeout_still_returns_create_result(api: MagicMock) -> None:
    api.get_deployment_status.return_value = _status("Status.SEEKING")
    lifecycle = DeploymentLifecycle(api, Session(), ready_timeout=0.05)

    result = await lifecycle.create_and_await_ready("demo", "v1", [], poll_interval=0.01)

    assert result.is_success
    assert lifecycle.last_status is not None
    assert lifecycle.last_status.data is not None
    assert lifecycle.last_status.data.server_status == ServerStatus.SEEKING


@pytest.mark.asyncio
async def test_error_while_waiting_is_logged_once(api: MagicMock) -> None:
    api.get_deployment_status.return_value = _status("Status.ERROR")
    lifecycle = DeploymentLifecycle(api, Session(), ready_timeout=0.05)

    with patch("edgegap_orchestrator.lifecycle.logger") as mock_logger:
        await lifecycle.create_and_await_ready("demo", "v1", [], poll_interval=0.01)

    assert api.get_deployment_status.await_count > 1
    messages = [call.args[0] for call in mock_logger.warning.call_args_list]
    assert sum("reported Status.ERROR" in message for message in messages) == 1


@pytest.mark.asyncio
async def test_failed_create_skips_polling(api: MagicMock) -> None:
    api.create_deployment.return_value = make_result(401, {"message": "Invalid token"})
    lifecycle = DeploymentLifecycle(api, Session())

    result = await lifecycle.create_and_await_ready("demo", "v1", [], poll_interval=0.01)

    assert result.is_unauthorized
    api.get_deployment_status.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("code", [404, 400])
async def test_missing_deployment_reads_as_terminated(api: MagicMock, code: int) -> None:
    api.get_deployment_status.return_value = make_result(code, {"message": "Deployment not found"})
    handle = DeploymentHandle(request_id="r1")
    session = Session(deployment=handle)

    result = await DeploymentLifecycle(api, session).fetch_status(handle)

    assert result.is_success
    assert result.status_code == code
    assert result.error is None
    assert result.data is not None
    assert result.data.current_status == "Status.TERMINATED"
    assert session.deployment is None


@pytest.mark.asyncio
async def test_running_status_keeps_handle(api: MagicMock) -> None:
    api.get_deployment_status.return_value = _status("Status.READY")
    handle = DeploymentHandle(request_id="r1")
    session = Session(deployment=handle)

    result = await DeploymentLifecycle(api, session).fetch_status(handle)

    assert result.data is not None and result.data.is_ready
    assert session.deployment == handle


@pytest.mark.asyncio
async def test_stop_clears_handle_only_on_success(api: MagicMock) -> None:
    handle = DeploymentHandle(request_id="r1")
    session = Session(deployment=handle)
    lifecycle = DeploymentLifecycle(api, session)

    api.stop_deployment.return_value = make_result(500, {"message": "Try again"})
    failed = await lifecycle.stop(handle)
    assert not failed.is_success
    assert session.deployment == handle

    api.stop_deployment.return_value = make_result(200, {"message": "Deployment stopped"}, StopDeploymentResult)
    stopped = await lifecycle.stop(handle)
    assert stopped.is_success
    assert session.deployment is None


def test_attach_restores_handle(api: MagicMock) -> None:
    session = Session()
    lifecycle = DeploymentLifecycle(api, session)

    lifecycle.attach(DeploymentHandle(request_id="r9"))

    assert lifecycle.handle is not None
    assert lifecycle.handle.request_id == "r9"
