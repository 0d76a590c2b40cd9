import json
from typing import List

import httpx
import pytest

from edgegap_orchestrator.api import ApiClient, PlatformApi, clean_token
from edgegap_orchestrator.domain.models import (
    CreateApplicationRequest,
    CreateDeploymentRequest,
    UpdateAppVersionSpec,
)
from edgegap_orchestrator.exceptions import TransportError


def _recording_client(requests: List[httpx.Request], response: httpx.Response, **kwargs: object) -> ApiClient:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(response.status_code, content=response.content, headers=response.headers)

    return ApiClient(transport=httpx.MockTransport(handler), **kwargs)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "raw, expected",
    [("abc", "abc"), ("token abc", "abc"), ("  Token abc  ", "abc"), ("", "")],
)
def test_clean_token(raw: str, expected: str) -> None:
    assert clean_token(raw) == expected


@pytest.mark.asyncio
async def test_get_carries_source_and_authorization() -> None:
    requests: List[httpx.Request] = []
    client = _recording_client(requests, httpx.Response(200, json={}), token="token abc", source_name="my-plugin")

    raw = await client.send("GET", "v1/status/r1")
    await client.aclose()

    request = requests[0]
    assert request.method == "GET"
    assert request.url.host == "api.edgegap.com"
    assert request.url.path == "/v1/status/r1"
    assert request.url.params["source"] == "my-plugin"
    assert request.headers["Authorization"] == "token abc"
    assert request.headers["Accept"] == "application/json"
    assert raw.status_code == 200
    assert raw.is_json


@pytest.mark.asyncio
async def test_post_body_carries_source() -> None:
    requests: List[httpx.Request] = []
    client = _recording_client(requests, httpx.Response(204), token="abc")

    await client.send("POST", "v1/app", json_body={"name": "demo"})
    await client.send("POST", "v1/wizard/init-quick-start")
    await client.aclose()

    assert json.loads(requests[0].content) == {"name": "demo", "source": "edgegap-orchestrator"}
    assert json.loads(requests[1].content) == {"source": "edgegap-orchestrator"}
    assert requests[1].url.params["source"] == "edgegap-orchestrator"


@pytest.mark.asyncio
async def test_get_sends_no_body() -> None:
    requests: List[httpx.Request] = []
    client = _recording_client(requests, httpx.Response(200, json={}))

    await client.send("DELETE", "v1/stop/r1")
    await client.aclose()

    assert requests[0].content == b""


@pytest.mark.asyncio
async def test_staging_environment_base_url() -> None:
    requests: List[httpx.Request] = []
    client = _recording_client(requests, httpx.Response(200, json={}), environment="staging")

    await client.send("GET", "v1/wizard/registry-credentials")
    await client.aclose()

    assert client.base_url.startswith("https://staging-api.edgegap.com")
    assert requests[0].url.host == "staging-api.edgegap.com"


@pytest.mark.asyncio
async def test_content_type_parameters_are_stripped() -> None:
    response = httpx.Response(409, content=b'{"message": "exists"}', headers={"content-type": "application/json; charset=utf-8"})
    client = _recording_client([], response)

    raw = await client.send("POST", "v1/app", json_body={})
    await client.aclose()

    assert raw.content_type == "application/json"
    assert raw.reason == "Conflict"
    assert raw.body == '{"message": "exists"}'


@pytest.mark.asyncio
async def test_network_failure_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = ApiClient(token="abc", transport=httpx.MockTransport(handler))

    with pytest.raises(TransportError) as excinfo:
        await client.send("GET", "v1/status/r1")
    await client.aclose()

    assert excinfo.value.method == "GET"
    assert excinfo.value.path == "/v1/status/r1"


@pytest.mark.asyncio
async def test_timeout_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    async with ApiClient(token="abc", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError, match="timed out"):
            await client.send("GET", "v1/status/r1")


@pytest.mark.asyncio
async def test_platform_update_version_uses_patch_without_identity_in_body() -> None:
    requests: List[httpx.Request] = []
    client = _recording_client(requests, httpx.Response(404, json={"message": "Version not found"}))
    api = PlatformApi(client)

    result = await api.update_app_version(
        UpdateAppVersionSpec(app_name="demo", name="v1", docker_image="studio/demo", docker_tag="v1")
    )
    await client.aclose()

    assert result.is_not_found
    assert requests[0].method == "PATCH"
    assert requests[0].url.path == "/v1/app/demo/version/v1"
    body = json.loads(requests[0].content)
    assert "name" not in body
    assert "app_name" not in body
    assert body["docker_tag"] == "v1"


@pytest.mark.asyncio
async def test_platform_create_deployment_payload() -> None:
    requests: List[httpx.Request] = []
    client = _recording_client(requests, httpx.Response(200, json={"request_id": "r1"}))
    api = PlatformApi(client)

    result = await api.create_deployment(CreateDeploymentRequest(app_name="demo", version_name="v1", ip_list=["1.2.3.4"]))
    await client.aclose()

    assert result.data is not None and result.data.request_id == "r1"
    body = json.loads(requests[0].content)
    assert body == {"app_name": "demo", "version_name": "v1", "ip_list": ["1.2.3.4"], "source": "edgegap-orchestrator"}


@pytest.mark.asyncio
async def test_platform_create_application_payload() -> None:
    requests: List[httpx.Request] = []
    client = _recording_client(requests, httpx.Response(200, json={"name": "demo"}))

    await PlatformApi(client).create_application(CreateApplicationRequest(name="demo"))
    await client.aclose()

    assert requests[0].url.path == "/v1/app"
    assert json.loads(requests[0].content)["name"] == "demo"
