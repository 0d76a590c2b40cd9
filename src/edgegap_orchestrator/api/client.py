from typing import Any, Dict, Mapping, Optional

import httpx

from edgegap_orchestrator.config import ApiEnvironment
from edgegap_orchestrator.domain.envelope import RawResponse
from edgegap_orchestrator.exceptions import TransportError
from edgegap_orchestrator.utils.logger import logger

BASE_URLS: Dict[str, str] = {
    "production": "https://api.edgegap.com",
    "staging": "https://staging-api.edgegap.com",
}


def clean_token(token: str) -> str:
    """Strips whitespace and a pasted 'token ' prefix; the header adds its own."""
    token = token.strip()
    if token.lower().startswith("token "):
        token = token[len("token ") :]
    return token.strip()


class ApiClient:
    """
    Async HTTP client for the Edgegap API.

    Every request carries the token authorization header and the source marker,
    merged into the query string and (when a body is sent) the JSON body.
    """

    def __init__(
        self,
        environment: ApiEnvironment = "production",
        token: str = "",
        source_name: str = "edgegap-orchestrator",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.environment = environment
        self.source_name = source_name
        self._token = clean_token(token)
        self._client = httpx.AsyncClient(
            base_url=BASE_URLS[environment],
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    def set_token(self, token: str) -> None:
        self._token = clean_token(token)

    async def send(
        self,
        method: str,
        path: str,
        query: Optional[Mapping[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> RawResponse:
        """
        Issues one request.

        Args:
            method: HTTP verb.
            path: Path relative to the environment's base URL, e.g. "v1/deploy".
            query: Extra query parameters.
            json_body: JSON body; POST/PATCH always send one.

        Returns:
            RawResponse for any HTTP status code.

        Raises:
            TransportError: If no response was received.
        """
        method = method.upper()
        params: Dict[str, str] = dict(query or {})
        params["source"] = self.source_name

        body: Optional[Dict[str, Any]] = None
        if json_body is not None or method in ("POST", "PATCH", "PUT"):
            body = dict(json_body or {})
            body["source"] = self.source_name

        headers = {"Authorization": f"token {self._token}"}
        url = "/" + path.lstrip("/")
        logger.debug(f"{method} {url} params={params}")

        try:
            response = await self._client.request(method, url, params=params, json=body, headers=headers)
        except httpx.TimeoutException as e:
            raise TransportError(f"{method} {url} timed out: {e}", method=method, path=url) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}", method=method, path=url) from e

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        logger.debug(f"{method} {url} -> {response.status_code}")
        return RawResponse(
            status_code=response.status_code,
            body=response.text,
            content_type=content_type,
            reason=response.reason_phrase,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
