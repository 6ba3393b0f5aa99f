from http import HTTPStatus
from typing import Any

import httpx

from geo_resolver.models.location import LocationField, LocationResult
from geo_resolver.models.request_models import LocationRequest, RequestContext
from geo_resolver.providers.base import CapabilityMap, LocationProvider, ProviderInfo, build_capability_map

CLIENT_IP = "5.6.7.8"


def make_context(
    client_ip: str = CLIENT_IP,
    channels: dict[str, str] | None = None,
    server_modules: list[str] | None = None,
    **kwargs: Any,
) -> RequestContext:
    return RequestContext(client_ip=client_ip, channels=channels or {}, server_modules=server_modules, **kwargs)


class FakeProvider(LocationProvider):
    """Provider double returning a fixed result and recording every lookup."""

    title = "Fake"

    def __init__(
        self,
        provider_id: str,
        result: LocationResult | None = None,
        exc: Exception | None = None,
        available: bool = True,
    ) -> None:
        self.id = provider_id
        self._result = result
        self._exc = exc
        self._available = available
        self.calls: list[tuple[LocationRequest, RequestContext]] = []

    async def get_location(self, request: LocationRequest, context: RequestContext) -> LocationResult | None:
        self.calls.append((request, context))
        if self._exc is not None:
            raise self._exc
        return self._result

    def get_supported_location_info(self, context: RequestContext) -> CapabilityMap:
        return build_capability_map({LocationField.country_code})

    def is_available(self, context: RequestContext) -> bool:
        return self._available

    def get_info(self, context: RequestContext) -> ProviderInfo:
        return ProviderInfo(id=self.id, title=self.title, description="fake provider")


class MockResponse:
    def __init__(self, status_code: int, payload: dict[str, Any] | None = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self) -> dict[str, Any]:
        return self._payload


class MockAsyncClient:
    """Minimal async context-manager mock for httpx.AsyncClient that records requested URLs."""

    def __init__(self, response: MockResponse, requested_urls: list[str] | None = None) -> None:
        self._response = response
        self.requested_urls = requested_urls if requested_urls is not None else []

    async def __aenter__(self) -> "MockAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def get(self, url: str) -> MockResponse:
        self.requested_urls.append(url)
        return self._response


class FailingAsyncClient:
    """Async client that raises a RequestError on enter to simulate network failure."""

    def __init__(self, url: str, *args: Any, **kwargs: Any) -> None:
        self._url = url

    async def __aenter__(self) -> "FailingAsyncClient":
        request = httpx.Request("GET", self._url)
        raise httpx.RequestError("Network failure", request=request)

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def get(self, url: str) -> MockResponse:
        return MockResponse(status_code=HTTPStatus.OK, payload={})
