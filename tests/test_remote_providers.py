from collections.abc import Callable
from http import HTTPStatus
from typing import Any

import httpx
import pytest

from geo_resolver.errors import InvalidIpError, ProviderMalfunctionError
from geo_resolver.models.location import LocationField
from geo_resolver.models.request_models import LocationRequest
from geo_resolver.providers.remote import IpApiCoProvider, IpApiComProvider
from tests.common import FailingAsyncClient, MockAsyncClient, MockResponse, make_context


def make_fake_async_client(
    response: MockResponse,
    requested_urls: list[str] | None = None,
    timeouts: list[Any] | None = None,
) -> Callable[..., MockAsyncClient]:
    """Factory for a fake httpx.AsyncClient returning a fixed response."""

    def _fake_client(*args: Any, **kwargs: Any) -> MockAsyncClient:
        if timeouts is not None:
            timeouts.append(kwargs.get("timeout"))
        return MockAsyncClient(response, requested_urls)

    return _fake_client


async def _locate(provider: Any, ip: str = "8.8.8.8") -> Any:
    return await provider.get_location(LocationRequest(ip=ip), make_context())


@pytest.mark.asyncio
async def test_ip_api_com_success(monkeypatch: pytest.MonkeyPatch) -> None:
    """Happy path: ip-api.com payload mapped onto canonical fields."""
    payload = {
        "status": "success",
        "query": "8.8.8.8",
        "countryCode": "US",
        "country": "United States",
        "region": "CA",
        "regionName": "California",
        "city": "Mountain View",
        "zip": "94043",
        "lat": 37.386,
        "lon": -122.0838,
        "timezone": "America/Los_Angeles",
        "isp": "Google LLC",
        "org": "Google Public DNS",
    }
    requested_urls: list[str] = []
    monkeypatch.setattr(
        httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload), requested_urls)
    )

    result = await _locate(IpApiComProvider())

    assert requested_urls == ["http://ip-api.com/json/8.8.8.8"]
    assert result.country_code == "US"
    assert result.country_name == "United States"
    assert result.region_code == "CA"
    assert result.region_name == "California"
    assert result.city_name == "Mountain View"
    assert result.postal_code == "94043"
    assert result.latitude == pytest.approx(37.386)
    assert result.longitude == pytest.approx(-122.0838)
    assert result.isp == "Google LLC"
    assert result.org == "Google Public DNS"
    assert result.continent_code == "NA"


@pytest.mark.asyncio
async def test_ip_api_com_invalid_query(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {"status": "fail", "message": "invalid query"}
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload)))

    with pytest.raises(InvalidIpError):
        await _locate(IpApiComProvider())


@pytest.mark.asyncio
@pytest.mark.parametrize("message", ["private range", "reserved range", "not found"])
async def test_ip_api_com_no_data_is_not_available(monkeypatch: pytest.MonkeyPatch, message: str) -> None:
    """Addresses the service cannot place are "not available", not errors."""
    payload = {"status": "fail", "message": message}
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload)))

    assert await _locate(IpApiComProvider(), "192.168.0.1") is None


@pytest.mark.asyncio
async def test_ip_api_com_quota_exceeded(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {"status": "fail", "message": "quota exceeded for this key"}
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload)))

    with pytest.raises(ProviderMalfunctionError):
        await _locate(IpApiComProvider())


@pytest.mark.asyncio
async def test_http_404_is_not_available(monkeypatch: pytest.MonkeyPatch) -> None:
    response = MockResponse(status_code=HTTPStatus.NOT_FOUND, text="Not Found")
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    assert await _locate(IpApiComProvider(), "203.0.113.10") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code",
    [
        HTTPStatus.BAD_REQUEST,
        HTTPStatus.FORBIDDEN,
        HTTPStatus.TOO_MANY_REQUESTS,
        HTTPStatus.INTERNAL_SERVER_ERROR,
        HTTPStatus.BAD_GATEWAY,
    ],
)
async def test_http_error_statuses_are_malfunctions(
    monkeypatch: pytest.MonkeyPatch,
    status_code: HTTPStatus,
) -> None:
    response = MockResponse(status_code=status_code, text="Some error")
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    with pytest.raises(ProviderMalfunctionError) as exc_info:
        await _locate(IpApiCoProvider())

    assert exc_info.value.provider_id == "ipapi_co"


@pytest.mark.asyncio
async def test_network_failure_is_a_malfunction(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        httpx,
        "AsyncClient",
        lambda *args, **kwargs: FailingAsyncClient("http://ip-api.com", *args, **kwargs),
    )

    with pytest.raises(ProviderMalfunctionError):
        await _locate(IpApiComProvider())


@pytest.mark.asyncio
async def test_invalid_json_is_a_malfunction(monkeypatch: pytest.MonkeyPatch) -> None:
    class BadJsonResponse(MockResponse):
        def json(self) -> dict[str, Any]:
            raise ValueError("not json")

    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(BadJsonResponse(HTTPStatus.OK)))

    with pytest.raises(ProviderMalfunctionError):
        await _locate(IpApiComProvider())


@pytest.mark.asyncio
async def test_ipapi_co_success(monkeypatch: pytest.MonkeyPatch) -> None:
    """ipapi.co returns coordinates as strings and a single org field."""
    payload = {
        "ip": "8.8.8.8",
        "country_code": "US",
        "country_name": "United States",
        "region": "California",
        "region_code": "CA",
        "city": "Mountain View",
        "postal": "94043",
        "latitude": "37.386",
        "longitude": "-122.0838",
        "continent_code": "NA",
        "org": "GOOGLE",
    }
    requested_urls: list[str] = []
    monkeypatch.setattr(
        httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload), requested_urls)
    )

    result = await _locate(IpApiCoProvider())

    assert requested_urls == ["https://ipapi.co/8.8.8.8/json/"]
    assert result.region_code == "CA"
    assert result.region_name == "California"
    assert result.latitude == pytest.approx(37.386)
    assert result.isp == "GOOGLE"
    assert result.org == "GOOGLE"
    assert result.continent_name == "North America"


@pytest.mark.asyncio
async def test_ipapi_co_reserved_ip_is_not_available(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {"error": True, "reason": "Reserved IP Address", "reserved": True}
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload)))

    assert await _locate(IpApiCoProvider(), "127.0.0.1") is None


@pytest.mark.asyncio
async def test_ipapi_co_invalid_ip(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {"error": True, "reason": "Invalid IP Address"}
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload)))

    with pytest.raises(InvalidIpError):
        await _locate(IpApiCoProvider())


@pytest.mark.asyncio
async def test_ipapi_co_rate_limited(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {"error": True, "reason": "RateLimited", "message": "Too many requests"}
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload)))

    with pytest.raises(ProviderMalfunctionError):
        await _locate(IpApiCoProvider())


@pytest.mark.asyncio
async def test_timeout_is_not_imposed_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    timeouts: list[Any] = []
    payload = {"status": "success", "countryCode": "US"}
    monkeypatch.setattr(
        httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload), timeouts=timeouts)
    )

    await _locate(IpApiComProvider())
    await _locate(IpApiComProvider(timeout_seconds=2.5))

    assert timeouts == [None, 2.5]


@pytest.mark.asyncio
async def test_remote_provider_health_and_capabilities(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {"status": "success", "countryCode": "US"}
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(MockResponse(HTTPStatus.OK, payload)))
    provider = IpApiComProvider()
    context = make_context()

    assert provider.is_available(context) is True
    assert await provider.is_working(context) is True
    supported = provider.get_supported_location_info(context)
    assert supported[LocationField.isp] is True
    assert supported[LocationField.area_code] is False
    assert "ip-api.com" in provider.get_info(context).description
