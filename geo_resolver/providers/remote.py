from abc import abstractmethod
from http import HTTPStatus
from typing import Any

import httpx

from geo_resolver.continents import complete_location_result
from geo_resolver.errors import InvalidIpError, ProviderMalfunctionError
from geo_resolver.logger import logger
from geo_resolver.messages import translate
from geo_resolver.models.location import LocationField, LocationResult
from geo_resolver.models.request_models import LocationRequest, RequestContext
from geo_resolver.providers.base import (
    CapabilityMap,
    LocationProvider,
    ProviderInfo,
    build_capability_map,
    check_provider_health,
)

HEALTH_CHECK_IP = "8.8.8.8"


class NoLocationData(Exception):
    """Internal signal: the web service has no data for this address."""


class RemoteServiceProvider(LocationProvider):
    """Base for providers that query a geolocation web service over HTTP.

    Subclasses only describe the service: its URL scheme, how it reports errors
    inside the JSON body and how its payload maps onto canonical fields. Unlike
    the server module, a web service can locate any address, so forced IP
    lookups are answered directly.
    """

    service_name: str
    supported_fields: frozenset[LocationField] = frozenset()

    def __init__(self, base_url: str, timeout_seconds: float | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        # None disables httpx's default timeout; callers wrap lookups if they need one.
        self._timeout_seconds = timeout_seconds

    @abstractmethod
    def _build_url(self, ip: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def _handle_provider_error(self, data: dict[str, Any]) -> None:
        """Raise for error payloads; NoLocationData when the address is simply unknown."""
        raise NotImplementedError

    @abstractmethod
    def _normalize_payload(self, data: dict[str, Any]) -> dict[LocationField, Any]:
        raise NotImplementedError

    async def get_location(self, request: LocationRequest, context: RequestContext) -> LocationResult | None:
        url = self._build_url(request.ip)
        try:
            data = await self._request(url)
            self._handle_provider_error(data)
        except NoLocationData as exc:
            logger.info(f"No location data from web service provider={self.id} ip={request.ip} reason={exc}")
            return None

        return complete_location_result(LocationResult.from_fields(self._normalize_payload(data)))

    async def _request(self, url: str) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                response = await client.get(url)
        except httpx.RequestError as exc:
            raise ProviderMalfunctionError(
                f"Request to {self.service_name} failed: {exc!r}",
                provider_id=self.id,
            ) from exc

        self._handle_http_errors(response)
        return self._parse_json(response)

    def _handle_http_errors(self, response: httpx.Response) -> None:
        """Map HTTP status codes from the service to NoLocationData or a malfunction."""
        status_code = response.status_code

        if status_code == HTTPStatus.NOT_FOUND:
            raise NoLocationData("HTTP 404")

        if status_code == HTTPStatus.TOO_MANY_REQUESTS:
            raise ProviderMalfunctionError(
                f"{self.service_name} rate limit or quota exceeded (HTTP 429).",
                provider_id=self.id,
            )

        if status_code >= HTTPStatus.BAD_REQUEST:
            raise ProviderMalfunctionError(
                f"{self.service_name} returned HTTP {status_code}: {response.text}",
                provider_id=self.id,
            )

    def _parse_json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderMalfunctionError(
                f"Failed to decode {self.service_name} response as JSON: {exc}",
                provider_id=self.id,
            ) from exc

    def get_supported_location_info(self, context: RequestContext) -> CapabilityMap:
        return build_capability_map(set(self.supported_fields))

    def is_available(self, context: RequestContext) -> bool:
        return bool(self._base_url)

    async def is_working(self, context: RequestContext) -> bool | str:
        return await check_provider_health(self, context, test_ip=HEALTH_CHECK_IP)

    def get_info(self, context: RequestContext) -> ProviderInfo:
        return ProviderInfo(
            id=self.id,
            title=self.title,
            description=translate("RemoteLocationProviderDesc", self.service_name),
        )


class IpApiComProvider(RemoteServiceProvider):
    """Provider for the http://ip-api.com JSON API.

    The payload carries a `status` field that is either "success" or "fail";
    failures explain themselves in `message`.
    """

    id = "ip_api_com"
    title = "ip-api.com"
    service_name = "ip-api.com"
    supported_fields = frozenset(
        {
            LocationField.country_code,
            LocationField.country_name,
            LocationField.region_code,
            LocationField.region_name,
            LocationField.city_name,
            LocationField.latitude,
            LocationField.longitude,
            LocationField.postal_code,
            LocationField.isp,
            LocationField.org,
        }
    )

    def __init__(self, base_url: str = "http://ip-api.com", timeout_seconds: float | None = None) -> None:
        super().__init__(base_url, timeout_seconds)

    def _build_url(self, ip: str) -> str:
        return f"{self._base_url}/json/{ip}"

    def _handle_provider_error(self, data: dict[str, Any]) -> None:
        status_value = str(data.get("status") or "").lower()
        if status_value == "success":
            return

        message = str(data.get("message") or "Unknown error from ip-api.com")
        lower_msg = message.lower()

        if "invalid query" in lower_msg:
            raise InvalidIpError(message)

        # Private/reserved ranges and unknown addresses have no location; that is not a failure.
        if "private range" in lower_msg or "reserved range" in lower_msg or "not found" in lower_msg:
            raise NoLocationData(message)

        if "quota" in lower_msg or "limit" in lower_msg:
            raise ProviderMalfunctionError(f"ip-api.com rate limit or quota exceeded: {message}", provider_id=self.id)

        raise ProviderMalfunctionError(message, provider_id=self.id)

    def _normalize_payload(self, data: dict[str, Any]) -> dict[LocationField, Any]:
        return {
            LocationField.country_code: data.get("countryCode"),
            LocationField.country_name: data.get("country"),
            LocationField.region_code: data.get("region"),
            LocationField.region_name: data.get("regionName"),
            LocationField.city_name: data.get("city"),
            LocationField.latitude: data.get("lat"),
            LocationField.longitude: data.get("lon"),
            LocationField.postal_code: data.get("zip"),
            LocationField.isp: data.get("isp"),
            LocationField.org: data.get("org"),
            LocationField.continent_code: data.get("continentCode"),
            LocationField.continent_name: data.get("continent"),
        }


class IpApiCoProvider(RemoteServiceProvider):
    """Provider for the https://ipapi.co/ API.

    ipapi.co embeds errors in the JSON body, sometimes with HTTP 200:
        { "error": true, "reason": "Invalid IP Address", "ip": "..." }
        { "error": true, "reason": "Reserved IP Address", "ip": "127.0.0.1", "reserved": true }
        { "error": true, "reason": "RateLimited", "message": "..." }
    """

    id = "ipapi_co"
    title = "ipapi.co"
    service_name = "ipapi.co"
    supported_fields = frozenset(
        {
            LocationField.country_code,
            LocationField.country_name,
            LocationField.region_code,
            LocationField.region_name,
            LocationField.city_name,
            LocationField.latitude,
            LocationField.longitude,
            LocationField.postal_code,
            LocationField.isp,
            LocationField.org,
        }
    )

    def __init__(self, base_url: str = "https://ipapi.co", timeout_seconds: float | None = None) -> None:
        super().__init__(base_url, timeout_seconds)

    def _build_url(self, ip: str) -> str:
        return f"{self._base_url}/{ip}/json/"

    def _handle_provider_error(self, data: dict[str, Any]) -> None:
        if not data.get("error"):
            return

        reason = str(data.get("reason") or data.get("message") or "Unknown error from ipapi.co")
        lower_reason = reason.lower()

        if "reserved" in lower_reason or data.get("reserved") is True:
            raise NoLocationData(reason)

        if "invalid" in lower_reason:
            raise InvalidIpError(reason)

        if "ratelimited" in lower_reason or "quota" in lower_reason:
            raise ProviderMalfunctionError(f"ipapi.co rate limit or quota exceeded: {reason}", provider_id=self.id)

        raise ProviderMalfunctionError(reason, provider_id=self.id)

    def _normalize_payload(self, data: dict[str, Any]) -> dict[LocationField, Any]:
        # ipapi.co exposes organisation/ISP information via the single "org" field.
        return {
            LocationField.country_code: data.get("country_code") or data.get("country"),
            LocationField.country_name: data.get("country_name"),
            LocationField.region_code: data.get("region_code"),
            LocationField.region_name: data.get("region"),
            LocationField.city_name: data.get("city"),
            LocationField.latitude: data.get("latitude"),
            LocationField.longitude: data.get("longitude"),
            LocationField.postal_code: data.get("postal"),
            LocationField.isp: data.get("org"),
            LocationField.org: data.get("org"),
            LocationField.continent_code: data.get("continent_code"),
        }
