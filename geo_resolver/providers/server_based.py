from collections.abc import Mapping, Sequence

from geo_resolver.config import DEFAULT_SERVER_FALLBACKS
from geo_resolver.continents import complete_location_result
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
from geo_resolver.registry import ProviderRegistry

DEFAULT_SERVER_CHANNELS: dict[LocationField, str] = {
    LocationField.country_code: "GEOIP_COUNTRY_CODE",
    LocationField.country_name: "GEOIP_COUNTRY_NAME",
    LocationField.region_code: "GEOIP_REGION",
    LocationField.region_name: "GEOIP_REGION_NAME",
    LocationField.city_name: "GEOIP_CITY",
    LocationField.area_code: "GEOIP_AREA_CODE",
    LocationField.latitude: "GEOIP_LATITUDE",
    LocationField.longitude: "GEOIP_LONGITUDE",
    LocationField.postal_code: "GEOIP_POSTAL_CODE",
    LocationField.isp: "GEOIP_ISP",
    LocationField.org: "GEOIP_ORGANIZATION",
}

# Country info is required from this provider; a missing country channel is a
# "not working" diagnostic, not an unsupported field.
_REQUIRED_FIELDS = {
    LocationField.country_code,
    LocationField.country_name,
}


class ServerBasedProvider(LocationProvider):
    """Location provider backed by a GeoIP module installed in the HTTP server.

    The server module resolves the connecting client's address and publishes
    the result as per-request variables (channels). It can never answer for
    any other address, so forced IP lookups are handed to the first registered
    fallback provider instead.
    """

    id = "geoip_serverbased"
    title = "GeoIP ({})"

    def __init__(
        self,
        registry: ProviderRegistry,
        fallback_ids: Sequence[str] = DEFAULT_SERVER_FALLBACKS,
        channels: Mapping[LocationField, str] | None = None,
    ) -> None:
        self._registry = registry
        # Delegating to ourselves would never terminate.
        self._fallback_ids = tuple(fallback_id for fallback_id in fallback_ids if fallback_id != self.id)
        self._channels = dict(channels or DEFAULT_SERVER_CHANNELS)

    @property
    def fallback_ids(self) -> tuple[str, ...]:
        return self._fallback_ids

    @property
    def country_code_channel(self) -> str:
        return self._channels[LocationField.country_code]

    async def get_location(self, request: LocationRequest, context: RequestContext) -> LocationResult | None:
        """Read the location the server module computed for this connection.

        Depending on which database the module is configured with, this may be
        anything from just the country code to the full city-level record.
        """
        if context.is_forced_ip(request):
            if request.disable_fallbacks:
                logger.info(
                    "Server module cannot locate a forced IP and fallbacks are disabled "
                    f"ip={request.ip} client_ip={context.client_ip}"
                )
                return None
            return await self._get_fallback_location(request, context)

        fields: dict[LocationField, str] = {}
        for field, channel in self._channels.items():
            value = context.channels.get(channel)
            if value:
                fields[field] = value
        return complete_location_result(LocationResult.from_fields(fields))

    async def _get_fallback_location(self, request: LocationRequest, context: RequestContext) -> LocationResult | None:
        for fallback_id in self.fallback_ids:
            fallback = self._registry.get_by_id(fallback_id)
            if fallback is None:
                continue
            logger.info(
                f"Delegating forced IP lookup provider={self.id} fallback={fallback_id} "
                f"ip={request.ip} client_ip={context.client_ip}"
            )
            return await fallback.get_location(request, context)

        logger.info(
            f"No fallback provider registered for forced IP lookup provider={self.id} "
            f"fallbacks={list(self.fallback_ids)} ip={request.ip}"
        )
        return None

    def get_supported_location_info(self, context: RequestContext) -> CapabilityMap:
        """Fields are supported when the server publishes their channel, even empty.

        We cannot ask the module which databases it loaded, so the presence of a
        channel is the only signal available.
        """
        supported = {field for field, channel in self._channels.items() if channel in context.channels}
        return build_capability_map(supported | _REQUIRED_FIELDS)

    def is_available(self, context: RequestContext) -> bool:
        if context.server_modules is not None:
            if any("geoip" in name.lower() for name in context.server_modules):
                return True
        return bool(context.channels.get(self.country_code_channel))

    async def is_working(self, context: RequestContext) -> bool | str:
        if not context.channels.get(self.country_code_channel):
            return translate("CannotFindGeoIPServerVar", self.country_code_channel)
        return await check_provider_health(self, context)

    def get_info(self, context: RequestContext) -> ProviderInfo:
        software = context.server_software or ""
        if "apache" in software.lower():
            server_desc = "Apache"
        else:
            server_desc = translate("HttpServerModule")

        description = (
            translate("GeoIpLocationProviderDesc_ServerBased1", "<strong>", "</strong>")
            + "<br/><br/>"
            + translate(
                "GeoIpLocationProviderDesc_ServerBased2",
                "<strong><em>",
                "</em></strong>",
                "<strong><em>",
                "</em></strong>",
            )
        )
        return ProviderInfo(id=self.id, title=self.title.format(server_desc), description=description)
