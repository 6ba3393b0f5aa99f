from abc import ABC, abstractmethod

from pydantic import BaseModel, ValidationError

from geo_resolver.errors import LocationProviderError
from geo_resolver.logger import logger
from geo_resolver.messages import translate
from geo_resolver.models.location import LocationField, LocationResult
from geo_resolver.models.request_models import LocationRequest, RequestContext

# Continent info never depends on the backend, see complete_location_result().
ALWAYS_SUPPORTED_FIELDS = (LocationField.continent_code, LocationField.continent_name)

CapabilityMap = dict[LocationField, bool]


class ProviderInfo(BaseModel):
    """Display metadata for a location provider."""

    id: str
    title: str
    description: str


class LocationProvider(ABC):
    """Abstract base for all location providers.

    Concrete implementations (server module, MaxMind reader, web service, ...)
    map backend-specific data into a LocationResult. Every method receives the
    current RequestContext; providers keep no per-request state.
    """

    id: str
    title: str

    @abstractmethod
    async def get_location(self, request: LocationRequest, context: RequestContext) -> LocationResult | None:
        """Locate `request.ip`.

        Returns None when this provider cannot answer the request at all. Raises
        ProviderMalfunctionError only when the backend itself is broken.
        """
        raise NotImplementedError

    @abstractmethod
    def get_supported_location_info(self, context: RequestContext) -> CapabilityMap:
        """Report which canonical fields are obtainable under the current configuration."""
        raise NotImplementedError

    @abstractmethod
    def is_available(self, context: RequestContext) -> bool:
        """Cheap check that the backend is installed/configured at all."""
        raise NotImplementedError

    async def is_working(self, context: RequestContext) -> bool | str:
        """Return True, or a diagnostic message explaining why the backend is not usable."""
        return await check_provider_health(self, context)

    @abstractmethod
    def get_info(self, context: RequestContext) -> ProviderInfo:
        raise NotImplementedError


def build_capability_map(supported: set[LocationField]) -> CapabilityMap:
    """Build a map covering every canonical field; continent fields are always True."""
    supported = supported | set(ALWAYS_SUPPORTED_FIELDS)
    return {field: field in supported for field in LocationField}


async def check_provider_health(
    provider: LocationProvider,
    context: RequestContext,
    test_ip: str | None = None,
) -> bool | str:
    """Shared health check: locate a test IP and expect at least a country code.

    By default the connecting client's IP is used, so providers that can only
    answer for the local connection are tested the same way as the others.
    """
    ip = test_ip or context.client_ip
    try:
        request = LocationRequest(ip=ip, disable_fallbacks=True)
    except ValidationError:
        return translate("TestIPLocatorFailed", ip, "It is not a valid IP address.")

    try:
        result = await provider.get_location(request, context)
    except LocationProviderError as exc:
        logger.warning(f"Health check failed provider={provider.id} ip={ip} error={exc!r}")
        return translate("ProviderFailed", exc)

    if result is None or result.country_code is None:
        logger.info(f"Health check returned no country provider={provider.id} ip={ip} result={result}")
        return translate("TestIPLocatorFailed", ip, "The provider returned no country code.")
    return True
