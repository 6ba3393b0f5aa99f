from pydantic import BaseModel

from geo_resolver.continents import complete_location_result
from geo_resolver.logger import logger
from geo_resolver.models.location import LocationField, LocationResult
from geo_resolver.models.request_models import LocationRequest, RequestContext
from geo_resolver.providers.base import LocationProvider, ProviderInfo
from geo_resolver.registry import ProviderRegistry


class ProviderStatus(BaseModel):
    """Operator view of one registered provider."""

    info: ProviderInfo
    is_active: bool
    is_available: bool
    # True, or the diagnostic message; None when the provider is not available.
    is_working: bool | str | None = None
    supported_location_info: dict[LocationField, bool]


class LocationResolver:
    """Answers location requests with the active provider.

    Any fallback to another backend happens inside the provider itself (see
    ServerBasedProvider); the resolver only delegates and normalizes.
    """

    def __init__(self, registry: ProviderRegistry, provider_id: str) -> None:
        self._registry = registry
        self._provider = registry.get_by_id_or_raise(provider_id)

    @property
    def provider(self) -> LocationProvider:
        return self._provider

    async def resolve(self, request: LocationRequest, context: RequestContext) -> LocationResult | None:
        logger.debug(
            f"Resolving location provider={self._provider.id} ip={request.ip} "
            f"client_ip={context.client_ip} disable_fallbacks={request.disable_fallbacks}"
        )
        result = await self._provider.get_location(request, context)
        if result is None:
            return None
        return complete_location_result(result)

    async def describe(self, context: RequestContext) -> list[ProviderStatus]:
        """Report availability, health and capabilities of every registered provider."""
        statuses: list[ProviderStatus] = []
        for provider in self._registry:
            available = provider.is_available(context)
            statuses.append(
                ProviderStatus(
                    info=provider.get_info(context),
                    is_active=provider is self._provider,
                    is_available=available,
                    is_working=await provider.is_working(context) if available else None,
                    supported_location_info=provider.get_supported_location_info(context),
                )
            )
        return statuses
