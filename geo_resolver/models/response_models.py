from pydantic import BaseModel

from geo_resolver.resolver import ProviderStatus


class HealthResponse(BaseModel):
    """Response model for the health check endpoint."""

    status: str


class LocationResponse(BaseModel):
    """Response model for a location lookup; unknown fields are null."""

    provider: str
    ip: str
    country_code: str | None = None
    country_name: str | None = None
    region_code: str | None = None
    region_name: str | None = None
    city_name: str | None = None
    area_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    postal_code: str | None = None
    isp: str | None = None
    org: str | None = None
    continent_code: str | None = None
    continent_name: str | None = None


class ProvidersResponse(BaseModel):
    """Status of every registered provider, in registry order."""

    active: str
    providers: list[ProviderStatus]
