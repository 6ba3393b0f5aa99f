from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request, status
from pydantic import ValidationError

from geo_resolver.config import Settings, get_settings
from geo_resolver.context import build_request_context
from geo_resolver.errors import LocationProviderError
from geo_resolver.exception_handlers import (
    location_provider_exception_handler,
    pydantic_validation_exception_handler,
    unhandled_exception_handler,
)
from geo_resolver.factory import build_registry
from geo_resolver.logger import logger
from geo_resolver.models.request_models import LocationQuery, LocationRequest, RequestContext
from geo_resolver.models.response_models import HealthResponse, LocationResponse, ProvidersResponse
from geo_resolver.providers.maxmind import MaxMindProvider
from geo_resolver.registry import ProviderRegistry
from geo_resolver.resolver import LocationResolver

ResolverFactory = Callable[[str | None], LocationResolver]


@lru_cache
def get_registry() -> ProviderRegistry:
    """Dependency returning the process-wide provider registry, built on first use."""
    return build_registry(get_settings())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    registry = get_registry()
    logger.info(f"Started geolocation resolver providers={registry.ids()} active={get_settings().provider}")
    yield
    for provider in registry:
        if isinstance(provider, MaxMindProvider):
            provider.close()


app = FastAPI(
    title="Geolocation Resolver",
    version="0.1.0",
    description="Resolves visitor locations through interchangeable geolocation providers.",
    lifespan=lifespan,
)

app.add_exception_handler(ValidationError, pydantic_validation_exception_handler)
app.add_exception_handler(LocationProviderError, location_provider_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


def get_request_context(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> RequestContext:
    return build_request_context(request, settings)


def get_resolver_factory(
    registry: Annotated[ProviderRegistry, Depends(get_registry)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ResolverFactory:
    """Dependency returning a callable that binds a resolver to a provider id."""

    def _factory(provider_id: str | None = None) -> LocationResolver:
        return LocationResolver(registry, provider_id or settings.provider)

    return _factory


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(status="ok")


@app.get(
    "/v1/location",
    response_model=LocationResponse,
    status_code=status.HTTP_200_OK,
    tags=["location"],
    summary="Resolve the location of an IP address.",
)
async def locate(
    request: Request,
    query: Annotated[LocationQuery, Depends()],
    context: Annotated[RequestContext, Depends(get_request_context)],
    resolver_factory: Annotated[ResolverFactory, Depends(get_resolver_factory)],
) -> LocationResponse:
    """Resolve the location of `query.ip`, or of the caller when it is omitted.

    Looking up an address other than the caller's is a forced lookup; the
    server-module provider answers those through its fallback providers unless
    `disable_fallbacks` is set.
    """
    resolver = resolver_factory(query.provider)
    ip = query.ip or context.client_ip
    logger.info(
        "Performing location lookup "
        f"path={request.url.path} ip={ip} client_ip={context.client_ip} "
        f"provider={resolver.provider.id} disable_fallbacks={query.disable_fallbacks}"
    )

    location_request = LocationRequest(ip=ip, disable_fallbacks=query.disable_fallbacks)
    result = await resolver.resolve(location_request, context)
    if result is None:
        logger.info(f"Location not available path={request.url.path} ip={ip} provider={resolver.provider.id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": "location_not_available",
                "message": "The location provider cannot locate this IP address.",
                "provider": resolver.provider.id,
            },
        )

    return LocationResponse(provider=resolver.provider.id, ip=ip, **result.model_dump())


@app.get(
    "/v1/providers",
    response_model=ProvidersResponse,
    status_code=status.HTTP_200_OK,
    tags=["location"],
    summary="List location providers with their availability and health.",
)
async def list_providers(
    context: Annotated[RequestContext, Depends(get_request_context)],
    resolver_factory: Annotated[ResolverFactory, Depends(get_resolver_factory)],
) -> ProvidersResponse:
    resolver = resolver_factory()
    statuses = await resolver.describe(context)
    return ProvidersResponse(active=resolver.provider.id, providers=statuses)
