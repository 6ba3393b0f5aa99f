from collections.abc import Iterator

from geo_resolver.errors import ProviderNotFoundError
from geo_resolver.providers.base import LocationProvider


class ProviderRegistry:
    """Ordered catalog of location providers keyed by their id.

    Insertion order is the priority/display order. Providers are registered
    once at startup; lookups afterwards are plain dict reads.
    """

    def __init__(self, providers: list[LocationProvider] | None = None) -> None:
        self._providers: dict[str, LocationProvider] = {}
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: LocationProvider) -> None:
        if provider.id in self._providers:
            raise ValueError(f"A location provider with id '{provider.id}' is already registered.")
        self._providers[provider.id] = provider

    def get_by_id(self, provider_id: str) -> LocationProvider | None:
        return self._providers.get(provider_id)

    def get_by_id_or_raise(self, provider_id: str) -> LocationProvider:
        provider = self.get_by_id(provider_id)
        if provider is None:
            raise ProviderNotFoundError(f"Unknown location provider '{provider_id}'.")
        return provider

    def ids(self) -> list[str]:
        return list(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __iter__(self) -> Iterator[LocationProvider]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)

    # Kept last: once defined, `list` in the class body refers to this method.
    def list(self) -> list[LocationProvider]:
        return list(self._providers.values())
