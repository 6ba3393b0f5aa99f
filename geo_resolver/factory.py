from geo_resolver.config import Settings
from geo_resolver.providers.default import DefaultProvider
from geo_resolver.providers.maxmind import NativeExtensionProvider, PureDatabaseProvider
from geo_resolver.providers.remote import IpApiCoProvider, IpApiComProvider
from geo_resolver.providers.server_based import ServerBasedProvider
from geo_resolver.registry import ProviderRegistry


def build_registry(settings: Settings) -> ProviderRegistry:
    """Register every known provider, in display order.

    The server-based provider gets a reference to the registry it lives in so
    that it can hand forced IP lookups to its fallbacks.
    """
    registry = ProviderRegistry()
    registry.register(DefaultProvider())
    registry.register(NativeExtensionProvider(settings.city_db_path, settings.isp_db_path))
    registry.register(PureDatabaseProvider(settings.city_db_path, settings.isp_db_path))
    registry.register(ServerBasedProvider(registry, fallback_ids=settings.server_fallbacks))
    registry.register(IpApiComProvider(timeout_seconds=settings.remote_timeout_seconds))
    registry.register(IpApiCoProvider(timeout_seconds=settings.remote_timeout_seconds))
    return registry
