import uvicorn

from geo_resolver.config import get_settings
from geo_resolver.logger import log_config


def main() -> None:
    """Serve the geolocation resolver with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "geo_resolver.main:app",
        host=settings.host,
        port=settings.port,
        log_config=log_config,
        proxy_headers=settings.trust_proxy_headers,
    )


if __name__ == "__main__":
    main()
