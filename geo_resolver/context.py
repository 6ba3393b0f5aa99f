from fastapi import Request

from geo_resolver.config import Settings
from geo_resolver.models.request_models import RequestContext

CHANNEL_PREFIX = "GEOIP_"


def header_to_channel(header_name: str) -> str:
    """`Geoip-Country-Code` -> `GEOIP_COUNTRY_CODE`, the way CGI names server variables."""
    return header_name.strip().upper().replace("-", "_")


def get_client_ip(request: Request, trust_proxy_headers: bool = False) -> str | None:
    """Return the address of the connecting client.

    Proxy headers are only honored when the deployment says a trusted reverse
    proxy sits in front of us; otherwise any client could spoof them.
    """
    if trust_proxy_headers:
        x_forwarded_for = request.headers.get("x-forwarded-for")
        if x_forwarded_for:
            first_hop = x_forwarded_for.split(",")[0].strip()
            if first_hop:
                return first_hop
        x_real_ip = request.headers.get("x-real-ip")
        if x_real_ip and x_real_ip.strip():
            return x_real_ip.strip()
    return request.client.host if request.client else None


def build_request_context(request: Request, settings: Settings) -> RequestContext:
    """Collect what the host knows about this request into a RequestContext.

    A reverse proxy running the GeoIP server module forwards its variables as
    `Geoip-*` request headers; they become the context's channels. Like the
    forwarded client address, they are only read from a trusted proxy.
    """
    channels: dict[str, str] = {}
    if settings.trust_proxy_headers:
        for name, value in request.headers.items():
            channel = header_to_channel(name)
            if channel.startswith(CHANNEL_PREFIX):
                channels[channel] = value.strip()

    return RequestContext(
        client_ip=get_client_ip(request, settings.trust_proxy_headers) or "",
        channels=channels,
        server_modules=settings.server_modules,
        server_software=settings.server_software,
        accept_language=request.headers.get("accept-language"),
    )
