from ipaddress import ip_address

from pydantic import BaseModel, Field, field_validator


def _validate_ip_literal(value: str) -> str:
    value_str = str(value).strip()
    try:
        ip_address(value_str)
    except ValueError as exc:
        raise ValueError("ip must be a valid IPv4 or IPv6 address") from exc
    return value_str


class LocationRequest(BaseModel):
    """A single request to locate an IP address.

    The IP may differ from the address that actually connected (a "forced"
    lookup, e.g. when importing logs). `disable_fallbacks` forbids providers
    from delegating such a lookup to another provider.
    """

    ip: str = Field(
        description="IPv4 or IPv6 address to locate.",
        examples=["8.8.8.8", "2001:4860:4860::8888"],
    )
    disable_fallbacks: bool = False

    @field_validator("ip", mode="before")
    @classmethod
    def _validate_ip(cls, value: str) -> str:
        return _validate_ip_literal(value)


class RequestContext(BaseModel):
    """Everything the host environment knows about the current HTTP request.

    This is passed explicitly into every provider call instead of providers
    reading server globals.
    """

    client_ip: str = Field(description="The IP address that actually connected.")
    channels: dict[str, str] = Field(
        default_factory=dict,
        description="Geolocation variables published by the HTTP server, e.g. GEOIP_COUNTRY_CODE.",
    )
    server_modules: list[str] | None = Field(
        default=None,
        description="Names of installed HTTP server modules, or None when they cannot be listed.",
    )
    server_software: str | None = None
    accept_language: str | None = None

    def is_forced_ip(self, request: LocationRequest) -> bool:
        """True when the request asks about an address other than the connecting one.

        Addresses are compared by value, so `2001:DB8:0::1` and `2001:db8::1`
        are the same client. An unknown client address makes every lookup forced.
        """
        try:
            client_ip = ip_address(self.client_ip)
        except ValueError:
            return True
        return ip_address(request.ip) != client_ip


class LocationQuery(BaseModel):
    """Query parameters of the location lookup endpoint.

    If `ip` is omitted or blank, the calling client's IP address is located.
    If `provider` is omitted, the configured active provider is used.
    """

    ip: str | None = Field(
        default=None,
        description="IPv4 or IPv6 address to locate. If omitted, the client's IP is used.",
        examples=["8.8.8.8", "2001:4860:4860::8888"],
    )
    provider: str | None = Field(
        default=None,
        description="Id of the location provider to use. Defaults to the configured provider.",
        examples=["geoip_serverbased", "geoip_database", "ip_api_com"],
    )
    disable_fallbacks: bool = Field(
        default=False,
        description="Forbid delegating a forced IP lookup to a fallback provider.",
    )

    @field_validator("ip", mode="before")
    @classmethod
    def _validate_ip(cls, value: str | None) -> str | None:
        """None or blank means "the client's IP"; anything else must be an IP literal."""
        if value is None:
            return None
        if not str(value).strip():
            return None
        return _validate_ip_literal(value)
