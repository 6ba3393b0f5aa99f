import os
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator

DEFAULT_SERVER_FALLBACKS = ("geoip_native", "geoip_database")


def _split_csv(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def _as_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Process-wide configuration read from the environment.

    Every value has a default so the service starts without any environment.
    """

    provider: str = Field(default="geoip_serverbased", description="Id of the active location provider.")
    server_fallbacks: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SERVER_FALLBACKS),
        description="Provider ids tried, in order, when the server module cannot honor a forced IP.",
    )
    trust_proxy_headers: bool = False
    server_modules: list[str] | None = Field(
        default=None,
        description="Installed HTTP server modules. None means the server cannot be introspected.",
    )
    server_software: str | None = None
    city_db_path: str | None = None
    isp_db_path: str | None = None
    remote_timeout_seconds: float | None = None
    host: str = "127.0.0.1"
    port: int = 8000

    @field_validator("server_fallbacks")
    @classmethod
    def _default_when_empty(cls, value: list[str]) -> list[str]:
        # An empty GEO_SERVER_FALLBACKS still means "use the documented order".
        return value or list(DEFAULT_SERVER_FALLBACKS)

    @classmethod
    def from_env(cls) -> "Settings":
        values: dict[str, object] = {
            "trust_proxy_headers": _as_bool(os.getenv("GEO_TRUST_PROXY_HEADERS")),
            "server_modules": _split_csv(os.getenv("GEO_SERVER_MODULES")),
            "server_software": os.getenv("GEO_SERVER_SOFTWARE") or None,
            "city_db_path": os.getenv("GEOIP_CITY_DB") or None,
            "isp_db_path": os.getenv("GEOIP_ISP_DB") or None,
        }
        if provider := os.getenv("GEO_PROVIDER"):
            values["provider"] = provider.strip()
        if fallbacks := _split_csv(os.getenv("GEO_SERVER_FALLBACKS")):
            values["server_fallbacks"] = fallbacks
        if timeout := os.getenv("GEO_REMOTE_TIMEOUT"):
            values["remote_timeout_seconds"] = float(timeout)
        if host := os.getenv("GEO_HOST"):
            values["host"] = host
        if port := os.getenv("GEO_PORT"):
            values["port"] = int(port)
        return cls(**values)


@lru_cache
def get_settings() -> Settings:
    """Return the settings for this process, read once from the environment."""
    return Settings.from_env()
