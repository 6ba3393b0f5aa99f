class AppError(Exception):
    """Base application error for the geolocation resolver."""


class LocationProviderError(AppError):
    """Base error for location provider failures."""


class InvalidIpError(LocationProviderError):
    """Raised when a backend rejects the supplied IP address as syntactically invalid."""


class ProviderMalfunctionError(LocationProviderError):
    """Raised when a backend fails for a reason other than missing data.

    Examples are an unreadable database file, a crashing native reader or an
    upstream HTTP service that is down or rate limiting us. Missing data is
    never reported this way: providers return ``None`` for that.
    """

    def __init__(self, message: str, provider_id: str | None = None) -> None:
        super().__init__(message)
        self.provider_id = provider_id


class ProviderNotFoundError(LocationProviderError):
    """Raised when no provider is registered under the requested id."""
