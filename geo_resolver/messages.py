"""Operator-facing diagnostic and description texts.

Providers never build user-visible strings themselves; they pass a fixed key
and interpolation arguments to :func:`translate`. The catalog is English only.
"""

MESSAGES: dict[str, str] = {
    "CannotFindGeoIPServerVar": (
        "The {0} variable is not set. Your server may not be configured correctly."
    ),
    "CannotFindGeoIPDatabaseInPath": "Cannot find a GeoIP database file at {0}.",
    "NativeExtensionNotInstalled": (
        "The MaxMind DB C extension is not installed. Install libmaxminddb and reinstall the maxminddb package."
    ),
    "TestIPLocatorFailed": (
        "Tried to locate the test IP address {0}. {1}"
    ),
    "ProviderFailed": "The location provider failed: {0}",
    "HttpServerModule": "HTTP Server Module",
    "GeoIpLocationProviderDesc_ServerBased1": (
        "This location provider uses the GeoIP module installed in your HTTP server. "
        "It is fast and accurate, but {0}can only be used with normal visitor tracking{1}."
    ),
    "GeoIpLocationProviderDesc_ServerBased2": (
        "If you have to import log files or do something else that requires setting IP addresses, "
        "use the {0}native extension{1} or {2}pure database{3} GeoIP implementation."
    ),
    "GeoIpLocationProviderDesc_Native": (
        "This location provider reads a MaxMind database through the libmaxminddb C extension. "
        "It is the fastest way to resolve arbitrary IP addresses."
    ),
    "GeoIpLocationProviderDesc_Database": (
        "This location provider reads a MaxMind database in pure Python. "
        "It needs no compiled code but is slower than the native extension."
    ),
    "RemoteLocationProviderDesc": "This location provider queries the {0} web service over HTTP.",
    "DefaultLocationProviderDesc": (
        "The default location provider guesses a visitor's country from the language they use."
    ),
}


def translate(key: str, *args: object) -> str:
    """Return the text for ``key`` with positional ``args`` interpolated.

    Unknown keys are returned unchanged so a missing entry shows up verbatim
    instead of failing a health check.
    """
    template = MESSAGES.get(key)
    if template is None:
        return key
    return template.format(*args)
