import importlib.util
from pathlib import Path
from typing import Any

import geoip2.database
import maxminddb
from geoip2.errors import AddressNotFoundError

from geo_resolver.continents import complete_location_result
from geo_resolver.errors import InvalidIpError, ProviderMalfunctionError
from geo_resolver.logger import logger
from geo_resolver.messages import translate
from geo_resolver.models.location import LocationField, LocationResult
from geo_resolver.models.request_models import LocationRequest, RequestContext
from geo_resolver.providers.base import (
    CapabilityMap,
    LocationProvider,
    ProviderInfo,
    build_capability_map,
    check_provider_health,
)

# A well-known public address present in every GeoLite2 edition.
HEALTH_CHECK_IP = "8.8.8.8"

_COUNTRY_FIELDS = {LocationField.country_code, LocationField.country_name}
_CITY_FIELDS = _COUNTRY_FIELDS | {
    LocationField.region_code,
    LocationField.region_name,
    LocationField.city_name,
    LocationField.latitude,
    LocationField.longitude,
    LocationField.postal_code,
}
_ISP_FIELDS = {LocationField.isp, LocationField.org}


def native_extension_installed() -> bool:
    """True when maxminddb was built against libmaxminddb."""
    return importlib.util.find_spec("maxminddb.extension") is not None


class MaxMindProvider(LocationProvider):
    """Shared lookup logic for providers reading MaxMind (.mmdb) databases.

    A City or Country database supplies the geographic fields; an optional ISP
    database supplies `isp` and `org`. Readers are opened on first use and kept
    for the lifetime of the provider.
    """

    mode: int = maxminddb.MODE_AUTO
    description_key: str = ""

    def __init__(self, city_db_path: str | None, isp_db_path: str | None = None) -> None:
        self._city_db_path = city_db_path
        self._isp_db_path = isp_db_path
        self._readers: dict[str, geoip2.database.Reader] = {}

    async def get_location(self, request: LocationRequest, context: RequestContext) -> LocationResult | None:
        if not self._database_exists(self._city_db_path):
            logger.info(f"No GeoIP database configured provider={self.id} path={self._city_db_path}")
            return None

        reader = self._get_reader(self._city_db_path)
        try:
            fields = self._lookup_geo_fields(reader, request.ip)
        except AddressNotFoundError:
            logger.debug(f"Address not found in GeoIP database provider={self.id} ip={request.ip}")
            return None

        if self._database_exists(self._isp_db_path):
            isp_reader = self._get_reader(self._isp_db_path)
            try:
                fields.update(self._lookup_isp_fields(isp_reader, request.ip))
            except AddressNotFoundError:
                logger.debug(f"Address not found in ISP database provider={self.id} ip={request.ip}")

        return complete_location_result(LocationResult.from_fields(fields))

    def _lookup_geo_fields(self, reader: geoip2.database.Reader, ip: str) -> dict[LocationField, Any]:
        is_city = "City" in reader.metadata().database_type
        try:
            response = reader.city(ip) if is_city else reader.country(ip)
        except AddressNotFoundError:
            raise
        except ValueError as exc:
            raise InvalidIpError(str(exc)) from exc
        except (OSError, RuntimeError, TypeError) as exc:
            # Both maxminddb.InvalidDatabaseError and the geoip2 errors are RuntimeErrors.
            raise ProviderMalfunctionError(
                f"GeoIP database lookup failed: {exc!r}",
                provider_id=self.id,
            ) from exc

        fields: dict[LocationField, Any] = {
            LocationField.country_code: response.country.iso_code,
            LocationField.country_name: response.country.name,
            LocationField.continent_code: response.continent.code,
            LocationField.continent_name: response.continent.name,
        }
        if is_city:
            subdivision = response.subdivisions.most_specific
            fields.update(
                {
                    LocationField.region_code: subdivision.iso_code,
                    LocationField.region_name: subdivision.name,
                    LocationField.city_name: response.city.name,
                    LocationField.latitude: response.location.latitude,
                    LocationField.longitude: response.location.longitude,
                    LocationField.postal_code: response.postal.code,
                }
            )
        return fields

    def _lookup_isp_fields(self, reader: geoip2.database.Reader, ip: str) -> dict[LocationField, Any]:
        try:
            response = reader.isp(ip)
        except AddressNotFoundError:
            raise
        except ValueError as exc:
            raise InvalidIpError(str(exc)) from exc
        except (OSError, RuntimeError, TypeError) as exc:
            raise ProviderMalfunctionError(f"ISP database lookup failed: {exc!r}", provider_id=self.id) from exc
        return {LocationField.isp: response.isp, LocationField.org: response.organization}

    def _get_reader(self, path: str) -> geoip2.database.Reader:
        reader = self._readers.get(path)
        if reader is None:
            try:
                reader = geoip2.database.Reader(path, mode=self.mode)
            except (OSError, ValueError, RuntimeError) as exc:
                raise ProviderMalfunctionError(
                    f"Cannot open GeoIP database {path}: {exc!r}",
                    provider_id=self.id,
                ) from exc
            logger.info(f"Opened GeoIP database provider={self.id} path={path}")
            self._readers[path] = reader
        return reader

    @staticmethod
    def _database_exists(path: str | None) -> bool:
        return bool(path) and Path(path).is_file()

    def get_supported_location_info(self, context: RequestContext) -> CapabilityMap:
        supported: set[LocationField] = set()
        if self._database_exists(self._city_db_path):
            try:
                database_type = self._get_reader(self._city_db_path).metadata().database_type
            except ProviderMalfunctionError as exc:
                logger.warning(f"Cannot probe GeoIP database provider={self.id} error={exc}")
            else:
                supported |= _CITY_FIELDS if "City" in database_type else _COUNTRY_FIELDS
        if self._database_exists(self._isp_db_path):
            supported |= _ISP_FIELDS
        return build_capability_map(supported)

    def is_available(self, context: RequestContext) -> bool:
        return self._database_exists(self._city_db_path)

    async def is_working(self, context: RequestContext) -> bool | str:
        if not self._database_exists(self._city_db_path):
            return translate("CannotFindGeoIPDatabaseInPath", self._city_db_path or "")
        return await check_provider_health(self, context, test_ip=HEALTH_CHECK_IP)

    def get_info(self, context: RequestContext) -> ProviderInfo:
        return ProviderInfo(id=self.id, title=self.title, description=translate(self.description_key))

    def close(self) -> None:
        for reader in self._readers.values():
            reader.close()
        self._readers.clear()


class NativeExtensionProvider(MaxMindProvider):
    """MaxMind database lookups through the libmaxminddb C extension."""

    id = "geoip_native"
    title = "GeoIP (Native extension)"
    mode = maxminddb.MODE_MMAP_EXT
    description_key = "GeoIpLocationProviderDesc_Native"

    def is_available(self, context: RequestContext) -> bool:
        return native_extension_installed() and super().is_available(context)

    async def is_working(self, context: RequestContext) -> bool | str:
        if not native_extension_installed():
            return translate("NativeExtensionNotInstalled")
        return await super().is_working(context)


class PureDatabaseProvider(MaxMindProvider):
    """MaxMind database lookups in pure Python; slower, but needs no compiled code."""

    id = "geoip_database"
    title = "GeoIP (Pure Python)"
    mode = maxminddb.MODE_MMAP
    description_key = "GeoIpLocationProviderDesc_Database"
