from enum import Enum
from typing import Any

from pydantic import BaseModel, field_validator


class LocationField(str, Enum):
    """Canonical location attributes every provider's output is normalized into."""

    country_code = "country_code"
    country_name = "country_name"
    region_code = "region_code"
    region_name = "region_name"
    city_name = "city_name"
    area_code = "area_code"
    latitude = "latitude"
    longitude = "longitude"
    postal_code = "postal_code"
    isp = "isp"
    org = "org"
    continent_code = "continent_code"
    continent_name = "continent_name"


class LocationResult(BaseModel):
    """Normalized location of an IP address.

    Every field is optional: ``None`` means the value could not be obtained from
    the backend under its current configuration, never "empty" or "zero".
    """

    country_code: str | None = None
    country_name: str | None = None
    region_code: str | None = None
    region_name: str | None = None
    city_name: str | None = None
    area_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    postal_code: str | None = None
    isp: str | None = None
    org: str | None = None
    continent_code: str | None = None
    continent_name: str | None = None

    @field_validator(
        "country_code",
        "country_name",
        "region_code",
        "region_name",
        "city_name",
        "area_code",
        "postal_code",
        "isp",
        "org",
        "continent_code",
        "continent_name",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        if value is None:
            return None
        value_str = str(value).strip()
        return value_str or None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_lat_lon(cls, value: Any) -> float | None:
        """Allow latitude/longitude to be provided as strings, numbers, or null.

        Server channels always carry strings; database readers and web services
        usually carry numbers. Unparsable values are treated as unknown.
        """
        if value is None:
            return None
        try:
            # For general GPS and mapping, 5-6 decimal places (e.g., 34.052235)
            return round(float(value), 6)
        except (TypeError, ValueError):
            return None

    @classmethod
    def from_fields(cls, fields: dict[LocationField, Any]) -> "LocationResult":
        return cls(**{field.value: value for field, value in fields.items()})

    def get(self, field: LocationField) -> Any:
        return getattr(self, field.value)

    def as_dict(self) -> dict[str, Any]:
        """Return only the populated fields, keyed by canonical field name."""
        return self.model_dump(exclude_none=True)
