import re

from geo_resolver.continents import COUNTRY_TO_CONTINENT, complete_location_result
from geo_resolver.messages import translate
from geo_resolver.models.location import LocationField, LocationResult
from geo_resolver.models.request_models import LocationRequest, RequestContext
from geo_resolver.providers.base import CapabilityMap, LocationProvider, ProviderInfo, build_capability_map

# "en-US", "pt_BR", "zh-Hant-TW": the region is the first two-letter subtag after the language.
_REGION_SUBTAG = re.compile(r"^[a-z]{2,3}(?:[-_][a-z]{4})?[-_]([a-z]{2})$", re.IGNORECASE)


def guess_country_from_language(accept_language: str | None) -> str | None:
    """Return the country of the most preferred language tag that names a known region."""
    if not accept_language:
        return None

    tags: list[tuple[float, int, str]] = []
    for position, part in enumerate(accept_language.split(",")):
        tag, _, params = part.strip().partition(";")
        quality = 1.0
        for param in params.split(";"):
            name, _, value = param.strip().partition("=")
            if name == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        tags.append((-quality, position, tag.strip()))

    for _, _, tag in sorted(tags):
        match = _REGION_SUBTAG.match(tag)
        if match and match.group(1).upper() in COUNTRY_TO_CONTINENT:
            return match.group(1).upper()
    return None


class DefaultProvider(LocationProvider):
    """Guesses the visitor's country from the browser language.

    Always available and never broken, which makes it the provider of last
    resort. It only ever knows about the connecting visitor, so forced IP
    lookups get no answer.
    """

    id = "default"
    title = "Default (language-based)"

    async def get_location(self, request: LocationRequest, context: RequestContext) -> LocationResult | None:
        if context.is_forced_ip(request):
            return None
        country_code = guess_country_from_language(context.accept_language)
        return complete_location_result(LocationResult(country_code=country_code))

    def get_supported_location_info(self, context: RequestContext) -> CapabilityMap:
        return build_capability_map({LocationField.country_code})

    def is_available(self, context: RequestContext) -> bool:
        return True

    async def is_working(self, context: RequestContext) -> bool | str:
        return True

    def get_info(self, context: RequestContext) -> ProviderInfo:
        return ProviderInfo(id=self.id, title=self.title, description=translate("DefaultLocationProviderDesc"))
