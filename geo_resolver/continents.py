"""Static country → continent lookup shared by every provider.

Codes follow the two-letter continent codes used by MaxMind databases.
"""

from geo_resolver.models.location import LocationResult

CONTINENT_NAMES: dict[str, str] = {
    "AF": "Africa",
    "AN": "Antarctica",
    "AS": "Asia",
    "EU": "Europe",
    "NA": "North America",
    "OC": "Oceania",
    "SA": "South America",
}

_COUNTRIES_BY_CONTINENT: dict[str, str] = {
    "AF": (
        "AO BF BI BJ BW CD CF CG CI CM CV DJ DZ EG EH ER ET GA GH GM GN GQ GW KE KM LR LS LY MA MG ML "
        "MR MU MW MZ NA NE NG RE RW SC SD SH SL SN SO SS ST SZ TD TG TN TZ UG YT ZA ZM ZW"
    ),
    "AN": "AQ BV GS HM TF",
    "AS": (
        "AE AF AM AP AZ BD BH BN BT CC CN CX GE HK ID IL IN IO IQ IR JO JP KG KH KP KR KW KZ LA LB LK "
        "MM MN MO MV MY NP OM PH PK PS QA SA SG SY TH TJ TL TM TR TW UZ VN YE"
    ),
    "EU": (
        "AD AL AT AX BA BE BG BY CH CY CZ DE DK EE ES EU FI FO FR GB GG GI GR HR HU IE IM IS IT JE LI "
        "LT LU LV MC MD ME MK MT NL NO PL PT RO RS RU SE SI SJ SK SM UA VA XK"
    ),
    "NA": (
        "AG AI AW BB BL BM BQ BS BZ CA CR CU CW DM DO GD GL GP GT HN HT JM KN KY LC MF MQ MS MX NI PA "
        "PM PR SV SX TC TT US VC VG VI"
    ),
    "OC": "AS AU CK FJ FM GU KI MH MP NC NF NR NU NZ PF PG PN PW SB TK TO TV UM VU WF WS",
    "SA": "AR BO BR CL CO EC FK GF GY PE PY SR UY VE",
}

COUNTRY_TO_CONTINENT: dict[str, str] = {
    country: continent
    for continent, countries in _COUNTRIES_BY_CONTINENT.items()
    for country in countries.split()
}


def get_continent_code(country_code: str | None) -> str | None:
    if not country_code:
        return None
    return COUNTRY_TO_CONTINENT.get(country_code.strip().upper())


def get_continent_name(continent_code: str | None) -> str | None:
    if not continent_code:
        return None
    return CONTINENT_NAMES.get(continent_code.strip().upper())


def complete_location_result(result: LocationResult) -> LocationResult:
    """Fill in continent fields a backend did not supply.

    The continent code is derived from the country code, and the continent name
    from the continent code. Values the backend did supply are kept as-is.
    Returns a new result; ``result`` is not modified.
    """
    updates: dict[str, str] = {}

    continent_code = result.continent_code
    if continent_code is None:
        continent_code = get_continent_code(result.country_code)
        if continent_code is not None:
            updates["continent_code"] = continent_code

    if result.continent_name is None:
        continent_name = get_continent_name(continent_code)
        if continent_name is not None:
            updates["continent_name"] = continent_name

    if not updates:
        return result
    return result.model_copy(update=updates)
