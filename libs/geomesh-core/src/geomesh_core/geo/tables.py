"""Static location tables: country centres, continent membership and adjacency.

Every table is built once at import and exposed read-only, so concurrent
callers can share them without locking.
"""

from types import MappingProxyType
from typing import Final

from geomesh_core.models.enums import Continent
from geomesh_core.models.values import Coordinates

UNKNOWN_DISTANCE: Final = 999.0
SAME_CONTINENT_DISTANCE: Final = 0.5

_EU = Continent.EUROPE.value
_NA = Continent.NORTH_AMERICA.value
_SA = Continent.SOUTH_AMERICA.value
_AF = Continent.AFRICA.value
_AS = Continent.ASIA.value
_OC = Continent.OCEANIA.value

CONTINENTS: Final = frozenset(c.value for c in Continent)

# Geographic centre of each country, keyed by lower-case ISO code.
LOCATION_COORDINATES: Final = MappingProxyType(
    {
        code: Coordinates(lat=lat, lon=lon)
        for code, (lat, lon) in {
            # North America
            "us": (39.8283, -98.5795),
            "ca": (56.1304, -106.3468),
            "mx": (23.6345, -102.5528),
            # South America
            "br": (-14.235, -51.9253),
            "ar": (-38.4161, -63.6167),
            "cl": (-35.6751, -71.543),
            "co": (4.5709, -74.2973),
            "pe": (-9.19, -75.0152),
            # Europe
            "ru": (61.524, 105.3188),
            "gb": (55.3781, -3.436),
            "de": (51.1657, 10.4515),
            "fr": (46.2276, 2.2137),
            "it": (41.8719, 12.5674),
            "es": (40.4637, -3.7492),
            "pl": (51.9194, 19.1451),
            "ua": (48.3794, 31.1656),
            "nl": (52.1326, 5.2913),
            "se": (60.1282, 18.6435),
            "no": (60.472, 8.4689),
            "fi": (61.9241, 25.7482),
            "dk": (56.2639, 9.5018),
            "ch": (46.8182, 8.2275),
            "at": (47.5162, 14.5501),
            "be": (50.5039, 4.4699),
            "cz": (49.8175, 15.473),
            "pt": (39.3999, -8.2245),
            "gr": (39.0742, 21.8243),
            "ro": (45.9432, 24.9668),
            "hu": (47.1625, 19.5033),
            "ie": (53.4129, -8.2439),
            "tr": (38.9637, 35.2433),
            # Asia
            "cn": (35.8617, 104.1954),
            "jp": (36.2048, 138.2529),
            "in": (20.5937, 78.9629),
            "kr": (35.9078, 127.7669),
            "kz": (48.0196, 66.9237),
            "ir": (32.4279, 53.688),
            "ae": (23.4241, 53.8478),
            "sg": (1.3521, 103.8198),
            "id": (-0.7893, 113.9213),
            "th": (15.87, 100.9925),
            "my": (4.2105, 101.9758),
            "vn": (14.0583, 108.2772),
            "ph": (12.8797, 121.774),
            "pk": (30.3753, 69.3451),
            "bd": (23.685, 90.3563),
            "il": (31.0461, 34.8516),
            "sa": (23.8859, 45.0792),
            "iq": (33.2232, 43.6793),
            # Africa
            "za": (-30.5595, 22.9375),
            "eg": (26.8206, 30.8025),
            "ng": (9.082, 8.6753),
            "ke": (-0.0236, 37.9062),
            "ma": (31.7917, -7.0926),
            "tz": (-6.369, 34.8888),
            "gh": (7.9465, -1.0232),
            "dz": (28.0339, 1.6596),
            # Oceania
            "au": (-25.2744, 133.7751),
            "nz": (-40.9006, 174.886),
        }.items()
    }
)

# Upper-case ISO country code → continent code.
COUNTRY_CONTINENTS: Final = MappingProxyType(
    {
        **dict.fromkeys(("US", "CA", "MX"), _NA),
        **dict.fromkeys(("BR", "AR", "CL", "CO", "PE", "VE", "EC"), _SA),
        **dict.fromkeys(
            (
                "RU", "TR", "GB", "DE", "FR", "IT", "ES", "PL", "UA", "NL", "SE",
                "NO", "FI", "DK", "CH", "AT", "BE", "CZ", "PT", "GR", "RO", "HU",
                "IE", "SK", "BG", "HR", "RS", "SI", "LT", "LV", "EE",
            ),
            _EU,
        ),
        **dict.fromkeys(
            (
                "CN", "JP", "IN", "KR", "KZ", "IR", "AE", "SG", "ID", "TH", "MY",
                "VN", "PH", "PK", "BD", "IL", "SA", "IQ",
            ),
            _AS,
        ),
        **dict.fromkeys(
            ("ZA", "EG", "NG", "KE", "MA", "TZ", "GH", "DZ", "TN", "UG", "ET"), _AF
        ),
        **dict.fromkeys(("AU", "NZ"), _OC),
    }
)  # fmt: skip

# Hop distance between continents; lower is closer. Rows are the "from" side.
CONTINENT_HOPS: Final = MappingProxyType(
    {
        _EU: MappingProxyType({_EU: 0, _NA: 2, _SA: 3, _AF: 1, _AS: 2, _OC: 4}),
        _NA: MappingProxyType({_NA: 0, _EU: 2, _SA: 1, _AF: 3, _AS: 3, _OC: 4}),
        _SA: MappingProxyType({_SA: 0, _NA: 1, _EU: 3, _AF: 2, _AS: 4, _OC: 4}),
        _AF: MappingProxyType({_AF: 0, _EU: 1, _AS: 2, _NA: 3, _SA: 2, _OC: 4}),
        _AS: MappingProxyType({_AS: 0, _OC: 1, _EU: 2, _AF: 2, _NA: 3, _SA: 4}),
        _OC: MappingProxyType({_OC: 0, _AS: 1, _SA: 4, _NA: 4, _EU: 4, _AF: 4}),
    }
)

# Country code → routing location code used when auto-registering nodes.
# Most countries are grouped under their continent; a few keep their own code.
COUNTRY_LOCATIONS: Final = MappingProxyType(
    {
        "RU": "ru",
        "TR": "tr",
        **dict.fromkeys(
            (
                "DE", "FR", "GB", "IT", "ES", "PL", "UA", "NL", "SE", "NO", "FI",
                "DK", "BE", "CH", "AT", "CZ", "GR", "PT", "RO", "HU", "SK", "BG",
                "HR", "RS", "SI", "LT", "LV", "EE", "IE",
            ),
            _EU,
        ),
        "US": "us",
        "CA": "ca",
        "MX": _NA,
        **dict.fromkeys(("BR", "AR", "CL", "CO", "PE", "VE", "EC"), _SA),
        "CN": "cn",
        "JP": "jp",
        "KZ": "kz",
        "IR": "ir",
        "AE": "ae",
        **dict.fromkeys(
            ("IN", "KR", "TH", "VN", "SG", "MY", "ID", "PH", "PK", "BD", "IQ", "SA", "IL"),
            _AS,
        ),
        "AU": "au",
        "NZ": _OC,
        **dict.fromkeys(
            ("ZA", "EG", "NG", "KE", "MA", "TN", "DZ", "GH", "UG", "ET", "TZ"), _AF
        ),
    }
)  # fmt: skip

# Routing location code → parent continent.
LOCATION_CONTINENTS: Final = MappingProxyType(
    {
        "ru": _EU,
        "tr": _EU,
        "us": _NA,
        "ca": _NA,
        "cn": _AS,
        "jp": _AS,
        "kz": _AS,
        "ir": _AS,
        "ae": _AS,
        "au": _OC,
        **{continent: continent for continent in CONTINENTS},
    }
)


def continent_of(country_code: str | None) -> str | None:
    """Continent code for an ISO country code, or None if unmapped."""
    if not country_code:
        return None
    return COUNTRY_CONTINENTS.get(country_code.upper())


def hop_distance(continent_a: str, continent_b: str) -> float:
    """Hop distance between two continents; UNKNOWN_DISTANCE for unknown pairings."""
    row = CONTINENT_HOPS.get(continent_a)
    if row is None or continent_b not in row:
        return UNKNOWN_DISTANCE
    return float(row[continent_b])


def _as_continent(location_code: str) -> str:
    code = location_code.lower()
    if code in CONTINENTS:
        return code
    return continent_of(code) or code


def location_distance(from_code: str, to_code: str) -> float:
    """Coarse distance between two location codes (countries or continents).

    Identical codes are 0; two different countries on the same continent are
    SAME_CONTINENT_DISTANCE; otherwise the continent hop distance applies.
    """
    source = from_code.lower()
    target = to_code.lower()
    if source == target:
        return 0.0

    source_continent = _as_continent(source)
    target_continent = _as_continent(target)
    if source_continent == target_continent and source_continent != source:
        return SAME_CONTINENT_DISTANCE
    return hop_distance(source_continent, target_continent)


def coordinates_of(location_code: str) -> Coordinates | None:
    """Centre coordinates of a country location code, if known."""
    return LOCATION_COORDINATES.get(location_code.lower())


def location_code_for_country(country_code: str | None) -> str | None:
    """Curated routing location code for a country, if one exists."""
    if not country_code:
        return None
    return COUNTRY_LOCATIONS.get(country_code.upper())


def parent_continent(location_code: str) -> str | None:
    """Continent a routing location code belongs to."""
    return LOCATION_CONTINENTS.get(location_code.lower())
