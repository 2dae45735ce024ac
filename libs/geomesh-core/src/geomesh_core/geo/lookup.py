"""IP geolocation backed by a MaxMind GeoLite2 City database."""

from __future__ import annotations

import ipaddress
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol

import geoip2.database
import geoip2.errors
from maxminddb import InvalidDatabaseError

from geomesh_core.models.values import UNKNOWN_COUNTRY_CODE, GeoInfo

if TYPE_CHECKING:
    from geoip2.models import City

    from geomesh_core.config import GeoMeshSettings

logger = logging.getLogger(__name__)

UNKNOWN_GEO = GeoInfo(
    country_code=UNKNOWN_COUNTRY_CODE,
    country="Unknown",
    region="Unknown",
    city="Localhost",
    timezone="Unknown",
    isp="Local",
    org="Local",
    asn="Local",
    lat=0.0,
    lon=0.0,
)

UNRESOLVED_GEO = GeoInfo(
    country_code=UNKNOWN_COUNTRY_CODE,
    country="Unknown",
    region="Unknown",
    city="Unknown",
    timezone="Unknown",
    isp="Unknown",
    org="Unknown",
    asn="Unknown",
    lat=0.0,
    lon=0.0,
)

_MAPPED_IPV4_PREFIX = "::ffff:"


class GeoLookup(Protocol):
    """Resolves an IP address to a geolocation."""

    async def lookup(self, ip_address: str | None) -> GeoInfo: ...


def clean_ip(ip_address: str | None) -> str | None:
    """Strip the IPv4-mapped IPv6 prefix (``::ffff:1.2.3.4`` → ``1.2.3.4``)."""
    if ip_address and ip_address.lower().startswith(_MAPPED_IPV4_PREFIX):
        return ip_address[len(_MAPPED_IPV4_PREFIX) :]
    return ip_address


def extract_client_ip(headers: Mapping[str, str]) -> str | None:
    """Pick the client address from proxy headers, most trusted first."""
    lowered = {k.lower(): v for k, v in headers.items()}
    if cf_ip := lowered.get("cf-connecting-ip"):
        return clean_ip(cf_ip.strip())
    if real_ip := lowered.get("x-real-ip"):
        return clean_ip(real_ip.strip())
    if forwarded := lowered.get("x-forwarded-for"):
        return clean_ip(forwarded.split(",")[0].strip())
    return None


def is_local_address(ip_address: str | None) -> bool:
    """True for empty, ``localhost`` and loopback addresses."""
    if not ip_address or ip_address == "localhost":
        return True
    try:
        return ipaddress.ip_address(ip_address).is_loopback
    except ValueError:
        return False


def _geo_from_city(response: City) -> GeoInfo:
    location = response.location
    return GeoInfo(
        country_code=response.country.iso_code or UNKNOWN_COUNTRY_CODE,
        country=response.country.name or "Unknown",
        region=response.subdivisions.most_specific.name or "Unknown",
        city=response.city.name or "Unknown",
        continent=response.continent.name,
        timezone=location.time_zone or "Unknown",
        isp=response.traits.isp or "Unknown",
        org=response.traits.organization or "Unknown",
        asn=response.traits.autonomous_system_organization or "Unknown",
        lat=location.latitude if location.latitude is not None else 0.0,
        lon=location.longitude if location.longitude is not None else 0.0,
    )


class MaxMindGeoLookup:
    """GeoLookup over a local GeoLite2-City database, opened on first use."""

    def __init__(self, database_path: str) -> None:
        self._database_path = database_path
        self._reader: geoip2.database.Reader | None = None

    @classmethod
    def from_settings(cls, settings: GeoMeshSettings) -> MaxMindGeoLookup:
        return cls(settings.geoip_database_path)

    def _open(self) -> geoip2.database.Reader:
        if self._reader is None:
            self._reader = geoip2.database.Reader(self._database_path)
            logger.info("GeoIP database loaded from %s", self._database_path)
        return self._reader

    async def lookup(self, ip_address: str | None) -> GeoInfo:
        ip_address = clean_ip(ip_address)
        if is_local_address(ip_address):
            return UNKNOWN_GEO
        try:
            response = self._open().city(ip_address)
        except (geoip2.errors.GeoIP2Error, InvalidDatabaseError, OSError, ValueError) as exc:
            logger.warning("GeoIP lookup failed for %s: %s", ip_address, exc)
            return UNRESOLVED_GEO
        return _geo_from_city(response)

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
