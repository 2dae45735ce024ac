"""Tests for client IP extraction and MaxMind geolocation lookup."""

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import geoip2.errors
import pytest

from geomesh_core.config import GeoMeshSettings
from geomesh_core.geo.lookup import (
    UNKNOWN_GEO,
    UNRESOLVED_GEO,
    MaxMindGeoLookup,
    clean_ip,
    extract_client_ip,
    is_local_address,
)


class TestCleanIp:
    def test_strips_mapped_ipv4_prefix(self) -> None:
        assert clean_ip("::ffff:192.0.2.1") == "192.0.2.1"

    def test_leaves_plain_addresses(self) -> None:
        assert clean_ip("192.0.2.1") == "192.0.2.1"
        assert clean_ip("2001:db8::1") == "2001:db8::1"

    def test_none(self) -> None:
        assert clean_ip(None) is None


class TestExtractClientIp:
    def test_cloudflare_header_wins(self) -> None:
        headers = {
            "CF-Connecting-IP": "192.0.2.1",
            "X-Real-IP": "192.0.2.2",
            "X-Forwarded-For": "192.0.2.3",
        }
        assert extract_client_ip(headers) == "192.0.2.1"

    def test_real_ip_before_forwarded_for(self) -> None:
        headers = {"x-real-ip": "192.0.2.2", "x-forwarded-for": "192.0.2.3"}
        assert extract_client_ip(headers) == "192.0.2.2"

    def test_first_forwarded_for_entry(self) -> None:
        headers = {"X-Forwarded-For": "::ffff:192.0.2.3, 10.0.0.1, 10.0.0.2"}
        assert extract_client_ip(headers) == "192.0.2.3"

    def test_no_headers(self) -> None:
        assert extract_client_ip({}) is None


class TestIsLocalAddress:
    @pytest.mark.parametrize("ip", [None, "", "localhost", "127.0.0.1", "::1"])
    def test_local(self, ip: str | None) -> None:
        assert is_local_address(ip)

    @pytest.mark.parametrize("ip", ["8.8.8.8", "2001:db8::1", "garbage"])
    def test_not_local(self, ip: str) -> None:
        assert not is_local_address(ip)


def _city_response() -> SimpleNamespace:
    return SimpleNamespace(
        country=SimpleNamespace(iso_code="DE", name="Germany"),
        subdivisions=SimpleNamespace(most_specific=SimpleNamespace(name="Land Berlin")),
        city=SimpleNamespace(name="Berlin"),
        continent=SimpleNamespace(name="Europe"),
        location=SimpleNamespace(time_zone="Europe/Berlin", latitude=52.52, longitude=13.405),
        traits=SimpleNamespace(
            isp=None, organization=None, autonomous_system_organization="Example AS"
        ),
    )


@pytest.fixture
def reader() -> Iterator[MagicMock]:
    with patch("geoip2.database.Reader") as reader_cls:
        yield reader_cls.return_value


class TestMaxMindGeoLookup:
    async def test_resolves_city(self, reader: MagicMock) -> None:
        reader.city.return_value = _city_response()
        geo = await MaxMindGeoLookup("GeoLite2-City.mmdb").lookup("::ffff:192.0.2.1")

        reader.city.assert_called_once_with("192.0.2.1")
        assert geo.country_code == "DE"
        assert geo.country == "Germany"
        assert geo.region == "Land Berlin"
        assert geo.city == "Berlin"
        assert geo.continent == "Europe"
        assert geo.timezone == "Europe/Berlin"
        assert geo.isp == "Unknown"
        assert geo.asn == "Example AS"
        assert geo.lat == pytest.approx(52.52)
        assert not geo.is_unknown

    async def test_database_opened_once(self) -> None:
        with patch("geoip2.database.Reader") as reader_cls:
            reader = reader_cls.return_value
            reader.city.return_value = _city_response()
            lookup = MaxMindGeoLookup("GeoLite2-City.mmdb")
            await lookup.lookup("192.0.2.1")
            await lookup.lookup("192.0.2.2")

        reader_cls.assert_called_once_with("GeoLite2-City.mmdb")
        assert reader.city.call_count == 2

        lookup.close()
        reader.close.assert_called_once_with()

    async def test_address_not_found(self, reader: MagicMock) -> None:
        reader.city.side_effect = geoip2.errors.AddressNotFoundError("not in database")
        geo = await MaxMindGeoLookup("GeoLite2-City.mmdb").lookup("192.0.2.1")
        assert geo == UNRESOLVED_GEO
        assert geo.is_unknown

    async def test_localhost_skips_database(self, reader: MagicMock) -> None:
        geo = await MaxMindGeoLookup("GeoLite2-City.mmdb").lookup("127.0.0.1")
        assert geo == UNKNOWN_GEO
        reader.city.assert_not_called()

    async def test_from_settings(self) -> None:
        settings = GeoMeshSettings(geoip_database_path="/srv/geoip/City.mmdb")
        with patch("geoip2.database.Reader") as reader_cls:
            reader_cls.return_value.city.return_value = _city_response()
            await MaxMindGeoLookup.from_settings(settings).lookup("192.0.2.1")
        reader_cls.assert_called_once_with("/srv/geoip/City.mmdb")

    async def test_missing_database(self, tmp_path: Path) -> None:
        lookup = MaxMindGeoLookup(str(tmp_path / "missing.mmdb"))
        assert await lookup.lookup("192.0.2.1") == UNRESOLVED_GEO
