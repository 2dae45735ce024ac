"""Deterministic geolocation lookup keyed by IP address."""

from __future__ import annotations

from typing import TYPE_CHECKING

from geomesh_core.geo.lookup import UNKNOWN_GEO, UNRESOLVED_GEO, clean_ip, is_local_address

if TYPE_CHECKING:
    from collections.abc import Mapping

    from geomesh_core.models.values import GeoInfo


class StaticGeoLookup:
    """GeoLookup answering from a fixed table; records every address it was asked for."""

    def __init__(self, table: Mapping[str, GeoInfo] | None = None) -> None:
        self._table = dict(table or {})
        self.calls: list[str | None] = []

    def set(self, ip_address: str, geo: GeoInfo) -> None:
        self._table[ip_address] = geo

    async def lookup(self, ip_address: str | None) -> GeoInfo:
        self.calls.append(ip_address)
        ip_address = clean_ip(ip_address)
        if is_local_address(ip_address):
            return UNKNOWN_GEO
        return self._table.get(ip_address or "", UNRESOLVED_GEO)
