"""GeoMesh Testing — in-memory stores and model factories for tests and local runs."""

__version__ = "0.1.0"

from geomesh_testing.factories import make_domain, make_geo, make_location, make_node
from geomesh_testing.geo import StaticGeoLookup
from geomesh_testing.stores import InMemoryNodeStore, InMemoryRoutingDomainStore

__all__ = [
    "InMemoryNodeStore",
    "InMemoryRoutingDomainStore",
    "StaticGeoLookup",
    "make_domain",
    "make_geo",
    "make_location",
    "make_node",
]
