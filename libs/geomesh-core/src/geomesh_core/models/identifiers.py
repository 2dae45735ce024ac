"""Typed identifiers — NewType wrappers over str to prevent stringly-typed bugs."""

from typing import NewType

NodeId = NewType("NodeId", str)
TenantId = NewType("TenantId", str)
RoutingDomainId = NewType("RoutingDomainId", str)
LocationCode = NewType("LocationCode", str)
