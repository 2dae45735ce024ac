"""Error hierarchy for geomesh-core."""


class GeoMeshError(Exception):
    """Base exception for all GeoMesh errors."""


class InvalidInputError(GeoMeshError):
    """Malformed input rejected before any mutation."""


class NodeNotFoundError(GeoMeshError):
    """Requested resolver node does not exist."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Resolver node not found: {node_id}")
        self.node_id = node_id


class PersistenceConflictError(GeoMeshError):
    """A concurrent write changed a record between read and conditional update."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"Concurrent update detected on {entity} {entity_id!r}")
        self.entity = entity
        self.entity_id = entity_id


class StoreTimeoutError(GeoMeshError):
    """A store read or write did not complete within the configured bound."""

    def __init__(self, operation: str, timeout: float) -> None:
        super().__init__(f"Store operation {operation!r} timed out after {timeout}s")
        self.operation = operation
        self.timeout = timeout


class RoutingDomainNotFoundError(GeoMeshError):
    """Requested routing domain does not exist."""

    def __init__(self, domain_id: str) -> None:
        super().__init__(f"Routing domain not found: {domain_id}")
        self.domain_id = domain_id
