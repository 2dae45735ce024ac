"""Storage error hierarchy for geomesh-storage."""

from geomesh_core.exceptions import NodeNotFoundError as CoreNodeNotFoundError
from geomesh_core.exceptions import PersistenceConflictError
from geomesh_core.exceptions import RoutingDomainNotFoundError as CoreDomainNotFoundError


class StorageError(Exception):
    """Base exception for all storage-related errors."""


class StorageConnectionError(StorageError):
    """Failed to establish or maintain a database connection."""


class NodeNotFoundError(StorageError, CoreNodeNotFoundError):
    """Requested resolver node does not exist."""


class RoutingDomainNotFoundError(StorageError, CoreDomainNotFoundError):
    """Requested routing domain does not exist."""


class DuplicateNodeError(StorageError):
    """A resolver node with the same id already exists."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Duplicate resolver node {node_id!r}")
        self.node_id = node_id


class ConcurrentUpdateError(StorageError, PersistenceConflictError):
    """The row's version changed between read and conditional update."""


class IntegrityError(StorageError):
    """A database integrity constraint was violated."""
