"""Node repository — async access to resolver_nodes and their geolocation history."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from psycopg import errors as pg_errors
from psycopg.sql import SQL, Composed, Identifier, Placeholder

from geomesh_core.exceptions import InvalidInputError
from geomesh_core.models.entities import GEO_HISTORY_LIMIT
from geomesh_core.models.values import GeoInfo
from geomesh_storage.exceptions import (
    ConcurrentUpdateError,
    DuplicateNodeError,
    NodeNotFoundError,
)
from geomesh_storage.mappers import NodeMapper

if TYPE_CHECKING:
    from collections.abc import Mapping

    from psycopg import AsyncConnection

    from geomesh_core.models.entities import ResolverNode
    from geomesh_core.models.identifiers import NodeId
    from geomesh_core.models.values import GeoHistoryEntry

_SELECT_NODES = """
    SELECT n.*,
           COALESCE(
               (SELECT jsonb_agg(
                           jsonb_build_object(
                               'ip_address', h.ip_address,
                               'changed_at', h.changed_at,
                               'country', h.country,
                               'city', h.city,
                               'isp', h.isp
                           ) ORDER BY h.changed_at, h.id)
                  FROM node_geo_history h
                 WHERE h.node_id = n.id),
               '[]'::jsonb
           ) AS geo_history
      FROM resolver_nodes n
"""

UPDATABLE_COLUMNS = frozenset(
    {
        "name",
        "active",
        "connected",
        "last_heartbeat",
        "connected_at",
        "inactivity_threshold_seconds",
        "polling_interval_seconds",
        "ip_address",
        "geo",
    }
)


def _column_value(name: str, value: Any) -> Any:
    if name != "geo":
        return value
    if isinstance(value, dict):
        value = GeoInfo.model_validate(value)
    return NodeMapper.geo_to_column(value)


class NodeRepository:
    """Async repository for ResolverNode persistence against PostgreSQL."""

    def __init__(self, conn: AsyncConnection[dict[str, object]]) -> None:
        self._conn = conn

    async def create(self, node: ResolverNode) -> ResolverNode:
        """Insert a new node. Raises DuplicateNodeError on conflict."""
        try:
            async with self._conn.transaction():
                async with self._conn.cursor() as cur:
                    await cur.execute(
                        SQL("""
                            INSERT INTO resolver_nodes
                                (id, tenant_id, name, active, connected, last_heartbeat,
                                 connected_at, inactivity_threshold_seconds,
                                 polling_interval_seconds, ip_address, geo)
                            VALUES
                                (%(id)s, %(tenant_id)s, %(name)s, %(active)s, %(connected)s,
                                 %(last_heartbeat)s, %(connected_at)s,
                                 %(inactivity_threshold_seconds)s, %(polling_interval_seconds)s,
                                 %(ip_address)s, %(geo)s)
                        """),
                        NodeMapper.to_row(node),
                    )
                for entry in node.geo_history:
                    await self.append_geo_history(node.id, entry)
        except pg_errors.UniqueViolation:
            raise DuplicateNodeError(str(node.id)) from None
        return await self.get_node(node.id)

    async def get_node(self, node_id: NodeId) -> ResolverNode:
        """Fetch a node by its ID. Raises NodeNotFoundError if missing."""
        async with self._conn.cursor() as cur:
            await cur.execute(SQL(_SELECT_NODES + " WHERE n.id = %(id)s"), {"id": str(node_id)})
            row = await cur.fetchone()
        if row is None:
            raise NodeNotFoundError(str(node_id))
        return NodeMapper.from_row(dict(row))

    async def list_nodes(self) -> list[ResolverNode]:
        """All nodes, ordered by id."""
        async with self._conn.cursor() as cur:
            await cur.execute(SQL(_SELECT_NODES + " ORDER BY n.id"))
            rows = await cur.fetchall()
        return [NodeMapper.from_row(dict(r)) for r in rows]

    async def find_active_nodes_with_ip(self) -> list[ResolverNode]:
        """Nodes eligible for selection: active and with a known address."""
        async with self._conn.cursor() as cur:
            await cur.execute(
                SQL(
                    _SELECT_NODES
                    + " WHERE n.active AND n.ip_address IS NOT NULL AND n.ip_address <> ''"
                    + " ORDER BY n.id"
                )
            )
            rows = await cur.fetchall()
        return [NodeMapper.from_row(dict(r)) for r in rows]

    async def update_node(
        self, node_id: NodeId, *, expected: Mapping[str, Any] | None = None, **fields: Any
    ) -> ResolverNode:
        """Overwrite the given columns. Raises NodeNotFoundError if missing.

        ``expected`` turns the write into a compare-and-set: the row is only
        updated while each named column still holds the given value, and
        ConcurrentUpdateError is raised when it no longer does.
        """
        expected = expected or {}
        unknown = (set(fields) | set(expected)) - UPDATABLE_COLUMNS
        if unknown:
            msg = f"Cannot update node fields: {', '.join(sorted(unknown))}"
            raise InvalidInputError(msg)
        if not fields:
            return await self.get_node(node_id)

        params = {name: _column_value(name, value) for name, value in fields.items()}
        params.update(
            {f"expected_{name}": _column_value(name, value) for name, value in expected.items()}
        )
        params["id"] = str(node_id)

        assignments = Composed(
            [SQL("{} = {}").format(Identifier(name), Placeholder(name)) for name in fields]
        ).join(", ")
        conditions = Composed(
            [SQL("id = %(id)s")]
            + [
                SQL("{} IS NOT DISTINCT FROM {}").format(
                    Identifier(name), Placeholder(f"expected_{name}")
                )
                for name in expected
            ]
        ).join(" AND ")
        async with self._conn.cursor() as cur:
            await cur.execute(
                SQL("UPDATE resolver_nodes SET {} WHERE {} RETURNING id").format(
                    assignments, conditions
                ),
                params,
            )
            result = await cur.fetchone()
        if result is None:
            current = await self.get_node(node_id)
            raise ConcurrentUpdateError("resolver node", str(current.id))
        return await self.get_node(node_id)

    async def append_geo_history(
        self, node_id: NodeId, entry: GeoHistoryEntry, max_len: int = GEO_HISTORY_LIMIT
    ) -> None:
        """Append a history entry and keep only the newest ``max_len`` entries."""
        try:
            async with self._conn.transaction(), self._conn.cursor() as cur:
                await cur.execute(
                    SQL("""
                        INSERT INTO node_geo_history
                            (node_id, ip_address, changed_at, country, city, isp)
                        VALUES
                            (%(node_id)s, %(ip_address)s, %(changed_at)s,
                             %(country)s, %(city)s, %(isp)s)
                    """),
                    NodeMapper.history_to_row(node_id, entry),
                )
                await cur.execute(
                    SQL("""
                        DELETE FROM node_geo_history
                         WHERE node_id = %(node_id)s
                           AND id NOT IN (
                               SELECT id FROM node_geo_history
                                WHERE node_id = %(node_id)s
                                ORDER BY changed_at DESC, id DESC
                                LIMIT %(max_len)s)
                    """),
                    {"node_id": str(node_id), "max_len": max_len},
                )
        except pg_errors.ForeignKeyViolation:
            raise NodeNotFoundError(str(node_id)) from None
