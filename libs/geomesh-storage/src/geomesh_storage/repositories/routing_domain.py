"""Routing domain repository — location registries with version-checked saves."""

from __future__ import annotations

from typing import TYPE_CHECKING

from psycopg import errors as pg_errors
from psycopg.sql import SQL

from geomesh_storage.exceptions import (
    ConcurrentUpdateError,
    IntegrityError,
    RoutingDomainNotFoundError,
)
from geomesh_storage.mappers import RoutingDomainMapper

if TYPE_CHECKING:
    from psycopg import AsyncConnection

    from geomesh_core.models.entities import RoutingDomain
    from geomesh_core.models.identifiers import RoutingDomainId, TenantId

_SELECT_DOMAINS = """
    SELECT d.*,
           COALESCE(
               (SELECT jsonb_agg(
                           jsonb_build_object(
                               'code', l.code,
                               'display_name', l.display_name,
                               'type', l.type,
                               'assigned_node_ids', to_jsonb(l.assigned_node_ids)
                           ) ORDER BY l.position)
                  FROM location_records l
                 WHERE l.domain_id = d.id),
               '[]'::jsonb
           ) AS locations
      FROM routing_domains d
"""


class RoutingDomainRepository:
    """Async repository for RoutingDomain persistence against PostgreSQL."""

    def __init__(self, conn: AsyncConnection[dict[str, object]]) -> None:
        self._conn = conn

    async def create(self, domain: RoutingDomain) -> RoutingDomain:
        """Insert a domain with its locations. Raises IntegrityError on conflict."""
        try:
            async with self._conn.transaction(), self._conn.cursor() as cur:
                await cur.execute(
                    SQL("""
                        INSERT INTO routing_domains (id, tenant_id, name, active, version)
                        VALUES (%(id)s, %(tenant_id)s, %(name)s, %(active)s, %(version)s)
                    """),
                    RoutingDomainMapper.to_row(domain),
                )
                for row in RoutingDomainMapper.location_rows(domain):
                    await cur.execute(
                        SQL("""
                            INSERT INTO location_records
                                (domain_id, position, code, display_name, type,
                                 assigned_node_ids)
                            VALUES
                                (%(domain_id)s, %(position)s, %(code)s, %(display_name)s,
                                 %(type)s, %(assigned_node_ids)s)
                        """),
                        row,
                    )
        except pg_errors.UniqueViolation as exc:
            msg = f"Routing domain {domain.id!r} conflicts with an existing record"
            raise IntegrityError(msg) from exc
        return await self.get_domain(domain.id)

    async def get_domain(self, domain_id: RoutingDomainId) -> RoutingDomain:
        """Fetch a domain by ID. Raises RoutingDomainNotFoundError if missing."""
        async with self._conn.cursor() as cur:
            await cur.execute(
                SQL(_SELECT_DOMAINS + " WHERE d.id = %(id)s"), {"id": str(domain_id)}
            )
            row = await cur.fetchone()
        if row is None:
            raise RoutingDomainNotFoundError(str(domain_id))
        return RoutingDomainMapper.from_row(dict(row))

    async def find_domains_for_tenant(
        self, tenant_id: TenantId, *, active_only: bool = True
    ) -> list[RoutingDomain]:
        """List a tenant's domains, ordered by name."""
        query = _SELECT_DOMAINS + " WHERE d.tenant_id = %(tenant_id)s"
        if active_only:
            query += " AND d.active"
        async with self._conn.cursor() as cur:
            await cur.execute(SQL(query + " ORDER BY d.name"), {"tenant_id": str(tenant_id)})
            rows = await cur.fetchall()
        return [RoutingDomainMapper.from_row(dict(r)) for r in rows]

    async def save_domain(self, domain: RoutingDomain) -> RoutingDomain:
        """Write location assignments if nobody saved the domain since it was read.

        The version bump and the assignment writes share one transaction, so a
        concurrent save either sees the new version or waits for it.
        Raises ConcurrentUpdateError on a stale version.
        """
        async with self._conn.transaction(), self._conn.cursor() as cur:
            await cur.execute(
                SQL("""
                    UPDATE routing_domains SET version = version + 1
                     WHERE id = %(id)s AND version = %(version)s
                    RETURNING version
                """),
                {"id": str(domain.id), "version": domain.version},
            )
            bumped = await cur.fetchone()
            if bumped is None:
                await cur.execute(
                    SQL("SELECT 1 FROM routing_domains WHERE id = %(id)s"), {"id": str(domain.id)}
                )
                if await cur.fetchone() is None:
                    raise RoutingDomainNotFoundError(str(domain.id))
                raise ConcurrentUpdateError("routing domain", str(domain.id))

            for row in RoutingDomainMapper.location_rows(domain):
                await cur.execute(
                    SQL("""
                        UPDATE location_records SET assigned_node_ids = %(assigned_node_ids)s
                         WHERE domain_id = %(domain_id)s AND code = %(code)s
                    """),
                    row,
                )
        return domain.model_copy(update={"version": int(str(bumped["version"]))})
