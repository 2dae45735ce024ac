"""Initial schema — resolver nodes, geolocation history, routing domains.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE resolver_nodes (
            id                           VARCHAR(255) PRIMARY KEY,
            tenant_id                    VARCHAR(255) NOT NULL,
            name                         TEXT         NOT NULL,
            active                       BOOLEAN      NOT NULL DEFAULT FALSE,
            connected                    BOOLEAN      NOT NULL DEFAULT FALSE,
            last_heartbeat               TIMESTAMPTZ,
            connected_at                 TIMESTAMPTZ,
            inactivity_threshold_seconds INTEGER      NOT NULL DEFAULT 300
                                             CHECK (inactivity_threshold_seconds > 0),
            polling_interval_seconds     INTEGER      NOT NULL DEFAULT 60,
            ip_address                   VARCHAR(64),
            geo                          JSONB
        )
    """)

    op.execute("CREATE INDEX idx_resolver_nodes_tenant_id ON resolver_nodes (tenant_id)")
    op.execute("CREATE INDEX idx_resolver_nodes_active ON resolver_nodes (active)")

    op.execute("""
        CREATE TABLE node_geo_history (
            id          BIGSERIAL    PRIMARY KEY,
            node_id     VARCHAR(255) NOT NULL
                            REFERENCES resolver_nodes(id) ON DELETE CASCADE,
            ip_address  VARCHAR(64)  NOT NULL,
            changed_at  TIMESTAMPTZ  NOT NULL,
            country     TEXT,
            city        TEXT,
            isp         TEXT
        )
    """)

    op.execute("CREATE INDEX idx_node_geo_history_node_id ON node_geo_history (node_id)")

    op.execute("""
        CREATE TABLE routing_domains (
            id         VARCHAR(255) PRIMARY KEY,
            tenant_id  VARCHAR(255) NOT NULL,
            name       TEXT         NOT NULL,
            active     BOOLEAN      NOT NULL DEFAULT TRUE,
            version    INTEGER      NOT NULL DEFAULT 0
        )
    """)

    op.execute("CREATE INDEX idx_routing_domains_tenant_id ON routing_domains (tenant_id)")

    op.execute("""
        CREATE TABLE location_records (
            domain_id          VARCHAR(255) NOT NULL
                                   REFERENCES routing_domains(id) ON DELETE CASCADE,
            code               VARCHAR(64)  NOT NULL,
            position           INTEGER      NOT NULL,
            display_name       TEXT         NOT NULL,
            type               VARCHAR(16)  NOT NULL
                                   CHECK (type IN ('continent', 'country', 'custom')),
            assigned_node_ids  TEXT[]       NOT NULL DEFAULT '{}',

            PRIMARY KEY (domain_id, code)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS location_records")
    op.execute("DROP TABLE IF EXISTS routing_domains")
    op.execute("DROP TABLE IF EXISTS node_geo_history")
    op.execute("DROP TABLE IF EXISTS resolver_nodes")
