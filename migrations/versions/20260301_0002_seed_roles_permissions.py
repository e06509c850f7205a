"""seed roles and permissions

Revision ID: 20260301_0002
Revises: 20260301_0001
Create Date: 2026-03-01 00:15:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20260301_0002"
down_revision: str | None = "20260301_0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ROLE_NAMES = ["super_admin", "admin", "support_ops", "seller", "buyer"]

PERMISSION_MODULES = {
    "leaderboard.read": "leaderboard",
    "analytics.read": "analytics",
}

ROLE_PERMISSIONS = {
    "super_admin": ["leaderboard.read", "analytics.read"],
    "admin": ["leaderboard.read", "analytics.read"],
    "support_ops": ["leaderboard.read"],
}


def upgrade() -> None:
    roles_table = sa.table(
        "roles",
        sa.column("id", sa.Integer),
        sa.column("name", sa.String),
    )
    permissions_table = sa.table(
        "permissions",
        sa.column("id", sa.Integer),
        sa.column("code", sa.String),
        sa.column("module", sa.String),
    )
    role_permissions_table = sa.table(
        "role_permissions",
        sa.column("role_id", sa.Integer),
        sa.column("permission_id", sa.Integer),
    )

    op.bulk_insert(roles_table, [{"name": name} for name in ROLE_NAMES])
    op.bulk_insert(
        permissions_table,
        [{"code": code, "module": module} for code, module in PERMISSION_MODULES.items()],
    )

    connection = op.get_bind()
    role_id_by_name = {
        row["name"]: row["id"]
        for row in connection.execute(sa.text("SELECT id, name FROM roles")).mappings().all()
    }
    permission_id_by_code = {
        row["code"]: row["id"]
        for row in connection.execute(sa.text("SELECT id, code FROM permissions")).mappings().all()
    }

    op.bulk_insert(
        role_permissions_table,
        [
            {"role_id": role_id_by_name[role_name], "permission_id": permission_id_by_code[code]}
            for role_name, codes in ROLE_PERMISSIONS.items()
            for code in codes
        ],
    )


def downgrade() -> None:
    connection = op.get_bind()
    role_names = sa.bindparam("role_names", expanding=True)
    codes = sa.bindparam("codes", expanding=True)

    connection.execute(
        sa.text(
            "DELETE FROM role_permissions WHERE role_id IN "
            "(SELECT id FROM roles WHERE name IN :role_names)"
        ).bindparams(role_names),
        {"role_names": ROLE_NAMES},
    )
    connection.execute(
        sa.text("DELETE FROM permissions WHERE code IN :codes").bindparams(codes),
        {"codes": list(PERMISSION_MODULES)},
    )
    connection.execute(
        sa.text("DELETE FROM roles WHERE name IN :role_names").bindparams(role_names),
        {"role_names": ROLE_NAMES},
    )
