from __future__ import annotations

from sqlalchemy import select

from store_leaderboard.extensions import db
from store_leaderboard.models import Role, User


def find_role_by_name(name: str) -> Role | None:
    stmt = select(Role).where(Role.name == name)
    return db.session.execute(stmt).scalar_one_or_none()


def build_auth_claims(user: User) -> dict[str, list[str]]:
    """JWT claims consumed by the permission decorators.

    Tokens are issued by the platform's auth service; this mirrors the claim
    shape it embeds so local tooling and tests can mint compatible tokens.
    """
    roles = sorted({role.name for role in user.roles})
    permissions = sorted(
        {
            permission.code
            for role in user.roles
            for permission in role.permissions
        }
    )
    return {"roles": roles, "permissions": permissions}
