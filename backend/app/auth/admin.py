"""Admin capability and user identity helpers.

``is_admin`` is the single question every admin surface asks. Strategies:

- StaticAllowListPolicy: user ids from configuration (``ADMIN_USER_IDS``).
  Users sign in as ``{user_id}@{login domain}``, so an e-mail on the login
  domain maps back to its user id.
- RoleTablePolicy: an ``admin`` row in ``user_roles``.
- AnyOfPolicy: first policy that says yes wins.
"""

import logging
from typing import Protocol

from backend.app.config import Settings
from backend.app.db.context import RequestContext
from backend.app.db.repositories import RoleRepository

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


def user_id_from_email(email: str | None, domain: str = "vtumitra.local") -> str:
    """``padmesh@vtumitra.local`` -> ``padmesh``; other addresses unchanged."""
    if not email:
        return ""
    suffix = f"@{domain}"
    if email.endswith(suffix):
        return email[: -len(suffix)]
    return email


def display_name(ctx: RequestContext, domain: str = "vtumitra.local") -> str:
    """Name shown in the UI: metadata display name, metadata user id, then e-mail."""
    metadata = ctx.metadata or {}
    if metadata.get("display_name"):
        return str(metadata["display_name"])
    if metadata.get("user_id"):
        return str(metadata["user_id"])
    return user_id_from_email(ctx.email, domain)


class AdminPolicy(Protocol):
    """Decides whether a caller holds the admin capability."""

    async def is_admin(self, ctx: RequestContext) -> bool:
        ...


class StaticAllowListPolicy:
    """Admin ids listed in configuration."""

    def __init__(self, admin_user_ids: list[str], login_domain: str = "vtumitra.local") -> None:
        self._admins = frozenset(admin_user_ids)
        self._domain = login_domain

    async def is_admin(self, ctx: RequestContext) -> bool:
        if ctx.user_id in self._admins:
            return True
        if ctx.email and ctx.email.endswith(f"@{self._domain}"):
            return user_id_from_email(ctx.email, self._domain) in self._admins
        return False


class RoleTablePolicy:
    """Admin role looked up in the role table."""

    def __init__(self, roles: RoleRepository, role: str = ADMIN_ROLE) -> None:
        self._roles = roles
        self._role = role

    async def is_admin(self, ctx: RequestContext) -> bool:
        granted = await self._roles.has_role(ctx.user_id, self._role)
        if granted:
            logger.info("Admin granted via role table for %s", ctx.user_id)
        return granted


class AnyOfPolicy:
    """Composite policy; short-circuits on the first grant."""

    def __init__(self, *policies: AdminPolicy) -> None:
        self._policies = policies

    async def is_admin(self, ctx: RequestContext) -> bool:
        for policy in self._policies:
            if await policy.is_admin(ctx):
                return True
        return False


def build_admin_policy(settings: Settings, roles: RoleRepository) -> AdminPolicy:
    """Allow-list from settings, with the role table as fallback when enabled."""
    static = StaticAllowListPolicy(settings.admin_user_ids, settings.login_email_domain)
    if not settings.admin_role_fallback:
        return static
    return AnyOfPolicy(static, RoleTablePolicy(roles))
