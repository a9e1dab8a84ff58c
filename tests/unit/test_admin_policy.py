"""Unit tests for the admin capability and identity helpers."""

import pytest

from backend.app.auth.admin import (
    AnyOfPolicy,
    RoleTablePolicy,
    StaticAllowListPolicy,
    build_admin_policy,
    display_name,
    user_id_from_email,
)
from backend.app.config import Settings
from backend.app.db.context import RequestContext
from backend.app.db.inmemory import InMemoryRoleRepository


def test_user_id_from_login_email() -> None:
    assert user_id_from_email("padmesh@vtumitra.local") == "padmesh"
    assert user_id_from_email("someone@gmail.com") == "someone@gmail.com"
    assert user_id_from_email(None) == ""


def test_display_name_preference_order() -> None:
    ctx = RequestContext(user_id="uuid-1", email="ravi@vtumitra.local")
    assert display_name(ctx) == "ravi"

    ctx = RequestContext(user_id="uuid-1", email="ravi@vtumitra.local", metadata={"user_id": "ravi_k"})
    assert display_name(ctx) == "ravi_k"

    ctx = RequestContext(
        user_id="uuid-1",
        email="ravi@vtumitra.local",
        metadata={"user_id": "ravi_k", "display_name": "Ravi Kumar"},
    )
    assert display_name(ctx) == "Ravi Kumar"


class TestStaticAllowList:
    @pytest.mark.asyncio
    async def test_login_email_maps_to_admin_id(self) -> None:
        policy = StaticAllowListPolicy(["admin", "padmesh"])
        assert await policy.is_admin(RequestContext(user_id="uuid-9", email="padmesh@vtumitra.local"))

    @pytest.mark.asyncio
    async def test_user_id_match(self) -> None:
        policy = StaticAllowListPolicy(["admin"])
        assert await policy.is_admin(RequestContext(user_id="admin"))

    @pytest.mark.asyncio
    async def test_other_domains_do_not_map(self) -> None:
        policy = StaticAllowListPolicy(["padmesh"])
        assert not await policy.is_admin(RequestContext(user_id="uuid-9", email="padmesh@evil.example"))


class TestRoleTable:
    @pytest.mark.asyncio
    async def test_role_row_grants_admin(self) -> None:
        policy = RoleTablePolicy(InMemoryRoleRepository({"uuid-3": {"admin"}, "uuid-4": {"moderator"}}))

        assert await policy.is_admin(RequestContext(user_id="uuid-3"))
        assert not await policy.is_admin(RequestContext(user_id="uuid-4"))


class TestComposition:
    @pytest.mark.asyncio
    async def test_any_of_checks_each_policy(self) -> None:
        policy = AnyOfPolicy(
            StaticAllowListPolicy(["admin"]),
            RoleTablePolicy(InMemoryRoleRepository({"uuid-3": {"admin"}})),
        )

        assert await policy.is_admin(RequestContext(user_id="admin"))
        assert await policy.is_admin(RequestContext(user_id="uuid-3"))
        assert not await policy.is_admin(RequestContext(user_id="uuid-5", email="x@vtumitra.local"))

    @pytest.mark.asyncio
    async def test_fallback_can_be_disabled(self) -> None:
        roles = InMemoryRoleRepository({"uuid-3": {"admin"}})
        settings = Settings(admin_user_ids=["admin"], admin_role_fallback=False)

        policy = build_admin_policy(settings, roles)

        assert isinstance(policy, StaticAllowListPolicy)
        assert not await policy.is_admin(RequestContext(user_id="uuid-3"))
