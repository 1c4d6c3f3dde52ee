"""Tests for access_scope — role and ownership rules shared by every operation."""

from uuid import uuid4

import pytest

from redemption.core.access_scope import (
    visible, mutable, is_privileged, require_portal_actor, require_visible,
    require_mutable, scope_filter,
)
from redemption.core.domain_types import (
    Actor, ActorId, ActorRole, CodeFilter, CodeStatus,
)
from redemption.core.errors import AuthorizationError


def _actor(role: ActorRole) -> Actor:
    return Actor(ActorId(uuid4()), role)


def test_super_admin_sees_everything():
    admin = _actor(ActorRole.SUPER_ADMIN)
    assert is_privileged(admin)
    assert visible(admin, {"generated_by": uuid4()})
    assert mutable(admin, {"generated_by": uuid4()})


def test_manufacturer_sees_only_own_records():
    maker = _actor(ActorRole.MANUFACTURER)
    assert not is_privileged(maker)
    assert visible(maker, {"generated_by": maker.id})
    assert not visible(maker, {"generated_by": uuid4()})
    assert not mutable(maker, {"generated_by": uuid4()})


def test_records_read_by_attribute():
    maker = _actor(ActorRole.MANUFACTURER)

    class Row:
        id = uuid4()
        generated_by = maker.id

    assert visible(maker, Row())


def test_app_user_sees_nothing():
    user = _actor(ActorRole.APP_USER)
    assert not visible(user, {"generated_by": user.id})
    with pytest.raises(AuthorizationError):
        require_portal_actor(user)


def test_require_visible_raises_403_for_foreign_record():
    maker = _actor(ActorRole.MANUFACTURER)
    with pytest.raises(AuthorizationError) as exc:
        require_visible(maker, {"generated_by": uuid4()})
    assert exc.value.http_status == 403


def test_require_mutable_passes_for_owner():
    maker = _actor(ActorRole.MANUFACTURER)
    require_mutable(maker, {"generated_by": maker.id})


def test_scope_filter_leaves_admin_filter_untouched():
    admin = _actor(ActorRole.SUPER_ADMIN)
    requested = CodeFilter(status=CodeStatus.REDEEMED, owner_id=uuid4())
    assert scope_filter(admin, requested) is requested


def test_scope_filter_overrides_requested_owner_for_manufacturer():
    maker = _actor(ActorRole.MANUFACTURER)
    requested = CodeFilter(batch_id="batch_a", owner_id=uuid4())
    scoped = scope_filter(maker, requested)
    assert scoped.owner_id == maker.id
    assert scoped.batch_id == "batch_a"


def test_scope_filter_rejects_app_user():
    with pytest.raises(AuthorizationError):
        scope_filter(_actor(ActorRole.APP_USER), CodeFilter())


def test_denial_context_carries_code_id_for_dict_records():
    maker = _actor(ActorRole.MANUFACTURER)
    code_id = uuid4()
    with pytest.raises(AuthorizationError) as exc:
        require_mutable(maker, {"id": code_id, "generated_by": uuid4()})
    assert exc.value.context.code_id == str(code_id)
