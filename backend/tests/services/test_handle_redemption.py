"""Redemption Handlers — tests for the single-use transition.

Tests cover:
    - Redeem flips status and records who and when
    - Second redemption of the same code is a 404, state unchanged
    - Unknown, malformed and inactive codes
    - Concurrent redeemers: exactly one wins
"""

import asyncio
from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy import update

from redemption.core.domain_types import Actor, ActorId, ActorRole, CodeFilter
from redemption.core.errors import ResourceNotFoundError, ValidationError
from redemption.infrastructure.code_store import SqlCodeStore
from redemption.models.redemption_code import RedemptionCode
from redemption.services.code_generator import CodeGenerator
from redemption.services.handle_generation import GenerationHandlers
from redemption.services.handle_redemption import RedemptionHandlers
from tests.services.fake_store import FakeCodeStore


async def _record_for(store, batch_id, code):
    rows, _ = await store.find(CodeFilter(batch_id=batch_id), 0, 100)
    return next(r for r in rows if r["code"] == code)


async def test_redeem_marks_code_redeemed(issue_batch, redemption, store, manufacturer, app_user):
    batch = await issue_batch(manufacturer, quantity=3)
    code = batch["codes"][1]

    result = await redemption.redeem_code(app_user, code)

    assert result["code"] == code
    assert result["batch_id"] == batch["batch_id"]
    record = await store.get(result["id"])
    assert record["status"] == "redeemed"
    assert record["redeemed_by"] == app_user.id
    assert record["redeemed_at"] is not None
    assert record["redeemed_at"] >= record["created_at"]
    assert record["generated_by"] == manufacturer.id


async def test_redeem_leaves_batch_siblings_untouched(issue_batch, redemption, store, admin, app_user):
    batch = await issue_batch(admin, quantity=3)
    await redemption.redeem_code(app_user, batch["codes"][0])
    counts = await store.status_counts(None)
    assert counts == {"redeemed": 1, "unredeemed": 2}


async def test_second_redemption_is_not_found(issue_batch, redemption, store, admin, app_user, manufacturer):
    batch = await issue_batch(admin, quantity=1)
    code = batch["codes"][0]
    await redemption.redeem_code(app_user, code)
    before = await _record_for(store, batch["batch_id"], code)

    with pytest.raises(ResourceNotFoundError) as exc:
        await redemption.redeem_code(manufacturer, code)

    assert exc.value.http_status == 404
    assert code not in exc.value.message
    after = await _record_for(store, batch["batch_id"], code)
    assert after["redeemed_by"] == before["redeemed_by"] == app_user.id
    assert after["redeemed_at"] == before["redeemed_at"]


async def test_unknown_code_is_not_found(redemption, app_user):
    with pytest.raises(ResourceNotFoundError):
        await redemption.redeem_code(app_user, "deadbeef12")


async def test_input_normalized_before_lookup(issue_batch, redemption, admin, app_user):
    batch = await issue_batch(admin, quantity=1)
    code = batch["codes"][0]
    result = await redemption.redeem_code(app_user, f"  {code.upper()} ")
    assert result["code"] == code


@pytest.mark.parametrize("bad", ["xyz", "deadbee", "g" * 12, "a" * 21, ""])
async def test_malformed_code_rejected_before_store(app_user, bad):
    store = FakeCodeStore()
    with pytest.raises(ValidationError):
        await RedemptionHandlers(store).redeem_code(app_user, bad)
    assert store.calls == []


async def test_inactive_code_cannot_be_redeemed(issue_batch, redemption, test_db, admin, app_user):
    batch = await issue_batch(admin, quantity=1)
    code = batch["codes"][0]
    await test_db.execute(
        update(RedemptionCode).where(RedemptionCode.code == code).values(is_active=False),
    )
    await test_db.commit()

    with pytest.raises(ResourceNotFoundError):
        await redemption.redeem_code(app_user, code)


async def test_clock_sets_redeemed_at(issue_batch, store, admin, app_user):
    batch = await issue_batch(admin, quantity=1)
    pinned = datetime.now(timezone.utc)
    handlers = RedemptionHandlers(store, clock=lambda: pinned)
    result = await handlers.redeem_code(app_user, batch["codes"][0])
    assert result["redeemed_at"].replace(tzinfo=None) == pinned.replace(tzinfo=None)


async def test_concurrent_redeemers_exactly_one_wins(file_session_factory, admin):
    async with file_session_factory() as session:
        store = SqlCodeStore(session)
        batch = await GenerationHandlers(store, CodeGenerator(store)).generate_codes(
            admin, 1, 12,
        )
    code = batch["codes"][0]
    redeemers = [Actor(ActorId(uuid4()), ActorRole.APP_USER) for _ in range(10)]

    async def _attempt(actor):
        async with file_session_factory() as session:
            return await RedemptionHandlers(SqlCodeStore(session)).redeem_code(actor, code)

    outcomes = await asyncio.gather(
        *(_attempt(actor) for actor in redeemers), return_exceptions=True,
    )

    winners = [a for a, o in zip(redeemers, outcomes) if isinstance(o, dict)]
    wins = [o for o in outcomes if isinstance(o, dict)]
    misses = [o for o in outcomes if isinstance(o, ResourceNotFoundError)]
    assert len(wins) == 1
    assert len(misses) == 9

    async with file_session_factory() as session:
        record = await SqlCodeStore(session).get(wins[0]["id"])
    assert record["status"] == "redeemed"
    assert record["redeemed_by"] == winners[0].id
    assert record["redeemed_at"] is not None
    assert record["redeemed_at"] >= record["created_at"]
