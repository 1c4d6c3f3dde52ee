"""SQL Code Store — SQLAlchemy implementation of the CodeStore protocol.

Invariants:
    - insert_many is one INSERT ... ON CONFLICT (code) DO NOTHING RETURNING:
      a duplicate code drops that row only, never the rest
    - redeem is one UPDATE ... WHERE code AND status='unredeemed' AND is_active RETURNING:
      the database orders concurrent redeemers, exactly one gets the row back
    - delete_many is one DELETE ... RETURNING: reported records are exactly the removed ones
    - renumber only touches rows of the given batch_id, all moves in one commit
    - Each write commits on its own (no transaction spans calls)
    - CodeFilter is translated to SQL in one place (_apply_filter)

Design Decisions:
    - Dialect-specific insert (postgresql / sqlite): both support ON CONFLICT and RETURNING
    - synchronize_session=False on UPDATE/DELETE: each request owns a fresh session
    - populate_existing on reads: a session reused across calls never serves stale rows
    - Search is case-insensitive substring over code and batch_id, LIKE wildcards escaped
"""

import logging
from datetime import datetime

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from redemption.core.domain_types import ActorId, CodeFilter, CodeId, CodeStatus
from redemption.core.errors import StoreError
from redemption.models.redemption_code import RedemptionCode

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _apply_filter(query: Select, code_filter: CodeFilter) -> Select:
    """Translate CodeFilter into WHERE clauses."""
    if code_filter.status is not None:
        query = query.where(RedemptionCode.status == CodeStatus(code_filter.status).value)
    if code_filter.batch_id:
        query = query.where(RedemptionCode.batch_id == code_filter.batch_id)
    if code_filter.owner_id is not None:
        query = query.where(RedemptionCode.generated_by == code_filter.owner_id)
    if code_filter.search:
        query = query.where(or_(
            RedemptionCode.code.icontains(code_filter.search, autoescape=True),
            RedemptionCode.batch_id.icontains(code_filter.search, autoescape=True),
        ))
    return query


class SqlCodeStore:
    """CodeStore backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _dialect_insert(self):
        dialect = self.db.bind.dialect.name
        try:
            return _DIALECT_INSERTS[dialect]
        except KeyError:
            raise StoreError(f"unsupported dialect '{dialect}'", "insert")

    async def ping(self) -> None:
        """Touch the codes table; raises if the store or its schema is missing."""
        await self.db.execute(select(RedemptionCode.id).limit(1))

    async def existing_codes(self, codes: list[str]) -> set[str]:
        if not codes:
            return set()
        result = await self.db.execute(
            select(RedemptionCode.code).where(RedemptionCode.code.in_(codes)),
        )
        return set(result.scalars().all())

    async def insert_many(self, rows: list[dict]) -> list[dict]:
        if not rows:
            return []
        insert = self._dialect_insert()
        stmt = (
            insert(RedemptionCode)
            .values(rows)
            .on_conflict_do_nothing(index_elements=["code"])
            .returning(
                RedemptionCode.id,
                RedemptionCode.code,
                RedemptionCode.batch_number,
            )
        )
        result = await self.db.execute(stmt)
        inserted = [
            {"id": row.id, "code": row.code, "batch_number": row.batch_number}
            for row in result
        ]
        await self.db.commit()
        if len(inserted) < len(rows):
            logger.warning(
                f"Bulk insert skipped {len(rows) - len(inserted)} duplicate code(s)",
                extra={"requested": len(rows), "inserted": len(inserted)},
            )
        return inserted

    async def renumber(
        self, batch_id: str, moves: list[tuple[int, int]],
    ) -> None:
        for source, target in moves:
            await self.db.execute(
                update(RedemptionCode)
                .where(
                    RedemptionCode.batch_id == batch_id,
                    RedemptionCode.batch_number == source,
                )
                .values(batch_number=target)
                .execution_options(synchronize_session=False),
            )
        await self.db.commit()

    async def redeem(
        self, code: str, actor_id: ActorId, now: datetime,
    ) -> dict | None:
        stmt = (
            update(RedemptionCode)
            .where(
                RedemptionCode.code == code,
                RedemptionCode.status == CodeStatus.UNREDEEMED.value,
                RedemptionCode.is_active.is_(True),
            )
            .values(
                status=CodeStatus.REDEEMED.value,
                redeemed_at=now,
                redeemed_by=actor_id,
                updated_at=now,
            )
            .returning(RedemptionCode)
            .execution_options(synchronize_session=False, populate_existing=True)
        )
        result = await self.db.execute(stmt)
        redeemed = result.scalar_one_or_none()
        record = redeemed.to_record() if redeemed else None
        await self.db.commit()
        return record

    async def get(self, code_id: CodeId) -> dict | None:
        result = await self.db.execute(
            select(RedemptionCode)
            .where(RedemptionCode.id == code_id)
            .execution_options(populate_existing=True),
        )
        code = result.scalar_one_or_none()
        return code.to_record() if code else None

    async def find(
        self, code_filter: CodeFilter, offset: int, limit: int,
    ) -> tuple[list[dict], int]:
        total = await self.db.scalar(
            _apply_filter(
                select(func.count()).select_from(RedemptionCode), code_filter,
            ),
        )
        query = (
            _apply_filter(select(RedemptionCode), code_filter)
            .order_by(
                RedemptionCode.created_at.desc(),
                RedemptionCode.batch_number.asc(),
            )
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return [c.to_record() for c in result.scalars().all()], total or 0

    async def delete_many(
        self,
        *,
        ids: list[CodeId] | None = None,
        batch_id: str | None = None,
        owner_id: ActorId | None = None,
    ) -> list[dict]:
        if ids is None and batch_id is None:
            raise ValueError("delete_many needs ids or batch_id")
        stmt = delete(RedemptionCode)
        if ids is not None:
            stmt = stmt.where(RedemptionCode.id.in_(ids))
        if batch_id is not None:
            stmt = stmt.where(RedemptionCode.batch_id == batch_id)
        if owner_id is not None:
            stmt = stmt.where(RedemptionCode.generated_by == owner_id)
        stmt = stmt.returning(
            RedemptionCode.id, RedemptionCode.code, RedemptionCode.batch_id,
        ).execution_options(synchronize_session=False)
        result = await self.db.execute(stmt)
        deleted = [
            {"id": row.id, "code": row.code, "batch_id": row.batch_id}
            for row in result
        ]
        await self.db.commit()
        return deleted

    async def status_counts(self, owner_id: ActorId | None) -> dict[str, int]:
        query = (
            select(RedemptionCode.status, func.count())
            .group_by(RedemptionCode.status)
        )
        if owner_id is not None:
            query = query.where(RedemptionCode.generated_by == owner_id)
        result = await self.db.execute(query)
        return {status: count for status, count in result.all()}

    async def recent_batches(
        self, owner_id: ActorId | None, limit: int,
    ) -> list[dict]:
        created = func.min(RedemptionCode.created_at)
        query = (
            select(
                RedemptionCode.batch_id,
                func.count().label("code_count"),
                func.max(RedemptionCode.quantity).label("quantity"),
                created.label("created_at"),
            )
            .group_by(RedemptionCode.batch_id)
            .order_by(created.desc())
            .limit(limit)
        )
        if owner_id is not None:
            query = query.where(RedemptionCode.generated_by == owner_id)
        result = await self.db.execute(query)
        return [
            {
                "batch_id": row.batch_id,
                "count": row.code_count,
                "quantity": row.quantity,
                "created_at": row.created_at,
            }
            for row in result
        ]
