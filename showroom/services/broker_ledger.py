"""Broker balance ledger.

The only place where a commission moves to paid and where a broker's
``total_commission_paid`` grows. Both writes happen in one savepoint, so a
concurrent reader never sees a paid record without the matching balance
movement, or the reverse.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

import structlog
from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.config import settings
from showroom.metrics import BROKER_TOTALS_REPAIRS, COMMISSION_PAY_REJECTIONS, COMMISSIONS_PAID
from showroom.models.audit_log import AuditLog
from showroom.models.broker import Broker
from showroom.models.commission import BrokerCommission
from showroom.models.enums import StaffRole
from showroom.models.staff import StaffProfile
from showroom.services.commission_recorder import to_stored_amount
from showroom.services.errors import (
    AlreadyPaid,
    BrokerNotFound,
    CommissionNotFound,
    Forbidden,
    PersistenceError,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class BrokerTotalsRepair:
    broker_id: uuid.UUID
    stored_due: Decimal
    stored_paid: Decimal
    due: Decimal
    paid: Decimal

    @property
    def corrected(self) -> bool:
        return self.stored_due != self.due or self.stored_paid != self.paid


def _require_owner(caller: StaffProfile, action: str) -> None:
    if caller.role != StaffRole.OWNER:
        logger.warning("ledger_forbidden", action=action, staff_id=str(caller.id), role=str(caller.role))
        raise Forbidden(f"Only owners can {action}")


async def settle_broker_balance(db: AsyncSession, broker_id: uuid.UUID, amount: Decimal) -> None:
    """Move ``amount`` from the broker's due balance to its paid balance."""
    await db.execute(
        update(Broker)
        .where(Broker.id == broker_id)
        .values(
            total_commission_due=Broker.total_commission_due - amount,
            total_commission_paid=Broker.total_commission_paid + amount,
        )
    )


async def _pay(db: AsyncSession, commission_id: uuid.UUID, caller: StaffProfile) -> BrokerCommission:
    result = await db.execute(
        select(BrokerCommission).where(BrokerCommission.id == commission_id).with_for_update()
    )
    commission = result.scalar_one_or_none()
    if commission is None:
        raise CommissionNotFound(f"Commission {commission_id} not found")
    if commission.is_paid:
        raise AlreadyPaid(commission_id)

    # Guarded write: only one of two racing calls can flip the flag
    paid_at = datetime.now(timezone.utc)
    flipped = await db.execute(
        update(BrokerCommission)
        .where(BrokerCommission.id == commission_id, BrokerCommission.is_paid == False)  # noqa: E712
        .values(is_paid=True, paid_date=paid_at)
    )
    if flipped.rowcount != 1:
        raise AlreadyPaid(commission_id)

    await settle_broker_balance(db, commission.broker_id, commission.commission_amount)

    db.add(
        AuditLog(
            action="commission_paid",
            actor_id=caller.id,
            target_type="broker_commission",
            target_id=commission.id,
            detail=f"Paid {commission.commission_amount} {settings.CURRENCY_CODE}",
            metadata_json={
                "broker_id": str(commission.broker_id),
                "car_id": str(commission.car_id),
                "amount": str(commission.commission_amount),
            },
        )
    )
    await db.flush()
    return commission


async def mark_commission_paid(
    db: AsyncSession, commission_id: uuid.UUID, caller: StaffProfile
) -> BrokerCommission:
    """Mark an unpaid commission paid and settle it on the broker's balances.

    Raises Forbidden for non-owners, CommissionNotFound, AlreadyPaid when the
    record is (or concurrently became) paid, and PersistenceError when the
    store rejects a write. In every failure case nothing is changed.
    """
    try:
        _require_owner(caller, "mark commissions paid")
    except Forbidden:
        COMMISSION_PAY_REJECTIONS.labels(reason="forbidden").inc()
        raise

    try:
        async with db.begin_nested():
            commission = await _pay(db, commission_id, caller)
    except AlreadyPaid:
        COMMISSION_PAY_REJECTIONS.labels(reason="already_paid").inc()
        logger.info("commission_already_paid", commission_id=str(commission_id))
        raise
    except SQLAlchemyError as exc:
        logger.exception("commission_pay_failed", commission_id=str(commission_id))
        raise PersistenceError(f"Could not mark commission {commission_id} paid") from exc

    COMMISSIONS_PAID.inc()
    logger.info(
        "commission_paid",
        commission_id=str(commission.id),
        broker_id=str(commission.broker_id),
        amount=str(commission.commission_amount),
        currency=settings.CURRENCY_CODE,
        paid_by=str(caller.id),
    )
    return commission


async def compute_broker_totals(db: AsyncSession, broker_id: uuid.UUID) -> tuple[Decimal, Decimal]:
    """Live (due, paid) aggregates for a broker, straight from its commission records."""
    result = await db.execute(
        select(
            func.coalesce(
                func.sum(
                    case((BrokerCommission.is_paid == False, BrokerCommission.commission_amount), else_=0)  # noqa: E712
                ),
                0,
            ),
            func.coalesce(
                func.sum(
                    case((BrokerCommission.is_paid == True, BrokerCommission.commission_amount), else_=0)  # noqa: E712
                ),
                0,
            ),
        ).where(BrokerCommission.broker_id == broker_id)
    )
    due, paid = result.one()
    return to_stored_amount(Decimal(str(due))), to_stored_amount(Decimal(str(paid)))


async def _repair(
    db: AsyncSession, caller: StaffProfile, broker_id: uuid.UUID | None
) -> list[BrokerTotalsRepair]:
    stmt = select(Broker).order_by(Broker.name).with_for_update().execution_options(populate_existing=True)
    if broker_id is not None:
        stmt = stmt.where(Broker.id == broker_id)
    brokers = (await db.execute(stmt)).scalars().all()
    if broker_id is not None and not brokers:
        raise BrokerNotFound(f"Broker {broker_id} not found")

    repairs = []
    for broker in brokers:
        due, paid = await compute_broker_totals(db, broker.id)
        repair = BrokerTotalsRepair(
            broker_id=broker.id,
            stored_due=to_stored_amount(Decimal(str(broker.total_commission_due))),
            stored_paid=to_stored_amount(Decimal(str(broker.total_commission_paid))),
            due=due,
            paid=paid,
        )
        repairs.append(repair)
        if not repair.corrected:
            continue

        logger.warning(
            "broker_totals_drift",
            broker_id=str(broker.id),
            stored_due=str(repair.stored_due),
            stored_paid=str(repair.stored_paid),
            due=str(due),
            paid=str(paid),
        )
        await db.execute(
            update(Broker)
            .where(Broker.id == broker.id)
            .values(total_commission_due=due, total_commission_paid=paid)
        )
        db.add(
            AuditLog(
                action="broker_totals_repaired",
                actor_id=caller.id,
                target_type="broker",
                target_id=broker.id,
                metadata_json={
                    "stored_due": str(repair.stored_due),
                    "stored_paid": str(repair.stored_paid),
                    "due": str(due),
                    "paid": str(paid),
                },
            )
        )
    await db.flush()
    return repairs


async def repair_broker_totals(
    db: AsyncSession, caller: StaffProfile, broker_id: uuid.UUID | None = None
) -> list[BrokerTotalsRepair]:
    """Recompute broker due/paid totals from commission records and store them.

    Maintenance escape hatch for drift in the materialized balances. Repairs
    one broker when ``broker_id`` is given, every broker otherwise.
    """
    _require_owner(caller, "repair broker totals")
    try:
        async with db.begin_nested():
            repairs = await _repair(db, caller, broker_id)
    except SQLAlchemyError as exc:
        logger.exception("broker_totals_repair_failed", broker_id=str(broker_id) if broker_id else None)
        raise PersistenceError("Could not repair broker totals") from exc

    corrected = sum(1 for r in repairs if r.corrected)
    if corrected:
        BROKER_TOTALS_REPAIRS.inc(corrected)
    logger.info("broker_totals_repaired", examined=len(repairs), corrected=corrected)
    return repairs


# --- Read accessors ---


async def get_broker(db: AsyncSession, broker_id: uuid.UUID) -> Broker:
    result = await db.execute(
        select(Broker).where(Broker.id == broker_id).execution_options(populate_existing=True)
    )
    broker = result.scalar_one_or_none()
    if broker is None:
        raise BrokerNotFound(f"Broker {broker_id} not found")
    return broker


async def list_brokers(db: AsyncSession) -> list[Broker]:
    result = await db.execute(
        select(Broker).order_by(Broker.name).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_commissions(
    db: AsyncSession,
    broker_id: uuid.UUID | None = None,
    is_paid: bool | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[int, list[BrokerCommission]]:
    """Commission records, newest first, optionally filtered by broker and paid status."""
    stmt = select(BrokerCommission)
    count_stmt = select(func.count(BrokerCommission.id))
    if broker_id is not None:
        stmt = stmt.where(BrokerCommission.broker_id == broker_id)
        count_stmt = count_stmt.where(BrokerCommission.broker_id == broker_id)
    if is_paid is not None:
        stmt = stmt.where(BrokerCommission.is_paid == is_paid)
        count_stmt = count_stmt.where(BrokerCommission.is_paid == is_paid)

    total = (await db.execute(count_stmt)).scalar() or 0
    result = await db.execute(
        stmt.order_by(BrokerCommission.created_at.desc()).offset(offset).limit(limit)
    )
    return total, list(result.scalars().all())
