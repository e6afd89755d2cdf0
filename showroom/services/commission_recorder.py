"""Keep each car's broker commission record in sync with the car.

A car has at most one commission record. Reconciliation creates, updates or
removes it from the car's current broker, commission policy and price, and
moves the owning broker's ``total_commission_due`` by the same amount so
that due always equals the sum of that broker's unpaid records. Paid records
are never modified or removed here.
"""
import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.config import settings
from showroom.metrics import COMMISSION_RECONCILIATIONS
from showroom.models.broker import Broker
from showroom.models.car import Car
from showroom.models.commission import BrokerCommission
from showroom.models.enums import ReconcileAction
from showroom.services.commission_calculator import ZERO, compute_commission
from showroom.services.errors import CarNotFound, PersistenceError

logger = structlog.get_logger()

# Scale of the Numeric(15, 2) money columns
MONEY_QUANT = Decimal("0.01")


@dataclass(frozen=True)
class CarSnapshot:
    """Sale-relevant fields of a car, captured before an edit."""

    broker_id: uuid.UUID | None
    broker_commission_type: str | None
    broker_commission_value: Decimal | None
    purchase_price: Decimal
    status: str

    @classmethod
    def of(cls, car: Car) -> "CarSnapshot":
        return cls(
            broker_id=car.broker_id,
            broker_commission_type=car.broker_commission_type,
            broker_commission_value=car.broker_commission_value,
            purchase_price=car.purchase_price,
            status=car.status,
        )


@dataclass(frozen=True)
class ReconcileResult:
    car_id: uuid.UUID
    action: ReconcileAction
    commission_id: uuid.UUID | None = None
    amount: Decimal = ZERO


def to_stored_amount(amount: Decimal) -> Decimal:
    """Bring an amount to the precision of the money columns."""
    return amount.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


async def adjust_broker_due(db: AsyncSession, broker_id: uuid.UUID, delta: Decimal) -> None:
    """Move a broker's due balance by ``delta`` with a single SQL-side increment."""
    if delta == 0:
        return
    await db.execute(
        update(Broker)
        .where(Broker.id == broker_id)
        .values(total_commission_due=Broker.total_commission_due + delta)
    )


async def _reconcile(db: AsyncSession, car_id: uuid.UUID) -> ReconcileResult:
    car_result = await db.execute(select(Car).where(Car.id == car_id).with_for_update())
    car = car_result.scalar_one_or_none()
    if car is None:
        raise CarNotFound(f"Car {car_id} not found")

    commission_result = await db.execute(
        select(BrokerCommission).where(BrokerCommission.car_id == car.id).with_for_update()
    )
    commission = commission_result.scalar_one_or_none()

    amount = to_stored_amount(
        compute_commission(car.purchase_price, car.broker_commission_type, car.broker_commission_value)
    )
    log = logger.bind(car_id=str(car.id), currency=settings.CURRENCY_CODE)

    if car.broker_id is not None and amount > 0:
        if commission is None:
            commission = BrokerCommission(
                broker_id=car.broker_id,
                car_id=car.id,
                commission_amount=amount,
                is_paid=False,
                paid_date=None,
            )
            db.add(commission)
            await db.flush()
            await adjust_broker_due(db, car.broker_id, amount)
            log.info("commission_created", commission_id=str(commission.id), amount=str(amount))
            return ReconcileResult(car.id, ReconcileAction.CREATED, commission.id, amount)

        if commission.is_paid:
            log.info("commission_paid_locked", commission_id=str(commission.id))
            return ReconcileResult(
                car.id, ReconcileAction.PAID_LOCKED, commission.id, commission.commission_amount
            )

        if commission.broker_id == car.broker_id and commission.commission_amount == amount:
            return ReconcileResult(car.id, ReconcileAction.UNCHANGED, commission.id, amount)

        old_broker_id = commission.broker_id
        old_amount = commission.commission_amount
        commission.broker_id = car.broker_id
        commission.commission_amount = amount
        commission.is_paid = False
        commission.paid_date = None
        await db.flush()

        if old_broker_id == car.broker_id:
            await adjust_broker_due(db, car.broker_id, amount - old_amount)
        else:
            await adjust_broker_due(db, old_broker_id, -old_amount)
            await adjust_broker_due(db, car.broker_id, amount)
        log.info(
            "commission_recalculated",
            commission_id=str(commission.id),
            old_amount=str(old_amount),
            amount=str(amount),
            broker_changed=old_broker_id != car.broker_id,
        )
        return ReconcileResult(car.id, ReconcileAction.UPDATED, commission.id, amount)

    if commission is None:
        return ReconcileResult(car.id, ReconcileAction.UNCHANGED)

    if commission.is_paid:
        # Paid history survives broker removal
        log.info("commission_paid_locked", commission_id=str(commission.id))
        return ReconcileResult(
            car.id, ReconcileAction.PAID_LOCKED, commission.id, commission.commission_amount
        )

    removed_id = commission.id
    removed_broker_id = commission.broker_id
    removed_amount = commission.commission_amount
    await db.delete(commission)
    await db.flush()
    await adjust_broker_due(db, removed_broker_id, -removed_amount)
    log.info("commission_removed", commission_id=str(removed_id), amount=str(removed_amount))
    return ReconcileResult(car.id, ReconcileAction.REMOVED, removed_id, removed_amount)


async def reconcile_car_commission(db: AsyncSession, car_id: uuid.UUID) -> ReconcileResult:
    """Bring the car's commission record and its broker's due balance in line with the car.

    Runs in a savepoint: either every write of the reconciliation lands or
    none does. Safe to retry; a second run with unchanged car fields writes
    nothing and reports ``unchanged``.
    """
    try:
        async with db.begin_nested():
            result = await _reconcile(db, car_id)
    except SQLAlchemyError as exc:
        logger.exception("commission_reconcile_failed", car_id=str(car_id))
        raise PersistenceError(f"Could not reconcile commission for car {car_id}") from exc

    COMMISSION_RECONCILIATIONS.labels(action=result.action.value).inc()
    return result


async def on_car_created(db: AsyncSession, car: Car) -> ReconcileResult:
    return await reconcile_car_commission(db, car.id)


async def on_car_updated(db: AsyncSession, before: CarSnapshot, car: Car) -> ReconcileResult | None:
    """Reconcile only when a sale-relevant field changed. Returns None otherwise."""
    if CarSnapshot.of(car) == before:
        return None
    return await reconcile_car_commission(db, car.id)
