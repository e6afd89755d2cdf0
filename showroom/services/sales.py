import uuid
from datetime import date
from decimal import Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.metrics import PAYMENTS_RECORDED
from showroom.models.car import Car
from showroom.models.enums import CarStatus, PaymentType
from showroom.models.payment import Payment
from showroom.models.staff import StaffProfile
from showroom.services.commission_recorder import CarSnapshot, on_car_updated
from showroom.services.errors import CarAlreadySold, CarNotFound
from showroom.utils.car_state import validate_transition

logger = structlog.get_logger()


async def record_payment(
    db: AsyncSession,
    car_id: uuid.UUID,
    payment_type: PaymentType,
    amount: Decimal,
    received_by: StaffProfile,
    payment_date: date | None = None,
    notes: str | None = None,
) -> Payment:
    """Record a customer payment against a car.

    A full purchase marks the car sold, which reconciles its broker
    commission in the same transaction. Hire-purchase payments leave the car
    status alone.
    """
    result = await db.execute(select(Car).where(Car.id == car_id).with_for_update())
    car = result.scalar_one_or_none()
    if car is None:
        raise CarNotFound(f"Car {car_id} not found")

    payment_type = PaymentType(payment_type)
    if car.status == CarStatus.SOLD and payment_type != PaymentType.HIRE_PURCHASE_INSTALLMENT:
        raise CarAlreadySold(f"Car {car_id} is already sold")

    payment = Payment(
        car_id=car.id,
        payment_type=payment_type,
        amount=amount,
        payment_date=payment_date or date.today(),
        received_by=received_by.id,
        notes=notes,
    )
    db.add(payment)

    if payment_type == PaymentType.FULL_PURCHASE:
        before = CarSnapshot.of(car)
        validate_transition(car.status, CarStatus.SOLD)
        car.status = CarStatus.SOLD
        await db.flush()
        await on_car_updated(db, before, car)
        logger.info("car_sold", car_id=str(car.id), payment_id=str(payment.id))
    else:
        await db.flush()

    PAYMENTS_RECORDED.labels(payment_type=payment_type.value).inc()
    logger.info(
        "payment_recorded",
        payment_id=str(payment.id),
        car_id=str(car.id),
        payment_type=payment_type.value,
        received_by=str(received_by.id),
    )
    return payment
