import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.models.broker import Broker
from showroom.models.car import Car
from showroom.models.enums import CarStatus, CommissionType, PaymentType
from showroom.models.staff import StaffProfile
from showroom.services.sales import record_payment
from showroom.services.errors import CarAlreadySold, CarNotFound
from tests.conftest import auth_header, commission_for, make_car, reload, staff_token


@pytest.mark.asyncio
async def test_full_purchase_marks_car_sold_and_records_commission(
    client: AsyncClient, db: AsyncSession, sales: StaffProfile, broker: Broker
):
    car = await make_car(db, broker=broker, commission_type=CommissionType.PERCENTAGE, commission_value="5")

    response = await client.post(
        "/payments",
        json={"car_id": str(car.id), "payment_type": "full_purchase", "amount": "1000000"},
        headers=auth_header(staff_token(sales)),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["payment_type"] == "full_purchase"
    assert data["received_by"] == str(sales.id)
    assert Decimal(data["amount"]) == Decimal("1000000")

    await reload(db, car)
    assert car.status == CarStatus.SOLD
    commission = await commission_for(db, car)
    assert commission.commission_amount == Decimal("50000")
    await reload(db, broker)
    assert broker.total_commission_due == Decimal("50000")


@pytest.mark.asyncio
async def test_hire_purchase_deposit_keeps_car_available(
    client: AsyncClient, db: AsyncSession, sales: StaffProfile
):
    car = await make_car(db)

    response = await client.post(
        "/payments",
        json={"car_id": str(car.id), "payment_type": "hire_purchase_deposit", "amount": "300000"},
        headers=auth_header(staff_token(sales)),
    )

    assert response.status_code == 201
    await reload(db, car)
    assert car.status == CarStatus.AVAILABLE


@pytest.mark.asyncio
async def test_second_full_purchase_rejected(
    client: AsyncClient, db: AsyncSession, owner: StaffProfile
):
    car = await make_car(db)
    token = staff_token(owner)
    payload = {"car_id": str(car.id), "payment_type": "full_purchase", "amount": "1000000"}
    first = await client.post("/payments", json=payload, headers=auth_header(token))
    assert first.status_code == 201

    response = await client.post("/payments", json=payload, headers=auth_header(token))

    assert response.status_code == 409
    assert response.json()["detail"] == "Car is already sold"


@pytest.mark.asyncio
async def test_installment_on_sold_car_accepted(db: AsyncSession, owner: StaffProfile):
    car = await make_car(db)
    await record_payment(db, car.id, PaymentType.FULL_PURCHASE, Decimal("1000000"), owner)

    payment = await record_payment(
        db, car.id, PaymentType.HIRE_PURCHASE_INSTALLMENT, Decimal("25000"), owner, notes="March"
    )

    assert payment.notes == "March"
    result = await db.execute(select(Car.status).where(Car.id == car.id))
    assert result.scalar_one() == CarStatus.SOLD


@pytest.mark.asyncio
async def test_payment_for_unknown_car(db: AsyncSession, owner: StaffProfile):
    with pytest.raises(CarNotFound):
        await record_payment(db, uuid.uuid4(), PaymentType.FULL_PURCHASE, Decimal("1"), owner)


@pytest.mark.asyncio
async def test_payment_for_unknown_car_route(client: AsyncClient, db: AsyncSession, owner: StaffProfile):
    response = await client.post(
        "/payments",
        json={"car_id": str(uuid.uuid4()), "payment_type": "full_purchase", "amount": "1000"},
        headers=auth_header(staff_token(owner)),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_payment_amount_must_be_positive(client: AsyncClient, db: AsyncSession, owner: StaffProfile):
    car = await make_car(db)
    response = await client.post(
        "/payments",
        json={"car_id": str(car.id), "payment_type": "full_purchase", "amount": "0"},
        headers=auth_header(staff_token(owner)),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_deposit_on_sold_car_rejected(db: AsyncSession, owner: StaffProfile):
    car = await make_car(db)
    await record_payment(db, car.id, PaymentType.FULL_PURCHASE, Decimal("1000000"), owner)

    with pytest.raises(CarAlreadySold):
        await record_payment(db, car.id, PaymentType.HIRE_PURCHASE_DEPOSIT, Decimal("100000"), owner)
