import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.models.broker import Broker
from showroom.models.enums import CommissionType
from showroom.models.staff import StaffProfile
from showroom.services.commission_recorder import on_car_created
from tests.conftest import auth_header, commission_for, make_car, reload, staff_token


async def _commission(db: AsyncSession, broker: Broker, registration: str = "KDA 123A", value: str = "50000"):
    car = await make_car(
        db,
        registration=registration,
        broker=broker,
        commission_type=CommissionType.FIXED,
        commission_value=value,
    )
    result = await on_car_created(db, car)
    return car, result.commission_id


@pytest.mark.asyncio
async def test_owner_pays_commission(
    client: AsyncClient, db: AsyncSession, owner: StaffProfile, broker: Broker
):
    car, commission_id = await _commission(db, broker)

    response = await client.post(
        f"/commissions/{commission_id}/pay",
        headers=auth_header(staff_token(owner)),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["is_paid"] is True
    assert data["paid_date"] is not None
    assert Decimal(data["commission_amount"]) == Decimal("50000")

    await reload(db, broker)
    assert broker.total_commission_due == Decimal("0")
    assert broker.total_commission_paid == Decimal("50000")


@pytest.mark.asyncio
async def test_second_pay_returns_conflict(
    client: AsyncClient, db: AsyncSession, owner: StaffProfile, broker: Broker
):
    car, commission_id = await _commission(db, broker)
    token = staff_token(owner)
    first = await client.post(f"/commissions/{commission_id}/pay", headers=auth_header(token))
    assert first.status_code == 200

    response = await client.post(f"/commissions/{commission_id}/pay", headers=auth_header(token))

    assert response.status_code == 409
    assert "already processed" in response.json()["detail"]
    await reload(db, broker)
    assert broker.total_commission_paid == Decimal("50000")


@pytest.mark.asyncio
async def test_manager_cannot_pay(
    client: AsyncClient, db: AsyncSession, manager: StaffProfile, broker: Broker
):
    car, commission_id = await _commission(db, broker)

    response = await client.post(
        f"/commissions/{commission_id}/pay",
        headers=auth_header(staff_token(manager)),
    )

    assert response.status_code == 403
    commission = await commission_for(db, car)
    assert commission.is_paid is False


@pytest.mark.asyncio
async def test_pay_unknown_commission(client: AsyncClient, db: AsyncSession, owner: StaffProfile):
    response = await client.post(
        f"/commissions/{uuid.uuid4()}/pay",
        headers=auth_header(staff_token(owner)),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_pay_store_failure_returns_503(
    client: AsyncClient, db: AsyncSession, owner: StaffProfile, broker: Broker
):
    car, commission_id = await _commission(db, broker)

    with patch(
        "showroom.services.broker_ledger.settle_broker_balance",
        side_effect=SQLAlchemyError("connection reset"),
    ):
        response = await client.post(
            f"/commissions/{commission_id}/pay",
            headers=auth_header(staff_token(owner)),
        )

    assert response.status_code == 503
    commission = await commission_for(db, car)
    assert commission.is_paid is False


@pytest.mark.asyncio
async def test_list_commissions_filtered(
    client: AsyncClient,
    db: AsyncSession,
    owner: StaffProfile,
    broker: Broker,
    second_broker: Broker,
):
    _, paid_id = await _commission(db, broker, "KDA 001A", "10000")
    await _commission(db, broker, "KDA 002A", "20000")
    await _commission(db, second_broker, "KDA 003A", "30000")
    token = staff_token(owner)
    await client.post(f"/commissions/{paid_id}/pay", headers=auth_header(token))

    response = await client.get("/commissions", headers=auth_header(token))
    assert response.status_code == 200
    assert response.json()["total"] == 3

    response = await client.get(
        "/commissions",
        params={"broker_id": str(broker.id), "is_paid": "false"},
        headers=auth_header(token),
    )
    data = response.json()
    assert data["total"] == 1
    assert Decimal(data["commissions"][0]["commission_amount"]) == Decimal("20000")


@pytest.mark.asyncio
async def test_list_commissions_owner_only(
    client: AsyncClient, db: AsyncSession, sales: StaffProfile
):
    response = await client.get("/commissions", headers=auth_header(staff_token(sales)))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_commissions_limit_capped(
    client: AsyncClient, db: AsyncSession, owner: StaffProfile
):
    response = await client.get(
        "/commissions",
        params={"limit": 10000},
        headers=auth_header(staff_token(owner)),
    )
    assert response.status_code == 422
