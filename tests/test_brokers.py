import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.models.broker import Broker
from showroom.models.enums import CommissionType
from showroom.models.staff import StaffProfile
from showroom.services.commission_recorder import on_car_created
from tests.conftest import auth_header, make_car, reload, staff_token


@pytest.mark.asyncio
async def test_create_broker(client: AsyncClient, db: AsyncSession, owner: StaffProfile):
    response = await client.post(
        "/brokers",
        json={"name": "Wanjiru Auto Agents", "phone_number": "+254733333333"},
        headers=auth_header(staff_token(owner)),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Wanjiru Auto Agents"
    assert Decimal(data["total_commission_due"]) == Decimal("0")
    assert Decimal(data["total_commission_paid"]) == Decimal("0")


@pytest.mark.asyncio
async def test_create_broker_owner_only(client: AsyncClient, db: AsyncSession, manager: StaffProfile):
    response = await client.post(
        "/brokers",
        json={"name": "Wanjiru Auto Agents", "phone_number": "+254733333333"},
        headers=auth_header(staff_token(manager)),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_brokers_with_totals(
    client: AsyncClient, db: AsyncSession, owner: StaffProfile, broker: Broker, second_broker: Broker
):
    car = await make_car(db, broker=broker, commission_type=CommissionType.FIXED, commission_value="75000")
    await on_car_created(db, car)

    response = await client.get("/brokers", headers=auth_header(staff_token(owner)))

    assert response.status_code == 200
    by_name = {b["name"]: b for b in response.json()}
    assert Decimal(by_name["Kamau Brokers"]["total_commission_due"]) == Decimal("75000")
    assert Decimal(by_name["Otieno Motors"]["total_commission_due"]) == Decimal("0")


@pytest.mark.asyncio
async def test_get_broker(client: AsyncClient, db: AsyncSession, owner: StaffProfile, broker: Broker):
    response = await client.get(f"/brokers/{broker.id}", headers=auth_header(staff_token(owner)))
    assert response.status_code == 200
    assert response.json()["id"] == str(broker.id)


@pytest.mark.asyncio
async def test_get_unknown_broker(client: AsyncClient, db: AsyncSession, owner: StaffProfile):
    response = await client.get(f"/brokers/{uuid.uuid4()}", headers=auth_header(staff_token(owner)))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_broker_commissions(
    client: AsyncClient, db: AsyncSession, owner: StaffProfile, broker: Broker, second_broker: Broker
):
    mine = await make_car(
        db, registration="KDA 001A", broker=broker, commission_type=CommissionType.FIXED, commission_value="1000"
    )
    theirs = await make_car(
        db, registration="KDA 002A", broker=second_broker, commission_type=CommissionType.FIXED, commission_value="2000"
    )
    await on_car_created(db, mine)
    await on_car_created(db, theirs)

    response = await client.get(
        f"/brokers/{broker.id}/commissions", headers=auth_header(staff_token(owner))
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["commissions"][0]["car_id"] == str(mine.id)


@pytest.mark.asyncio
async def test_reconcile_broker_repairs_drift(
    client: AsyncClient, db: AsyncSession, owner: StaffProfile, broker: Broker
):
    car = await make_car(db, broker=broker, commission_type=CommissionType.FIXED, commission_value="12000")
    await on_car_created(db, car)
    await db.execute(
        update(Broker).where(Broker.id == broker.id).values(total_commission_due=Decimal("999"))
    )

    response = await client.post(
        f"/brokers/{broker.id}/reconcile", headers=auth_header(staff_token(owner))
    )

    assert response.status_code == 200
    data = response.json()
    assert data["corrected"] is True
    assert Decimal(data["stored_due"]) == Decimal("999")
    assert Decimal(data["due"]) == Decimal("12000")
    await reload(db, broker)
    assert broker.total_commission_due == Decimal("12000")


@pytest.mark.asyncio
async def test_reconcile_all_brokers(
    client: AsyncClient, db: AsyncSession, owner: StaffProfile, broker: Broker, second_broker: Broker
):
    response = await client.post("/brokers/reconcile", headers=auth_header(staff_token(owner)))

    assert response.status_code == 200
    assert len(response.json()) == 2
    assert all(not r["corrected"] for r in response.json())


@pytest.mark.asyncio
async def test_reconcile_unknown_broker(client: AsyncClient, db: AsyncSession, owner: StaffProfile):
    response = await client.post(
        f"/brokers/{uuid.uuid4()}/reconcile", headers=auth_header(staff_token(owner))
    )
    assert response.status_code == 404
