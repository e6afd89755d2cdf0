import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.database import get_db
from showroom.dependencies import get_current_staff, get_inventory_staff
from showroom.models.broker import Broker
from showroom.models.car import Car
from showroom.models.enums import CarStatus, CommissionType
from showroom.models.staff import StaffProfile
from showroom.schemas.car import CarCreateRequest, CarResponse, CarUpdateRequest, CarWriteResponse
from showroom.services.commission_recorder import CarSnapshot, on_car_created, on_car_updated
from showroom.services.errors import CommissionLedgerError
from showroom.utils.car_state import validate_transition
from showroom.utils.ledger_errors import to_http_exception
from showroom.utils.rate_limit import limiter

logger = structlog.get_logger()
router = APIRouter()


async def _ensure_broker_exists(db: AsyncSession, broker_id: uuid.UUID | None) -> None:
    if broker_id is None:
        return
    result = await db.execute(select(Broker.id).where(Broker.id == broker_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unknown broker",
        )


@router.post("", response_model=CarWriteResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_car(
    request: Request,
    body: CarCreateRequest,
    staff: StaffProfile = Depends(get_inventory_staff),
    db: AsyncSession = Depends(get_db),
):
    """Add a car to the inventory and derive its broker commission."""
    await _ensure_broker_exists(db, body.broker_id)

    try:
        async with db.begin_nested():
            car = Car(**body.model_dump(), status=CarStatus.AVAILABLE, created_by=staff.id)
            db.add(car)
            await db.flush()
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A car with this registration number already exists",
        )

    try:
        reconciled = await on_car_created(db, car)
    except CommissionLedgerError as exc:
        raise to_http_exception(exc)

    await db.refresh(car)
    logger.info("car_created", car_id=str(car.id), created_by=str(staff.id))
    return CarWriteResponse(
        car=CarResponse.model_validate(car),
        commission_action=reconciled.action.value,
        commission_id=reconciled.commission_id,
    )


@router.get("/{car_id}", response_model=CarResponse)
async def get_car(
    car_id: uuid.UUID,
    staff: StaffProfile = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Car).where(Car.id == car_id).execution_options(populate_existing=True)
    )
    car = result.scalar_one_or_none()
    if car is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Car not found")
    return CarResponse.model_validate(car)


@router.patch("/{car_id}", response_model=CarWriteResponse)
@limiter.limit("60/minute")
async def update_car(
    request: Request,
    car_id: uuid.UUID,
    body: CarUpdateRequest,
    staff: StaffProfile = Depends(get_inventory_staff),
    db: AsyncSession = Depends(get_db),
):
    """Edit a car. Broker, commission, price and status edits reconcile its commission."""
    result = await db.execute(select(Car).where(Car.id == car_id).with_for_update())
    car = result.scalar_one_or_none()
    if car is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Car not found")

    changes = body.model_dump(exclude_unset=True)
    if changes.get("purchase_price", car.purchase_price) is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="purchase_price cannot be cleared",
        )
    if "status" in changes:
        if changes["status"] is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="status cannot be cleared",
            )
        validate_transition(car.status, changes["status"])
    if "broker_id" in changes:
        await _ensure_broker_exists(db, changes["broker_id"])

    # Check the policy the car ends up with, not only the fields sent
    commission_type = changes.get("broker_commission_type", car.broker_commission_type)
    commission_value = changes.get("broker_commission_value", car.broker_commission_value)
    if (
        commission_type == CommissionType.PERCENTAGE
        and commission_value is not None
        and commission_value > 100
    ):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="A percentage commission must be between 0 and 100",
        )

    before = CarSnapshot.of(car)
    for field, value in changes.items():
        setattr(car, field, value)
    await db.flush()

    try:
        reconciled = await on_car_updated(db, before, car)
    except CommissionLedgerError as exc:
        raise to_http_exception(exc)

    await db.refresh(car)
    logger.info(
        "car_updated",
        car_id=str(car.id),
        fields=sorted(changes),
        updated_by=str(staff.id),
    )
    return CarWriteResponse(
        car=CarResponse.model_validate(car),
        commission_action=reconciled.action.value if reconciled else None,
        commission_id=reconciled.commission_id if reconciled else None,
    )
