import uuid

import structlog
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.config import settings
from showroom.database import get_db
from showroom.dependencies import get_current_owner
from showroom.models.broker import Broker
from showroom.models.staff import StaffProfile
from showroom.schemas.broker import BrokerCreateRequest, BrokerResponse, BrokerTotalsRepairResponse
from showroom.schemas.commission import CommissionListResponse, CommissionResponse
from showroom.services.broker_ledger import (
    get_broker,
    list_brokers,
    list_commissions,
    repair_broker_totals,
)
from showroom.services.errors import CommissionLedgerError
from showroom.utils.ledger_errors import to_http_exception
from showroom.utils.rate_limit import LIST_RATE_LIMIT, limiter

logger = structlog.get_logger()
router = APIRouter()


@router.post("", response_model=BrokerResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_broker(
    request: Request,
    body: BrokerCreateRequest,
    owner: StaffProfile = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
):
    broker = Broker(name=body.name, phone_number=body.phone_number)
    db.add(broker)
    await db.flush()
    await db.refresh(broker)
    logger.info("broker_created", broker_id=str(broker.id), created_by=str(owner.id))
    return BrokerResponse.model_validate(broker)


@router.get("", response_model=list[BrokerResponse])
@limiter.limit(LIST_RATE_LIMIT)
async def get_brokers(
    request: Request,
    owner: StaffProfile = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
):
    """List brokers with their due and paid commission totals."""
    brokers = await list_brokers(db)
    return [BrokerResponse.model_validate(b) for b in brokers]


# --- Static routes first (before /{broker_id}) ---


@router.post("/reconcile", response_model=list[BrokerTotalsRepairResponse])
@limiter.limit("5/minute")
async def reconcile_all_brokers(
    request: Request,
    owner: StaffProfile = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
):
    """Recompute every broker's totals from its commission records."""
    try:
        repairs = await repair_broker_totals(db, owner)
    except CommissionLedgerError as exc:
        raise to_http_exception(exc)
    return [BrokerTotalsRepairResponse.model_validate(r) for r in repairs]


@router.get("/{broker_id}", response_model=BrokerResponse)
async def get_broker_totals(
    broker_id: uuid.UUID,
    owner: StaffProfile = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
):
    try:
        broker = await get_broker(db, broker_id)
    except CommissionLedgerError as exc:
        raise to_http_exception(exc)
    return BrokerResponse.model_validate(broker)


@router.get("/{broker_id}/commissions", response_model=CommissionListResponse)
@limiter.limit(LIST_RATE_LIMIT)
async def get_broker_commissions(
    request: Request,
    broker_id: uuid.UUID,
    is_paid: bool | None = None,
    limit: int = Query(50, ge=1, le=settings.COMMISSION_LIST_MAX_LIMIT),
    offset: int = Query(0, ge=0, le=10000),
    owner: StaffProfile = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
):
    try:
        await get_broker(db, broker_id)
    except CommissionLedgerError as exc:
        raise to_http_exception(exc)
    total, commissions = await list_commissions(
        db, broker_id=broker_id, is_paid=is_paid, limit=limit, offset=offset
    )
    return CommissionListResponse(
        total=total,
        commissions=[CommissionResponse.model_validate(c) for c in commissions],
    )


@router.post("/{broker_id}/reconcile", response_model=BrokerTotalsRepairResponse)
@limiter.limit("10/minute")
async def reconcile_broker(
    request: Request,
    broker_id: uuid.UUID,
    owner: StaffProfile = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
):
    """Recompute one broker's totals from its commission records."""
    try:
        repairs = await repair_broker_totals(db, owner, broker_id=broker_id)
    except CommissionLedgerError as exc:
        raise to_http_exception(exc)
    return BrokerTotalsRepairResponse.model_validate(repairs[0])
