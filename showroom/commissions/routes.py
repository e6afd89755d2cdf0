import uuid

import structlog
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.config import settings
from showroom.database import get_db
from showroom.dependencies import get_current_owner, get_current_staff
from showroom.models.staff import StaffProfile
from showroom.schemas.commission import CommissionListResponse, CommissionResponse
from showroom.services.broker_ledger import list_commissions, mark_commission_paid
from showroom.services.errors import CommissionLedgerError
from showroom.utils.ledger_errors import to_http_exception
from showroom.utils.rate_limit import LIST_RATE_LIMIT, limiter

logger = structlog.get_logger()
router = APIRouter()


@router.get("", response_model=CommissionListResponse)
@limiter.limit(LIST_RATE_LIMIT)
async def get_commissions(
    request: Request,
    broker_id: uuid.UUID | None = None,
    is_paid: bool | None = None,
    limit: int = Query(50, ge=1, le=settings.COMMISSION_LIST_MAX_LIMIT),
    offset: int = Query(0, ge=0, le=10000),
    owner: StaffProfile = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
):
    """List commission records, optionally by broker and paid status."""
    total, commissions = await list_commissions(
        db, broker_id=broker_id, is_paid=is_paid, limit=limit, offset=offset
    )
    return CommissionListResponse(
        total=total,
        commissions=[CommissionResponse.model_validate(c) for c in commissions],
    )


@router.post("/{commission_id}/pay", response_model=CommissionResponse)
@limiter.limit("20/minute")
async def pay_commission(
    request: Request,
    commission_id: uuid.UUID,
    staff: StaffProfile = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    """Mark a commission paid. Owner only; a second call returns 409."""
    try:
        commission = await mark_commission_paid(db, commission_id, staff)
    except CommissionLedgerError as exc:
        raise to_http_exception(exc)
    return CommissionResponse.model_validate(commission)
