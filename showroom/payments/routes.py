import structlog
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.database import get_db
from showroom.dependencies import get_current_staff
from showroom.models.staff import StaffProfile
from showroom.schemas.payment import PaymentCreateRequest, PaymentResponse
from showroom.services.errors import CommissionLedgerError
from showroom.services.sales import record_payment
from showroom.utils.ledger_errors import to_http_exception
from showroom.utils.rate_limit import limiter

logger = structlog.get_logger()
router = APIRouter()


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_payment(
    request: Request,
    body: PaymentCreateRequest,
    staff: StaffProfile = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
):
    """Record a customer payment. A full purchase marks the car sold."""
    try:
        payment = await record_payment(
            db,
            car_id=body.car_id,
            payment_type=body.payment_type,
            amount=body.amount,
            received_by=staff,
            payment_date=body.payment_date,
            notes=body.notes,
        )
    except CommissionLedgerError as exc:
        raise to_http_exception(exc)
    return PaymentResponse.model_validate(payment)
