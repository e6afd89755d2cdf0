import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class CommissionResponse(BaseModel):
    id: uuid.UUID
    broker_id: uuid.UUID
    car_id: uuid.UUID
    commission_amount: Decimal
    is_paid: bool
    paid_date: datetime | None

    model_config = {"from_attributes": True}


class CommissionListResponse(BaseModel):
    total: int
    commissions: list[CommissionResponse]
