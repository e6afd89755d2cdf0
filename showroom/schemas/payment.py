import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from showroom.models.enums import PaymentType


class PaymentCreateRequest(BaseModel):
    car_id: uuid.UUID
    payment_type: PaymentType
    amount: Decimal = Field(gt=0, max_digits=15, decimal_places=2)
    payment_date: date | None = None
    notes: str | None = Field(None, max_length=2000)


class PaymentResponse(BaseModel):
    id: uuid.UUID
    car_id: uuid.UUID
    payment_type: PaymentType
    amount: Decimal
    payment_date: date
    received_by: uuid.UUID | None
    notes: str | None

    model_config = {"from_attributes": True}
