import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class BrokerCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    phone_number: str = Field(min_length=1, max_length=20)


class BrokerResponse(BaseModel):
    id: uuid.UUID
    name: str
    phone_number: str
    total_commission_due: Decimal
    total_commission_paid: Decimal
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class BrokerTotalsRepairResponse(BaseModel):
    broker_id: uuid.UUID
    stored_due: Decimal
    stored_paid: Decimal
    due: Decimal
    paid: Decimal
    corrected: bool

    model_config = {"from_attributes": True}
