import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from showroom.models.enums import CarStatus, CommissionType


class CarCreateRequest(BaseModel):
    car_type: str = Field(min_length=1, max_length=100)
    model_number: str = Field(min_length=1, max_length=100)
    registration_number: str = Field(min_length=1, max_length=20)
    purchase_price: Decimal = Field(gt=0, max_digits=15, decimal_places=2)
    hire_purchase_deposit: Decimal | None = Field(None, ge=0, max_digits=15, decimal_places=2)
    payment_period_months: int | None = Field(None, ge=1, le=120)
    broker_id: uuid.UUID | None = None
    broker_commission_type: CommissionType | None = None
    broker_commission_value: Decimal | None = Field(None, ge=0, max_digits=15, decimal_places=2)

    @model_validator(mode="after")
    def validate_percentage_range(self) -> "CarCreateRequest":
        if (
            self.broker_commission_type == CommissionType.PERCENTAGE
            and self.broker_commission_value is not None
            and self.broker_commission_value > 100
        ):
            raise ValueError("A percentage commission must be between 0 and 100")
        return self


class CarUpdateRequest(BaseModel):
    """Partial update. Fields sent as null are cleared; omitted fields are kept."""
    car_type: str | None = Field(None, min_length=1, max_length=100)
    model_number: str | None = Field(None, min_length=1, max_length=100)
    purchase_price: Decimal | None = Field(None, gt=0, max_digits=15, decimal_places=2)
    hire_purchase_deposit: Decimal | None = Field(None, ge=0, max_digits=15, decimal_places=2)
    payment_period_months: int | None = Field(None, ge=1, le=120)
    broker_id: uuid.UUID | None = None
    broker_commission_type: CommissionType | None = None
    broker_commission_value: Decimal | None = Field(None, ge=0, max_digits=15, decimal_places=2)
    status: CarStatus | None = None

    @model_validator(mode="after")
    def validate_percentage_range(self) -> "CarUpdateRequest":
        if (
            self.broker_commission_type == CommissionType.PERCENTAGE
            and self.broker_commission_value is not None
            and self.broker_commission_value > 100
        ):
            raise ValueError("A percentage commission must be between 0 and 100")
        return self


class CarResponse(BaseModel):
    id: uuid.UUID
    car_type: str
    model_number: str
    registration_number: str
    purchase_price: Decimal
    hire_purchase_deposit: Decimal | None
    payment_period_months: int | None
    broker_id: uuid.UUID | None
    broker_commission_type: CommissionType | None
    broker_commission_value: Decimal | None
    status: CarStatus
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class CarWriteResponse(BaseModel):
    car: CarResponse
    commission_action: str | None = None
    commission_id: uuid.UUID | None = None
