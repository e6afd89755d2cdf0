import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from showroom.database import Base
from showroom.models.enums import CarStatus, CommissionType


class Car(Base):
    __tablename__ = "cars"
    __table_args__ = (
        CheckConstraint("purchase_price > 0", name="ck_car_purchase_price_positive"),
        CheckConstraint(
            "broker_commission_value IS NULL OR broker_commission_value >= 0",
            name="ck_car_commission_value_positive",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    car_type: Mapped[str] = mapped_column(String(100), nullable=False)
    model_number: Mapped[str] = mapped_column(String(100), nullable=False)
    registration_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    hire_purchase_deposit: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    payment_period_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    broker_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(), ForeignKey("brokers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    broker_commission_type: Mapped[CommissionType | None] = mapped_column(String(20), nullable=True)
    broker_commission_value: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    status: Mapped[CarStatus] = mapped_column(
        String(20), nullable=False, default=CarStatus.AVAILABLE, index=True
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(), ForeignKey("staff_profiles.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    broker: Mapped["Broker | None"] = relationship("Broker", lazy="raise")
    commission: Mapped["BrokerCommission | None"] = relationship(
        "BrokerCommission", back_populates="car", uselist=False, lazy="raise"
    )
