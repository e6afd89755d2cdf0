import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Numeric, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from showroom.database import Base


class BrokerCommission(Base):
    __tablename__ = "broker_commissions"
    __table_args__ = (
        CheckConstraint("commission_amount >= 0", name="ck_commission_amount_positive"),
        CheckConstraint(
            "(is_paid AND paid_date IS NOT NULL) OR (NOT is_paid AND paid_date IS NULL)",
            name="ck_commission_paid_date_consistent",
        ),
        Index("ix_commission_broker_paid", "broker_id", "is_paid"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    broker_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(), ForeignKey("brokers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    # One current record per car, paid or not
    car_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(), ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    commission_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    paid_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    broker: Mapped["Broker"] = relationship("Broker", back_populates="commissions", lazy="raise")
    car: Mapped["Car"] = relationship("Car", back_populates="commission", lazy="raise")
