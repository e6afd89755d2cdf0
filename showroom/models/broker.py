import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Numeric, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from showroom.database import Base


class Broker(Base):
    """External sales intermediary.

    ``total_commission_due`` and ``total_commission_paid`` are materialized
    aggregates over ``broker_commissions``. They are only ever moved by the
    commission recorder and the broker ledger, through SQL-side increments.
    """

    __tablename__ = "brokers"
    __table_args__ = (
        CheckConstraint("total_commission_paid >= 0", name="ck_broker_commission_paid_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)
    total_commission_due: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00"), server_default="0"
    )
    total_commission_paid: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00"), server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    commissions: Mapped[list["BrokerCommission"]] = relationship(
        "BrokerCommission", back_populates="broker", lazy="raise"
    )
