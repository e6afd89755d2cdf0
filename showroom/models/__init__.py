from showroom.models.audit_log import AuditLog
from showroom.models.broker import Broker
from showroom.models.car import Car
from showroom.models.commission import BrokerCommission
from showroom.models.payment import Payment
from showroom.models.staff import StaffProfile

__all__ = [
    "AuditLog",
    "Broker",
    "BrokerCommission",
    "Car",
    "Payment",
    "StaffProfile",
]
