import enum

# These enums are stored as VARCHAR columns. Native PG ENUM types would add
# DB-level validation, but VARCHAR avoids ALTER TYPE migrations when a value
# is added.


class StaffRole(str, enum.Enum):
    OWNER = "owner"
    MANAGER = "manager"
    SALES = "sales"


class CarStatus(str, enum.Enum):
    AVAILABLE = "available"
    SOLD = "sold"


class CommissionType(str, enum.Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class PaymentType(str, enum.Enum):
    FULL_PURCHASE = "full_purchase"
    HIRE_PURCHASE_DEPOSIT = "hire_purchase_deposit"
    HIRE_PURCHASE_INSTALLMENT = "hire_purchase_installment"


class ReconcileAction(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    REMOVED = "removed"
    UNCHANGED = "unchanged"
    PAID_LOCKED = "paid_locked"  # Paid record left untouched
