from decimal import Decimal, InvalidOperation

import structlog

from showroom.models.enums import CommissionType
from showroom.services.errors import InvalidCommissionPolicy

logger = structlog.get_logger()

ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def _to_decimal(value) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        # str() first so floats do not carry binary artefacts into the amount
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def check_commission_policy(purchase_price, commission_type, commission_value) -> tuple[Decimal, CommissionType, Decimal]:
    """Validate a car's commission policy and return it normalized.

    Raises InvalidCommissionPolicy when no commission can be derived from it.
    """
    if commission_type is None:
        raise InvalidCommissionPolicy("commission type is not set")
    try:
        policy_type = CommissionType(commission_type)
    except ValueError:
        raise InvalidCommissionPolicy(f"unknown commission type '{commission_type}'")

    value = _to_decimal(commission_value)
    if value is None:
        raise InvalidCommissionPolicy("commission value is not set")
    if not value.is_finite() or value <= 0:
        raise InvalidCommissionPolicy("commission value must be positive")

    price = _to_decimal(purchase_price)
    if policy_type == CommissionType.PERCENTAGE:
        if value > _HUNDRED:
            raise InvalidCommissionPolicy("percentage must be between 0 and 100")
        if price is None or not price.is_finite() or price < 0:
            raise InvalidCommissionPolicy("purchase price must be a non-negative amount")

    return price if price is not None else ZERO, policy_type, value


def compute_commission(purchase_price, commission_type, commission_value) -> Decimal:
    """Commission owed for a car, in currency units.

    ``fixed`` returns the value as-is, ``percentage`` returns
    ``purchase_price * value / 100``. Any policy that cannot produce a
    commission yields 0; this function never raises. No rounding is applied.
    """
    try:
        price, policy_type, value = check_commission_policy(
            purchase_price, commission_type, commission_value
        )
    except InvalidCommissionPolicy as exc:
        logger.debug("invalid_commission_policy", reason=str(exc))
        return ZERO

    if policy_type == CommissionType.FIXED:
        return value
    return price * value / _HUNDRED
