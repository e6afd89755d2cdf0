from fastapi import HTTPException, status

from showroom.models.enums import CarStatus

# Valid sale status transitions for a car
ALLOWED_TRANSITIONS: dict[CarStatus, set[CarStatus]] = {
    CarStatus.AVAILABLE: {
        CarStatus.SOLD,
    },
    CarStatus.SOLD: set(),  # Terminal state, no un-selling
}


def validate_transition(current: CarStatus, new: CarStatus) -> None:
    """Validate a car status transition. Raises HTTP 409 if invalid."""
    current, new = CarStatus(current), CarStatus(new)
    if current == new:
        return
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if new not in allowed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot transition from '{current.value}' to '{new.value}'",
        )
