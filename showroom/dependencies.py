import uuid

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.auth.service import decode_access_token
from showroom.database import get_db
from showroom.models.enums import StaffRole
from showroom.models.staff import StaffProfile

logger = structlog.get_logger()
security = HTTPBearer()


async def get_current_staff(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> StaffProfile:
    """Validate the bearer token and return the authenticated staff member."""
    staff_id = decode_access_token(credentials.credentials)
    if staff_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        )
    try:
        staff_uuid = uuid.UUID(staff_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        )

    result = await db.execute(select(StaffProfile).where(StaffProfile.id == staff_uuid))
    staff = result.scalar_one_or_none()
    if staff is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Staff member not found",
        )
    if not staff.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account has been deactivated",
        )
    return staff


async def get_inventory_staff(
    staff: StaffProfile = Depends(get_current_staff),
) -> StaffProfile:
    """Owners and managers maintain the car inventory."""
    if staff.role not in (StaffRole.OWNER, StaffRole.MANAGER):
        logger.warning("inventory_access_denied", staff_id=str(staff.id), role=str(staff.role))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Owner or manager access required",
        )
    return staff


async def get_current_owner(
    staff: StaffProfile = Depends(get_current_staff),
) -> StaffProfile:
    """Brokers and their commissions are visible to owners only."""
    if staff.role != StaffRole.OWNER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Owner access required",
        )
    return staff
