"""Create the first owner of a showroom and print an access token.

Usage:
    python scripts/create_owner.py "Jane Wanjiru" +254700000000

Refuses to run once any staff member exists; further staff are created by
an owner.
"""

import asyncio
import sys

from sqlalchemy import func, select

from showroom.auth.service import create_access_token
from showroom.database import async_session
from showroom.models.enums import StaffRole
from showroom.models.staff import StaffProfile


async def create_owner(full_name: str, phone_number: str) -> None:
    """Create the owner profile and print a token for it."""
    async with async_session() as db:
        existing = await db.execute(select(func.count(StaffProfile.id)))
        if existing.scalar():
            print("Error: staff already exist. Ask an owner to add new staff.")
            sys.exit(1)

        owner = StaffProfile(
            full_name=full_name,
            phone_number=phone_number,
            role=StaffRole.OWNER,
            is_active=True,
        )
        db.add(owner)
        await db.commit()

        print(f"Owner created successfully: {full_name} (id={owner.id})")
        print(f"Access token: {create_access_token(str(owner.id))}")


def main() -> None:
    if len(sys.argv) != 3:
        print("Usage: python scripts/create_owner.py <full_name> <phone_number>")
        sys.exit(1)

    asyncio.run(create_owner(sys.argv[1], sys.argv[2]))


if __name__ == "__main__":
    main()
