"""
Create the ledger tables (if missing) and seed the default billing catalog.

Existing items (matched by code) keep their price; only missing items are inserted.

Usage:
  python -m tuition.db.seed_billing_items
"""
import asyncio
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.models import BillingItem
from tuition.db.session import AsyncSessionLocal, Base, engine


# (code, name, unit_price, display_order)
DEFAULT_BILLING_ITEMS: List[Tuple[str, str, Optional[Decimal], int]] = [
    ("TUITION", "Tuition", Decimal("60000"), 1),
    ("DORMITORY", "Dormitory", Decimal("30000"), 2),
    ("UTILITIES", "Utilities", Decimal("5000"), 3),
    ("WIFI", "Wi-Fi", Decimal("1000"), 4),
    ("TEXTBOOKS", "Textbooks", None, 5),
    ("ENTRANCE", "Entrance fee", None, 6),
]


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_billing_items(db: AsyncSession) -> int:
    """Insert catalog items that do not exist yet. Returns the number inserted."""
    created = 0
    for code, name, unit_price, display_order in DEFAULT_BILLING_ITEMS:
        existing = (
            await db.execute(select(BillingItem).where(BillingItem.code == code))
        ).scalar_one_or_none()
        if existing:
            continue
        db.add(
            BillingItem(
                code=code,
                name=name,
                unit_price=unit_price,
                display_order=display_order,
                is_active=True,
            )
        )
        created += 1
    await db.commit()
    return created


async def main() -> None:
    await create_tables()
    async with AsyncSessionLocal() as session:
        created = await seed_billing_items(session)
    print(f"Billing items created: {created} (catalog size {len(DEFAULT_BILLING_ITEMS)})")


if __name__ == "__main__":
    asyncio.run(main())
