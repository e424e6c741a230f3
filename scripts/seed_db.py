import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to sys.path
project_root = Path(__file__).resolve().parent.parent
sys.path.append(str(project_root))

from sqlalchemy import insert, select  # noqa: E402

from app.api.dependencies import DEMO_LISTINGS  # noqa: E402
from app.api.deps import engine  # noqa: E402
from app.infrastructure.db.tables import listings, metadata  # noqa: E402


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        print("Created missing tables.")

        existing = set((await conn.execute(select(listings.c.id))).scalars())
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        for listing in DEMO_LISTINGS:
            if listing.id in existing:
                continue
            await conn.execute(
                insert(listings).values(
                    id=listing.id,
                    host_id=listing.host_id,
                    title=listing.title,
                    description=listing.description,
                    price=listing.price,
                    created_at=now,
                )
            )
            print(f"Seeded listing {listing.id}")

if __name__ == "__main__":
    asyncio.run(seed())
