from decimal import Decimal

from sqlalchemy import select

from app.application.interfaces.listing_repo import ListingRepo
from app.domain.entities.listing import Listing
from app.infrastructure.db.tables import listings
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager


class ListingRepoSQL(ListingRepo):
    def __init__(self, transaction_manager: SQLAlchemyTransactionManager) -> None:
        self._tx = transaction_manager

    async def get_by_id(self, listing_id: str) -> Listing | None:
        stmt = select(listings).where(listings.c.id == listing_id).limit(1)
        async with self._tx.session() as session:
            result = await session.execute(stmt)
            row = result.mappings().first()
        if not row:
            return None
        return Listing(
            id=row["id"],
            host_id=row["host_id"],
            title=row["title"],
            price=Decimal(row["price"]),
            description=row["description"],
        )
