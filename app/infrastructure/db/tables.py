from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

listings = Table(
    "listings",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("host_id", String(36), nullable=False),
    Column("title", String(255), nullable=False),
    Column("description", Text),
    Column("price", Numeric(12, 2), nullable=False),
    Column("created_at", DateTime),
)

bookings = Table(
    "bookings",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("listing_id", String(36), ForeignKey("listings.id"), nullable=False, index=True),
    Column("user_id", String(36), nullable=False, index=True),
    Column("check_in", Date, nullable=False),
    Column("check_out", Date, nullable=False),
    Column("status", String(16), nullable=False),
    Column("total_price", Numeric(12, 2), nullable=False),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

payments = Table(
    "payments",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("booking_id", String(36), ForeignKey("bookings.id"), nullable=False, unique=True),
    Column("method", String(16), nullable=False),
    Column("external_transaction_id", String(255), nullable=False),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("currency", String(3), nullable=False),
    Column("status", String(16), nullable=False),
    Column("review_reason", String(64)),
    Column("metadata", JSON),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
    UniqueConstraint("method", "external_transaction_id", name="uq_payments_method_external_id"),
)

calendar_items = Table(
    "calendar_items",
    metadata,
    Column("listing_id", String(36), ForeignKey("listings.id"), primary_key=True),
    Column("date", Date, primary_key=True),
    Column("is_booked", Boolean, nullable=False, default=False),
)
