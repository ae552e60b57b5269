"""SQLAlchemy database models."""

import datetime as dt
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class PriceObservation(Base):
    """One scraped price row for a (date, city, vegetable).

    There is no uniqueness constraint: duplicates are prevented only by
    replacing all rows of a (date, city) on every scrape.
    """

    __tablename__ = "prices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    city: Mapped[str] = mapped_column(String(64), nullable=False)
    vegetable: Mapped[str] = mapped_column(String(128), nullable=False)
    wholesale_price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    retail_min_price: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    retail_max_price: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    shopmall_min_price: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    shopmall_max_price: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime, default=dt.datetime.utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_prices_date_city", "date", "city"),
        Index("ix_prices_vegetable_date", "vegetable", "date"),
    )

    def to_dict(self) -> dict:
        """Convert observation to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "city": self.city,
            "vegetable": self.vegetable,
            "wholesale_price": self.wholesale_price,
            "retail_min_price": self.retail_min_price,
            "retail_max_price": self.retail_max_price,
            "shopmall_min_price": self.shopmall_min_price,
            "shopmall_max_price": self.shopmall_max_price,
            "unit": self.unit,
            "image": self.image,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class EmailQueueEntry(Base):
    """Rendered outbound email waiting for an external dispatcher."""

    __tablename__ = "email_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email_to: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    html_body: Mapped[str] = mapped_column(Text, nullable=False)
    email_cc: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    attachment_path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime, default=dt.datetime.utcnow, nullable=False
    )
    sent_on: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)
