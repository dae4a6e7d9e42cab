"""SQLAlchemy ORM models for the short-link service.

Data Model Layout
=================
::
    links table
    ├─ id (SERIAL PRIMARY KEY)
    ├─ slug (VARCHAR(30) UNIQUE)
    ├─ target (TEXT NOT NULL)
    ├─ is_text (BOOLEAN NOT NULL)
    ├─ clicks (INTEGER DEFAULT 0)
    └─ created_at (TIMESTAMPTZ, DEFAULT NOW())

Key Behaviours
===============
- The unique constraint on slug is the only index besides the primary key and
  is what makes inserts conditional under concurrent creation.
- There is no update path for slug, target or is_text; rows are only created,
  click-counted and deleted.
- created_at is assigned by the database at insert time.

Classes:
    Link:  A stored short link, either a redirect target or text content.
"""

import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from shortlink.database import Base

__all__ = ["Link"]


class Link(Base):
    __tablename__ = "links"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    target: Mapped[str] = mapped_column(Text, nullable=False)
    is_text: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Link(id={self.id}, slug='{self.slug}', is_text={self.is_text}, clicks={self.clicks})>"
