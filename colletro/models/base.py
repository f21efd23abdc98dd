"""
Shared column sets for collections and their source templates
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column


def new_id() -> str:
    return str(uuid.uuid4())


class CollectionFieldsMixin:
    """Display metadata shared by user collections and source templates."""

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    cover_image: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    cover_image_aspect_ratio: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # JSON-serialized list of tag strings, compared as stored
    tags: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    def touch(self) -> None:
        """Advance updated_at after a change the row itself does not see."""
        self.updated_at = datetime.utcnow()


class ItemFieldsMixin:
    """Fields shared by user items and template items."""

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    image: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
