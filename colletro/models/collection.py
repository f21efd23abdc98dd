"""
Collection Model - A user's own collection and its items
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from colletro.database import Base
from colletro.models.base import CollectionFieldsMixin, ItemFieldsMixin

if TYPE_CHECKING:
    from colletro.models.user import User


class Collection(CollectionFieldsMixin, Base):
    """Collection owned by a user, optionally cloned from a source template."""

    __tablename__ = "collections"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Plain ids of the template this collection was cloned from. Deleting the
    # template leaves the id in place, so the link reads as dangling, not absent.
    recommended_collection_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        index=True,
    )
    community_collection_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        index=True,
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="collections")
    items: Mapped[list["Item"]] = relationship(
        "Item",
        back_populates="collection",
        cascade="all, delete-orphan",
        order_by="[Item.number, Item.name]",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Collection(id={self.id}, name={self.name})>"

    @property
    def source_id(self) -> str | None:
        return self.recommended_collection_id or self.community_collection_id

    @property
    def source_type(self) -> str | None:
        if self.recommended_collection_id:
            return "recommended"
        if self.community_collection_id:
            return "community"
        return None


class Item(ItemFieldsMixin, Base):
    """Single entry in a user's collection."""

    __tablename__ = "items"

    collection_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("collections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_owned: Mapped[bool] = mapped_column(Boolean, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    collection: Mapped["Collection"] = relationship("Collection", back_populates="items")

    def __repr__(self) -> str:
        return f"<Item(number={self.number}, name={self.name})>"
