"""
Community Collection Model - Collections shared by users for others to clone
"""

from typing import TYPE_CHECKING

from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from colletro.database import Base
from colletro.models.base import CollectionFieldsMixin, ItemFieldsMixin

if TYPE_CHECKING:
    from colletro.models.user import User


class CommunityCollection(CollectionFieldsMixin, Base):
    """User-authored collection template."""

    __tablename__ = "community_collections"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user: Mapped["User"] = relationship("User", back_populates="community_collections")
    items: Mapped[list["CommunityItem"]] = relationship(
        "CommunityItem",
        back_populates="community_collection",
        cascade="all, delete-orphan",
        order_by="[CommunityItem.number, CommunityItem.name]",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<CommunityCollection(id={self.id}, name={self.name})>"


class CommunityItem(ItemFieldsMixin, Base):
    """Item of a community collection."""

    __tablename__ = "community_items"

    community_collection_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("community_collections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    community_collection: Mapped["CommunityCollection"] = relationship(
        "CommunityCollection",
        back_populates="items",
    )
