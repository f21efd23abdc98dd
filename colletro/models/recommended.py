"""
Recommended Collection Model - Admin-curated templates users can clone
"""

from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from colletro.database import Base
from colletro.models.base import CollectionFieldsMixin, ItemFieldsMixin


class RecommendedCollection(CollectionFieldsMixin, Base):
    """Curated collection template."""

    __tablename__ = "recommended_collections"

    items: Mapped[list["RecommendedItem"]] = relationship(
        "RecommendedItem",
        back_populates="recommended_collection",
        cascade="all, delete-orphan",
        order_by="[RecommendedItem.number, RecommendedItem.name]",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<RecommendedCollection(id={self.id}, name={self.name})>"


class RecommendedItem(ItemFieldsMixin, Base):
    """Item of a recommended collection."""

    __tablename__ = "recommended_items"

    recommended_collection_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("recommended_collections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    recommended_collection: Mapped["RecommendedCollection"] = relationship(
        "RecommendedCollection",
        back_populates="items",
    )
