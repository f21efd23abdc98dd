"""
Items API - Edit and remove items of a user's collections
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from colletro.api.deps import get_current_user
from colletro.api.schemas import ItemResponse, ItemUpdate
from colletro.database import get_db
from colletro.models import Collection, Item, User

logger = logging.getLogger(__name__)
router = APIRouter()


async def get_owned_item(db: AsyncSession, item_id: str, user: User) -> Item:
    result = await db.execute(
        select(Item)
        .join(Collection, Item.collection_id == Collection.id)
        .where(Item.id == item_id, Collection.user_id == user.id)
    )
    item = result.scalar_one_or_none()
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found",
        )
    return item


@router.patch("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: str,
    request: ItemUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update an item's fields."""
    item = await get_owned_item(db, item_id, user)
    for name, value in request.changes().items():
        setattr(item, name, value)

    await db.commit()
    await db.refresh(item)

    logger.info(f"Updated item {item_id}")
    return ItemResponse.model_validate(item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Remove an item from its collection."""
    item = await get_owned_item(db, item_id, user)
    await db.delete(item)
    await db.commit()

    logger.info(f"Deleted item {item_id}")
