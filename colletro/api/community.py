"""
Community Collections API - User-shared templates
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from colletro.api.deps import get_current_user
from colletro.api.schemas import (
    CollectionResponse,
    CollectionUpdate,
    TemplateItemCreate,
    TemplateItemResponse,
    TemplateItemUpdate,
    TemplateResponse,
)
from colletro.database import get_db
from colletro.models import CommunityCollection, CommunityItem, User
from colletro.services.collections import (
    clone_to_account,
    find_collection_for_user,
    find_community,
    new_template_item,
)

logger = logging.getLogger(__name__)
router = APIRouter()
items_router = APIRouter()


async def get_community_or_404(db: AsyncSession, collection_id: str) -> CommunityCollection:
    collection = await find_community(db, collection_id)
    if not collection:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Community collection not found",
        )
    return collection


def ensure_author(collection: CommunityCollection, user: User) -> None:
    if collection.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden",
        )


@router.get("", response_model=list[TemplateResponse])
async def list_community(db: AsyncSession = Depends(get_db)):
    """List community collections, most recently changed first."""
    result = await db.execute(
        select(CommunityCollection).order_by(CommunityCollection.updated_at.desc())
    )
    return [TemplateResponse.from_model(c) for c in result.scalars().all()]


@router.get("/{collection_id}", response_model=TemplateResponse)
async def get_community(collection_id: str, db: AsyncSession = Depends(get_db)):
    """Get a community collection with its items."""
    collection = await get_community_or_404(db, collection_id)
    return TemplateResponse.from_model(collection)


@router.patch("/{collection_id}", response_model=TemplateResponse)
async def update_community(
    collection_id: str,
    request: CollectionUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit a community collection's metadata (author only)."""
    collection = await get_community_or_404(db, collection_id)
    ensure_author(collection, user)

    for name, value in request.changes().items():
        setattr(collection, name, value)
    collection.touch()

    await db.commit()
    logger.info(f"User {user.id} updated community collection {collection_id}")

    collection = await find_community(db, collection_id)
    return TemplateResponse.from_model(collection)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_community(
    collection_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a community collection (author only)."""
    collection = await get_community_or_404(db, collection_id)
    ensure_author(collection, user)

    await db.delete(collection)
    await db.commit()

    logger.info(f"User {user.id} deleted community collection {collection_id}")


@router.post(
    "/{collection_id}/items",
    response_model=list[TemplateItemResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_community_items(
    collection_id: str,
    request: list[TemplateItemCreate],
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add items to a community collection (author only)."""
    collection = await get_community_or_404(db, collection_id)
    ensure_author(collection, user)

    created = [
        new_template_item(
            collection,
            name=item.name,
            number=item.number,
            image=item.image or None,
            notes=item.notes or None,
        )
        for item in request
    ]
    collection.touch()
    await db.commit()

    logger.info(f"Added {len(created)} items to community collection {collection_id}")
    return [TemplateItemResponse.model_validate(item) for item in created]


@router.post(
    "/{collection_id}/add-to-account",
    response_model=CollectionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_community_to_account(
    collection_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Clone a community collection into the caller's account."""
    source = await get_community_or_404(db, collection_id)

    collection = await clone_to_account(db, source, user.id)
    await db.commit()

    collection = await find_collection_for_user(db, collection.id, user.id)
    return CollectionResponse.from_model(collection)


# =============================================================================
# Item routes (mounted under /api/community-items)
# =============================================================================

async def get_editable_community_item(
    db: AsyncSession,
    item_id: str,
    user: User,
) -> tuple[CommunityCollection, CommunityItem]:
    """Load an item and its collection; the author or an admin may edit it."""
    item = await db.get(CommunityItem, item_id)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Community item not found",
        )
    parent = await get_community_or_404(db, item.community_collection_id)
    if not user.is_admin:
        ensure_author(parent, user)
    return parent, item


@items_router.patch("/{item_id}", response_model=TemplateItemResponse)
async def update_community_item(
    item_id: str,
    request: TemplateItemUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit a community item."""
    parent, item = await get_editable_community_item(db, item_id, user)
    for name, value in request.changes().items():
        setattr(item, name, value)
    parent.touch()

    await db.commit()
    logger.info(f"User {user.id} updated community item {item_id}")
    return TemplateItemResponse.model_validate(item)


@items_router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_community_item(
    item_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Remove an item from its community collection."""
    parent, item = await get_editable_community_item(db, item_id, user)
    parent.items.remove(item)
    parent.touch()

    await db.commit()
    logger.info(f"User {user.id} deleted community item {item_id}")
