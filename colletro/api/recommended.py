"""
Recommended Collections API - Curated templates and cloning them

Every change to a template or to one of its items advances the template's
updated_at, which is what update checks on cloned collections compare against.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from colletro.api.deps import get_admin_user, get_current_user
from colletro.api.schemas import (
    CollectionResponse,
    CollectionUpdate,
    TemplateCreate,
    TemplateItemCreate,
    TemplateItemResponse,
    TemplateItemUpdate,
    TemplateResponse,
)
from colletro.database import get_db
from colletro.models import RecommendedCollection, RecommendedItem, User
from colletro.services.collections import (
    clone_to_account,
    find_collection_for_user,
    find_recommended,
    new_template_item,
)

logger = logging.getLogger(__name__)
router = APIRouter()
items_router = APIRouter()


async def get_recommended_or_404(db: AsyncSession, collection_id: str) -> RecommendedCollection:
    collection = await find_recommended(db, collection_id)
    if not collection:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recommended collection not found",
        )
    return collection


# =============================================================================
# Routes
# =============================================================================

@router.get("", response_model=list[TemplateResponse])
async def list_recommended(db: AsyncSession = Depends(get_db)):
    """List all recommended collections."""
    result = await db.execute(
        select(RecommendedCollection).order_by(RecommendedCollection.name)
    )
    return [TemplateResponse.from_model(c) for c in result.scalars().all()]


@router.get("/{collection_id}", response_model=TemplateResponse)
async def get_recommended(collection_id: str, db: AsyncSession = Depends(get_db)):
    """Get a recommended collection with its items."""
    collection = await get_recommended_or_404(db, collection_id)
    return TemplateResponse.from_model(collection)


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_recommended(
    request: TemplateCreate,
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a recommended collection, optionally with items."""
    collection = RecommendedCollection(
        **request.fields(),
        items=[
            RecommendedItem(
                name=item.name,
                number=item.number,
                image=item.image or None,
                notes=item.notes or None,
            )
            for item in request.items
        ],
    )
    db.add(collection)
    await db.commit()

    logger.info(f"Admin {admin.id} created recommended collection {collection.id}")

    collection = await find_recommended(db, collection.id)
    return TemplateResponse.from_model(collection)


@router.patch("/{collection_id}", response_model=TemplateResponse)
async def update_recommended(
    collection_id: str,
    request: CollectionUpdate,
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit a recommended collection's metadata."""
    collection = await get_recommended_or_404(db, collection_id)
    for name, value in request.changes().items():
        setattr(collection, name, value)
    collection.touch()

    await db.commit()
    logger.info(f"Admin {admin.id} updated recommended collection {collection_id}")

    collection = await find_recommended(db, collection_id)
    return TemplateResponse.from_model(collection)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recommended(
    collection_id: str,
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a recommended collection and its items.

    Clones keep their link; their update checks then report no update.
    """
    collection = await get_recommended_or_404(db, collection_id)
    await db.delete(collection)
    await db.commit()

    logger.info(f"Admin {admin.id} deleted recommended collection {collection_id}")


@router.post(
    "/{collection_id}/items",
    response_model=list[TemplateItemResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_recommended_items(
    collection_id: str,
    request: list[TemplateItemCreate],
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """Add items to a recommended collection in one transaction."""
    collection = await get_recommended_or_404(db, collection_id)

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

    logger.info(f"Added {len(created)} items to recommended collection {collection_id}")
    return [TemplateItemResponse.model_validate(item) for item in created]


@router.post(
    "/{collection_id}/add-to-account",
    response_model=CollectionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_recommended_to_account(
    collection_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Clone a recommended collection into the caller's account."""
    source = await get_recommended_or_404(db, collection_id)

    collection = await clone_to_account(db, source, user.id)
    await db.commit()

    collection = await find_collection_for_user(db, collection.id, user.id)
    return CollectionResponse.from_model(collection)


# =============================================================================
# Item routes (mounted under /api/recommended-items)
# =============================================================================

async def get_recommended_item_or_404(
    db: AsyncSession,
    item_id: str,
) -> tuple[RecommendedCollection, RecommendedItem]:
    item = await db.get(RecommendedItem, item_id)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recommended item not found",
        )
    parent = await get_recommended_or_404(db, item.recommended_collection_id)
    return parent, item


@items_router.patch("/{item_id}", response_model=TemplateItemResponse)
async def update_recommended_item(
    item_id: str,
    request: TemplateItemUpdate,
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit a recommended item."""
    parent, item = await get_recommended_item_or_404(db, item_id)
    for name, value in request.changes().items():
        setattr(item, name, value)
    parent.touch()

    await db.commit()
    logger.info(f"Admin {admin.id} updated recommended item {item_id}")
    return TemplateItemResponse.model_validate(item)


@items_router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recommended_item(
    item_id: str,
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """Remove an item from its recommended collection."""
    parent, item = await get_recommended_item_or_404(db, item_id)
    parent.items.remove(item)
    parent.touch()

    await db.commit()
    logger.info(f"Admin {admin.id} deleted recommended item {item_id}")
