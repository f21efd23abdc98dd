"""
Collections API - A user's own collections, update checks and sync
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from colletro.api.deps import get_current_user
from colletro.api.schemas import (
    CollectionCreate,
    CollectionResponse,
    CollectionUpdate,
    ItemCreate,
    ItemResponse,
    SourceSummary,
    SyncRequest,
    TemplateResponse,
    UpdateCheckResponse,
)
from colletro.database import get_db
from colletro.models import Collection, Item, User
from colletro.services.collections import (
    apply_sync,
    find_collection_for_user,
    find_community,
    find_source_template,
    share_to_community,
    snapshot_pair,
)
from colletro.services.sync import check_collection, plan_sync

logger = logging.getLogger(__name__)
router = APIRouter()


# =============================================================================
# Helper Functions
# =============================================================================

async def get_owned_collection(db: AsyncSession, collection_id: str, user: User) -> Collection:
    """Load a collection the caller owns; missing and foreign look the same."""
    collection = await find_collection_for_user(db, collection_id, user.id)
    if not collection:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Collection not found",
        )
    return collection


# =============================================================================
# Routes
# =============================================================================

@router.get("", response_model=list[CollectionResponse])
async def list_collections(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's collections, newest first."""
    result = await db.execute(
        select(Collection)
        .where(Collection.user_id == user.id)
        .order_by(Collection.created_at.desc())
    )
    return [CollectionResponse.from_model(c) for c in result.scalars().all()]


@router.post("", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED)
async def create_collection(
    request: CollectionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create an independent collection."""
    collection = Collection(user_id=user.id, items=[], **request.fields())
    db.add(collection)
    await db.commit()

    logger.info(f"Created collection {collection.id} for user {user.id}")

    collection = await find_collection_for_user(db, collection.id, user.id)
    return CollectionResponse.from_model(collection)


@router.get("/{collection_id}", response_model=CollectionResponse)
async def get_collection(
    collection_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get one of the caller's collections."""
    collection = await get_owned_collection(db, collection_id, user)
    return CollectionResponse.from_model(collection)


@router.patch("/{collection_id}", response_model=CollectionResponse)
async def update_collection(
    collection_id: str,
    request: CollectionUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit collection metadata."""
    collection = await get_owned_collection(db, collection_id, user)
    for name, value in request.changes().items():
        setattr(collection, name, value)

    await db.commit()
    logger.info(f"Updated collection {collection_id}")

    collection = await find_collection_for_user(db, collection_id, user.id)
    return CollectionResponse.from_model(collection)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(
    collection_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a collection and its items."""
    collection = await get_owned_collection(db, collection_id, user)
    await db.delete(collection)
    await db.commit()

    logger.info(f"Deleted collection {collection_id}")


@router.get(
    "/{collection_id}/check-updates",
    response_model=UpdateCheckResponse,
    response_model_exclude_unset=True,
)
async def check_updates(
    collection_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Report whether the collection's source has changed and whether the
    user has customized the collection away from it.
    """
    collection = await get_owned_collection(db, collection_id, user)

    if collection.source_id is None:
        return UpdateCheckResponse(has_update=False, is_customized=False)

    source = await find_source_template(db, collection)
    if source is None:
        logger.info(f"Source {collection.source_id} of collection {collection_id} no longer exists")
        return UpdateCheckResponse(has_update=False, is_customized=False)

    collection_snapshot, source_snapshot = snapshot_pair(collection, source)
    result = check_collection(collection_snapshot, source_snapshot)

    logger.info(
        f"Update check: collection={collection.id} last_synced_at={collection.last_synced_at} "
        f"source_updated_at={source.updated_at} has_update={result.has_update} "
        f"is_customized={result.is_customized}"
    )

    return UpdateCheckResponse(
        has_update=result.has_update,
        is_customized=result.is_customized,
        recommended_collection=SourceSummary(
            name=source.name,
            description=source.description,
            category=source.category,
            cover_image=source.cover_image,
            cover_image_aspect_ratio=source.cover_image_aspect_ratio or None,
            tags=source.tags,
            updated_at=source.updated_at,
        ),
        last_synced_at=collection.last_synced_at,
    )


@router.post("/{collection_id}/sync", response_model=CollectionResponse)
async def sync_collection(
    collection_id: str,
    request: SyncRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Re-apply the source's current state onto the collection.

    With preserveCustomizations, metadata the user changed is kept.
    Template items the user lacks are added; shared items take the
    template's image and notes. Ownership flags are never touched.
    """
    collection = await get_owned_collection(db, collection_id, user)

    if collection.source_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This collection is not linked to a source collection",
        )

    source = await find_source_template(db, collection)
    if source is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Source collection not found",
        )

    preserve = request.preserve_customizations if request else False
    collection_snapshot, source_snapshot = snapshot_pair(collection, source)
    plan = plan_sync(collection_snapshot, source_snapshot, preserve_customizations=preserve)

    await apply_sync(db, collection, plan)
    await db.commit()

    collection = await find_collection_for_user(db, collection_id, user.id)
    return CollectionResponse.from_model(collection)


@router.post(
    "/{collection_id}/items",
    response_model=ItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_item(
    collection_id: str,
    request: ItemCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add an item to one of the caller's collections."""
    collection = await get_owned_collection(db, collection_id, user)

    item = Item(
        name=request.name,
        number=request.number,
        image=request.image or None,
        notes=request.notes or None,
        is_owned=request.is_owned,
    )
    collection.items.append(item)
    await db.commit()

    logger.info(f"Added item {item.id} to collection {collection_id}")
    return ItemResponse.model_validate(item)


@router.post(
    "/{collection_id}/share-to-community",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def share_collection(
    collection_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Publish a copy of the collection for other users to clone."""
    collection = await get_owned_collection(db, collection_id, user)

    community = await share_to_community(db, collection, user.id)
    await db.commit()

    community = await find_community(db, community.id)
    return TemplateResponse.from_model(community)
