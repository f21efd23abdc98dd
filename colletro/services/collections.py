"""
Collection persistence helpers

Lookups and writes shared by the API routers. The sync decisions themselves
live in colletro.services.sync and never see a session.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from colletro.models import (
    Collection,
    CommunityCollection,
    CommunityItem,
    Item,
    RecommendedCollection,
    RecommendedItem,
)
from colletro.services.sync import (
    METADATA_FIELDS,
    CollectionSnapshot,
    SyncPlan,
    TemplateSnapshot,
)

logger = logging.getLogger(__name__)

SourceTemplate = RecommendedCollection | CommunityCollection


# =============================================================================
# Lookups
# =============================================================================

async def find_collection_for_user(
    db: AsyncSession,
    collection_id: str,
    user_id: str,
) -> Collection | None:
    """Load a collection with its items, only if the user owns it."""
    result = await db.execute(
        select(Collection)
        .where(Collection.id == collection_id, Collection.user_id == user_id)
        .options(selectinload(Collection.items))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def find_recommended(db: AsyncSession, collection_id: str) -> RecommendedCollection | None:
    result = await db.execute(
        select(RecommendedCollection)
        .where(RecommendedCollection.id == collection_id)
        .options(selectinload(RecommendedCollection.items))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def find_community(db: AsyncSession, collection_id: str) -> CommunityCollection | None:
    result = await db.execute(
        select(CommunityCollection)
        .where(CommunityCollection.id == collection_id)
        .options(selectinload(CommunityCollection.items))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def find_source_template(db: AsyncSession, collection: Collection) -> SourceTemplate | None:
    """Resolve the template a collection was cloned from; None if unlinked or deleted."""
    if collection.recommended_collection_id:
        return await find_recommended(db, collection.recommended_collection_id)
    if collection.community_collection_id:
        return await find_community(db, collection.community_collection_id)
    return None


def snapshot_pair(
    collection: Collection,
    source: SourceTemplate | None,
) -> tuple[CollectionSnapshot, TemplateSnapshot | None]:
    collection_snapshot = CollectionSnapshot.model_validate(collection, from_attributes=True)
    if source is None:
        return collection_snapshot, None
    return collection_snapshot, TemplateSnapshot.model_validate(source, from_attributes=True)


# =============================================================================
# Writes
# =============================================================================

async def apply_sync(db: AsyncSession, collection: Collection, plan: SyncPlan) -> None:
    """Write a sync plan onto a loaded collection."""
    for name, value in plan.metadata.items():
        setattr(collection, name, value)

    items_by_id = {item.id: item for item in collection.items}
    for item_id, source_item in plan.items_to_update:
        item = items_by_id.get(item_id)
        if item is None:
            continue
        item.image = source_item.image
        item.notes = source_item.notes

    for source_item in plan.items_to_add:
        collection.items.append(
            Item(
                name=source_item.name,
                number=source_item.number,
                image=source_item.image,
                notes=source_item.notes,
                is_owned=False,
            )
        )

    await db.flush()
    logger.info(
        f"Synced collection {collection.id}: "
        f"{len(plan.items_to_add)} added, {len(plan.items_to_update)} updated"
    )


async def clone_to_account(db: AsyncSession, source: SourceTemplate, user_id: str) -> Collection:
    """
    Copy a template into a new collection for the user.

    last_synced_at stays unset, so the clone's creation time is the
    baseline for the first update check.
    """
    collection = Collection(
        user_id=user_id,
        **{name: getattr(source, name) for name in METADATA_FIELDS},
        items=[
            Item(
                name=item.name,
                number=item.number,
                image=item.image,
                notes=item.notes,
                is_owned=False,
            )
            for item in source.items
        ],
    )
    if not collection.tags:
        collection.tags = "[]"
    if isinstance(source, RecommendedCollection):
        collection.recommended_collection_id = source.id
    else:
        collection.community_collection_id = source.id

    db.add(collection)
    await db.flush()
    logger.info(f"Cloned {type(source).__name__} {source.id} into collection {collection.id}")
    return collection


async def share_to_community(db: AsyncSession, collection: Collection, user_id: str) -> CommunityCollection:
    """Publish a copy of a user's collection as a community template."""
    community = CommunityCollection(
        user_id=user_id,
        **{name: getattr(collection, name) for name in METADATA_FIELDS},
        items=[
            CommunityItem(
                name=item.name,
                number=item.number,
                image=item.image,
                notes=item.notes,
            )
            for item in collection.items
        ],
    )
    db.add(community)
    await db.flush()
    logger.info(f"Shared collection {collection.id} as community collection {community.id}")
    return community


def new_template_item(template: SourceTemplate, **fields) -> RecommendedItem | CommunityItem:
    """Build an item of the right class and attach it to the template."""
    if isinstance(template, RecommendedCollection):
        item = RecommendedItem(**fields)
    else:
        item = CommunityItem(**fields)
    template.items.append(item)
    return item
