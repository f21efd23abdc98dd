"""
Collection Sync Logic

Pure decisions over a user's collection and the template it was cloned from:

- check_for_update: has the template changed since the collection last took it in?
- is_customized: has the user edited the collection away from the template?
- plan_sync: what accepting the template's current state would write back.

Nothing in this module touches the database or logs. Callers load the two
records, convert them with the snapshot models below and act on the result.
Absent values are normalized once, when a snapshot is built, so the
comparisons themselves are plain equality.
"""

from datetime import datetime
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator

# (number, name) with "" for a missing number. Templates and clones
# do not share item ids.
ItemKey = tuple[int | str, str]

METADATA_FIELDS = (
    "name",
    "description",
    "category",
    "cover_image",
    "cover_image_aspect_ratio",
    "tags",
)


# =============================================================================
# Snapshots
# =============================================================================

class ItemSnapshot(BaseModel):
    """An item as seen by the comparison, from either side."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str | None = None
    name: str
    number: int | None = None
    image: str | None = None
    notes: str | None = None

    @field_validator("image", "notes")
    @classmethod
    def blank_is_absent(cls, value: str | None) -> str | None:
        return value or None


class _CollectionShape(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    description: str | None = None
    category: str | None = None
    cover_image: str | None = None
    cover_image_aspect_ratio: str | None = None
    tags: str = "[]"
    items: list[ItemSnapshot] = []

    @field_validator("cover_image_aspect_ratio")
    @classmethod
    def blank_is_absent(cls, value: str | None) -> str | None:
        return value or None

    def metadata(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in METADATA_FIELDS}


class TemplateSnapshot(_CollectionShape):
    """A recommended or community collection acting as a clone source."""

    id: str | None = None
    updated_at: datetime


class CollectionSnapshot(_CollectionShape):
    """A user's collection, possibly linked to a template."""

    id: str | None = None
    source_id: str | None = None
    created_at: datetime
    last_synced_at: datetime | None = None


class UpdateCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_update: bool = False
    is_customized: bool = False


class SyncPlan(BaseModel):
    """Writes needed to bring a collection up to its template."""

    metadata: dict[str, Any]
    items_to_add: list[ItemSnapshot] = Field(default_factory=list)
    # (id of the user's item, template item carrying the new values)
    items_to_update: list[tuple[str | None, ItemSnapshot]] = Field(default_factory=list)


# =============================================================================
# Item identity
# =============================================================================

def item_key(item: ItemSnapshot) -> ItemKey:
    return ("" if item.number is None else item.number, item.name)


def index_items(items: Iterable[ItemSnapshot]) -> dict[ItemKey, ItemSnapshot]:
    """Map items by identity key. A later duplicate replaces an earlier one."""
    return {item_key(item): item for item in items}


# =============================================================================
# Decisions
# =============================================================================

def check_for_update(collection: CollectionSnapshot, source: TemplateSnapshot) -> bool:
    """
    Whether the template changed after the collection last incorporated it.

    A collection that was never synced uses its creation time as the
    baseline. Equal timestamps do not count as an update.
    """
    if collection.last_synced_at is None:
        baseline = collection.created_at
    else:
        baseline = collection.last_synced_at
    return source.updated_at > baseline


def metadata_differs(collection: CollectionSnapshot, source: TemplateSnapshot) -> bool:
    return any(
        getattr(collection, name) != getattr(source, name)
        for name in METADATA_FIELDS
    )


def is_customized(collection: CollectionSnapshot, source: TemplateSnapshot) -> bool:
    """
    Whether the user has diverged from the template's current state.

    Checks run cheapest first and stop at the first difference:
    metadata, then item count, then each template item's name and image.
    Items the user added on top of the template only show up in the count.
    """
    if metadata_differs(collection, source):
        return True

    user_items = index_items(collection.items)
    source_items = index_items(source.items)

    if len(user_items) != len(source_items):
        return True

    for key, source_item in source_items.items():
        user_item = user_items.get(key)
        if user_item is None or user_item.name != source_item.name:
            return True
        if user_item.image != source_item.image:
            return True

    return False


def check_collection(
    collection: CollectionSnapshot,
    source: TemplateSnapshot | None,
) -> UpdateCheck:
    """Combined answer for a collection; unlinked or orphaned ones need nothing."""
    if collection.source_id is None or source is None:
        return UpdateCheck()
    return UpdateCheck(
        has_update=check_for_update(collection, source),
        is_customized=is_customized(collection, source),
    )


def plan_sync(
    collection: CollectionSnapshot,
    source: TemplateSnapshot,
    preserve_customizations: bool = False,
    now: datetime | None = None,
) -> SyncPlan:
    """
    Compute the writes that re-apply a template onto a collection.

    Metadata is taken from the template unless preserve_customizations is
    set, in which case every field the user changed keeps the user's value.
    Template items missing from the collection are added; items present on
    both sides get the template's image and notes when those differ. Items
    the user added are left alone.
    """
    now = now or datetime.utcnow()

    metadata = source.metadata()
    if preserve_customizations:
        for name, value in collection.metadata().items():
            if value != metadata[name]:
                metadata[name] = value

    # last_synced_at never moves backwards
    if collection.last_synced_at is not None and collection.last_synced_at > now:
        metadata["last_synced_at"] = collection.last_synced_at
    else:
        metadata["last_synced_at"] = now

    user_items = index_items(collection.items)
    plan = SyncPlan(metadata=metadata)

    for key, source_item in index_items(source.items).items():
        existing = user_items.get(key)
        if existing is None:
            plan.items_to_add.append(source_item)
        elif existing.image != source_item.image or existing.notes != source_item.notes:
            plan.items_to_update.append((existing.id, source_item))

    return plan
