"""
Request/Response Models shared by the collection routers

JSON bodies use camelCase keys; Python attributes stay snake_case.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from colletro.services.tags import parse_tags, stringify_tags


class CamelModel(BaseModel):
    """Base model serializing to camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# Items
# =============================================================================

class TemplateItemCreate(CamelModel):
    """Item definition for a template or a collection."""
    name: str = Field(..., min_length=1, max_length=500)
    number: int | None = None
    image: str | None = None
    notes: str | None = None


class ItemCreate(TemplateItemCreate):
    """Item added to a user's own collection."""
    is_owned: bool = False


class TemplateItemUpdate(CamelModel):
    """Partial item update; omitted fields are left unchanged."""
    name: str | None = Field(default=None, min_length=1, max_length=500)
    number: int | None = None
    image: str | None = None
    notes: str | None = None

    def changes(self) -> dict[str, Any]:
        updates = self.model_dump(exclude_unset=True)
        if updates.get("name", "") is None:
            del updates["name"]
        for name in ("image", "notes"):
            if name in updates:
                updates[name] = updates[name] or None
        return updates


class ItemUpdate(TemplateItemUpdate):
    is_owned: bool | None = None

    def changes(self) -> dict[str, Any]:
        updates = super().changes()
        if updates.get("is_owned", False) is None:
            del updates["is_owned"]
        return updates


class TemplateItemResponse(CamelModel):
    id: str
    name: str
    number: int | None
    image: str | None
    notes: str | None


class ItemResponse(TemplateItemResponse):
    is_owned: bool


# =============================================================================
# Collections and templates
# =============================================================================

class CollectionCreate(CamelModel):
    """Request to create a collection or template."""
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    category: str | None = None
    cover_image: str | None = None
    cover_image_aspect_ratio: str | None = None
    tags: list[str] = Field(default_factory=list)

    def fields(self) -> dict[str, Any]:
        values = self.model_dump(exclude={"tags", "items"})
        values["tags"] = stringify_tags(self.tags)
        return values


class TemplateCreate(CollectionCreate):
    items: list[TemplateItemCreate] = Field(default_factory=list)


class CollectionUpdate(CamelModel):
    """Partial metadata update; omitted fields are left unchanged."""
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = None
    cover_image: str | None = None
    cover_image_aspect_ratio: str | None = None
    tags: list[str] | None = None

    def changes(self) -> dict[str, Any]:
        updates = self.model_dump(exclude_unset=True)
        for name in ("name", "tags"):
            if name in updates and updates[name] is None:
                del updates[name]
        if "tags" in updates:
            updates["tags"] = stringify_tags(updates["tags"])
        return updates


class _MetadataResponse(CamelModel):
    id: str
    name: str
    description: str | None
    category: str | None
    cover_image: str | None
    cover_image_aspect_ratio: str | None
    tags: str
    tag_list: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, row: Any):
        response = cls.model_validate(row, from_attributes=True)
        response.tag_list = parse_tags(row.tags)
        return response


class CollectionResponse(_MetadataResponse):
    """A user's collection with its items."""
    recommended_collection_id: str | None
    community_collection_id: str | None
    last_synced_at: datetime | None
    items: list[ItemResponse]


class TemplateResponse(_MetadataResponse):
    """A recommended or community collection with its items."""
    user_id: str | None = None
    items: list[TemplateItemResponse]


# =============================================================================
# Sync
# =============================================================================

class SyncRequest(CamelModel):
    preserve_customizations: bool = False


class SourceSummary(CamelModel):
    """Current display metadata of the template a collection came from."""
    name: str
    description: str | None
    category: str | None
    cover_image: str | None
    cover_image_aspect_ratio: str | None
    tags: str
    updated_at: datetime


class UpdateCheckResponse(CamelModel):
    """
    Result of an update check.

    Serialized with exclude_unset so an unlinked collection yields only
    the two flags.
    """
    has_update: bool
    is_customized: bool
    recommended_collection: SourceSummary | None = None
    last_synced_at: datetime | None = None
