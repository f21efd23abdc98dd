"""
Services Package - Sync decisions and persistence helpers
"""

from colletro.services.sync import (
    CollectionSnapshot,
    TemplateSnapshot,
    ItemSnapshot,
    UpdateCheck,
    SyncPlan,
    check_for_update,
    is_customized,
    check_collection,
    plan_sync,
    item_key,
)
from colletro.services.tags import parse_tags, stringify_tags

__all__ = [
    "CollectionSnapshot",
    "TemplateSnapshot",
    "ItemSnapshot",
    "UpdateCheck",
    "SyncPlan",
    "check_for_update",
    "is_customized",
    "check_collection",
    "plan_sync",
    "item_key",
    "parse_tags",
    "stringify_tags",
]
