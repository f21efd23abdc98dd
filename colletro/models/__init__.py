"""
SQLAlchemy Models for collections and their source templates
"""

from colletro.models.user import User
from colletro.models.collection import Collection, Item
from colletro.models.recommended import RecommendedCollection, RecommendedItem
from colletro.models.community import CommunityCollection, CommunityItem

__all__ = [
    "User",
    "Collection",
    "Item",
    "RecommendedCollection",
    "RecommendedItem",
    "CommunityCollection",
    "CommunityItem",
]
