"""ORM models."""

from indexsync.models._base import Base
from indexsync.models.collection import Collection

__all__ = ["Base", "Collection"]
