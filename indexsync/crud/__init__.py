"""CRUD singletons."""

from indexsync.crud.crud_collection import collection

__all__ = ["collection"]
