"""Readers for the host CMS."""

from indexsync.platform.sources._base import DEFAULT_PAGE_SIZE, BaseSourceReader
from indexsync.platform.sources.cms import CMSClient, CMSSourceReader
from indexsync.platform.sources.content_types import ContentTypesService

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "BaseSourceReader",
    "CMSClient",
    "CMSSourceReader",
    "ContentTypesService",
]
