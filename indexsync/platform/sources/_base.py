"""Base source reader."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

DEFAULT_PAGE_SIZE = 50


class BaseSourceReader(ABC):
    """Reads pages of records for one content type from the host CMS.

    Pagination is driven by the caller: each call returns exactly the page at
    ``offset``; a page shorter than ``limit`` (or empty) means the source is exhausted.
    """

    @abstractmethod
    async def get_entries(
        self,
        *,
        entity: str,
        relations: Sequence[str],
        schema: Dict[str, Any],
        where: Optional[Dict[str, Any]] = None,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        """Read one page of entries.

        Args:
            entity: Content type uid
            relations: Relation fields to populate
            schema: Field schema; its top-level keys select the fields to read
            where: Optional filter in operator form, e.g. ``{"publishedAt": {"$notNull": True}}``
            offset: Index of the first entry of the page
            limit: Page size

        Returns:
            Entries of the page, each keyed by ``id``

        Raises:
            SourceReadFailure: If the CMS cannot be read
        """
        pass
