"""Library store abstraction.

The search stack never reaches into a global document store. A concrete store
is injected into the indexer, which only uses the read-only capabilities
declared here.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from paper_search.domain.items import LibraryCollection, LibraryItem


class AbstractLibraryStore(ABC):
    """Read-only access to the documents and folders of a library.

    Implementations should return one consistent snapshot per call; the
    indexer does not expect a live cursor.
    """

    @abstractmethod
    async def get_all_items(self, library_id: int) -> Sequence[LibraryItem]:
        """Return every item (regular items and attachments) in the library."""
        raise NotImplementedError

    @abstractmethod
    async def get_collections(self, library_id: int) -> Sequence[LibraryCollection]:
        """Return every folder in the library, nested ones included."""
        raise NotImplementedError

    @abstractmethod
    def get_item(self, item_id: int) -> LibraryItem | None:
        """Look up a single item by id (used to resolve attachments)."""
        raise NotImplementedError

    def get_library_name(self, library_id: int) -> str | None:
        """Optional hook returning the library's display name."""
        return None
