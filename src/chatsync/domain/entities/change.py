"""Raw change feed entities."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ChangeType(Enum):
    """Kind of change reported by the document store feed."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class DocumentChange:
    """One snapshot delivered by a store subscription.

    Attributes:
        id: Document ID.
        data: Document fields at the time of the change.
        change_type: Kind of change.
    """

    id: str
    data: dict[str, Any] = field(default_factory=dict)
    change_type: ChangeType = ChangeType.ADDED

    @property
    def is_removal(self) -> bool:
        """Check if the change removes the document."""
        return self.change_type is ChangeType.REMOVED


@dataclass(frozen=True)
class FeedQuery:
    """Subscription query for a collection.

    Attributes:
        collection: Collection name.
        order_by: Field the window is ordered by.
        limit: Size of the most recent window (None for unbounded).
    """

    collection: str
    order_by: str = "createdAt"
    limit: int | None = None
