"""Query, page and statistics data models."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar

from .detection import ImageRecord

T = TypeVar("T")


@dataclass
class ImageFilters:
    """Optional, conjunctive filters for listing image records.

    ``from_date`` and ``to_date`` accept datetimes, dates or ISO-8601 strings;
    they are parsed when the filters are applied. ``limit`` of None means the
    store's default page size.
    """
    label: Optional[str] = None
    from_date: Any = None
    to_date: Any = None
    limit: Optional[int] = None
    offset: int = 0

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "ImageFilters":
        """Build filters from query parameters using the ``from``/``to`` keys.

        Empty strings are treated as absent, matching how form inputs submit
        unset fields.
        """
        def value(*keys):
            for key in keys:
                if key in params and params[key] not in (None, ""):
                    return params[key]
            return None

        offset = value("offset")
        return cls(
            label=value("label"),
            from_date=value("from", "from_date"),
            to_date=value("to", "to_date"),
            limit=value("limit"),
            offset=0 if offset is None else offset,
        )


@dataclass
class PaginatedResponse(Generic[T]):
    """One page of a filtered, sorted result set."""
    data: List[T]
    total: int
    limit: int
    offset: int

    @property
    def page_count(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.data) < self.total


@dataclass
class StoreStats:
    """Aggregate statistics over the live records of a store."""
    total_images: int
    total_detections: int
    label_counts: Dict[str, int]
    recent_images: List[ImageRecord]
    average_detections_per_image: float = 0.0
    label_percentages: Dict[str, float] = field(default_factory=dict)
    average_confidence: Dict[str, float] = field(default_factory=dict)
    generated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_images": self.total_images,
            "total_detections": self.total_detections,
            "label_counts": dict(self.label_counts),
            "recent_images": [record.to_export_dict() for record in self.recent_images],
            "average_detections_per_image": self.average_detections_per_image,
            "label_percentages": dict(self.label_percentages),
            "average_confidence": dict(self.average_confidence),
        }
