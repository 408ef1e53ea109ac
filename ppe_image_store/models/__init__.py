"""Data models for the PPE image record store."""

from .detection import (
    BoundingBox,
    Detection,
    ImageRecord,
    LabelVocabulary,
    PPELabel,
    export_filename,
    export_json,
)
from .query import ImageFilters, PaginatedResponse, StoreStats
from .config import StoreConfig

__all__ = [
    'BoundingBox', 'Detection', 'ImageRecord', 'LabelVocabulary', 'PPELabel',
    'export_filename', 'export_json',
    'ImageFilters', 'PaginatedResponse', 'StoreStats',
    'StoreConfig',
]
