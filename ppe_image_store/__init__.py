"""
PPE Image Record Store

Stores uploaded images with their personal protective equipment detections,
deduplicated by content fingerprint, and answers filtered, paginated and
aggregate queries over them.
"""

__version__ = "1.0.0"
__author__ = "PPE Image Record Store"

# Import core components
from .config_manager import ConfigManager
from .models import (
    BoundingBox,
    Detection,
    ImageRecord,
    LabelVocabulary,
    PPELabel,
    ImageFilters,
    PaginatedResponse,
    StoreStats,
    StoreConfig,
    export_filename,
    export_json
)
from .services import (
    ImageStore,
    DetectorInterface,
    DisplayHandleProviderInterface,
    ImageStoreInterface,
    MockDetector,
    RandomPPEDetector,
    InMemoryHandleProvider,
    DirectoryHandleProvider,
    ImageStoreError,
    InvalidInputError,
    DetectionFailureError,
    HashCollisionError
)
from .hashing import fingerprint_bytes, fingerprint_detections
from .logging_config import setup_logging, get_logger
from . import utils

__all__ = [
    # Core management
    'ConfigManager',
    'ImageStore',

    # Data models
    'BoundingBox',
    'Detection',
    'ImageRecord',
    'LabelVocabulary',
    'PPELabel',
    'ImageFilters',
    'PaginatedResponse',
    'StoreStats',
    'StoreConfig',
    'export_filename',
    'export_json',

    # Collaborators
    'DetectorInterface',
    'DisplayHandleProviderInterface',
    'ImageStoreInterface',
    'MockDetector',
    'RandomPPEDetector',
    'InMemoryHandleProvider',
    'DirectoryHandleProvider',

    # Errors
    'ImageStoreError',
    'InvalidInputError',
    'DetectionFailureError',
    'HashCollisionError',

    # Hashing and logging
    'fingerprint_bytes',
    'fingerprint_detections',
    'setup_logging',
    'get_logger',

    # Utilities
    'utils'
]
