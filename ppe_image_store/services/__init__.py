"""Services for the PPE image record store."""

from .interfaces import (
    DetectorInterface,
    DisplayHandleProviderInterface,
    ImageStoreInterface
)
from .error_handler import (
    ImageStoreError,
    InvalidInputError,
    DetectionFailureError,
    HashCollisionError,
    ErrorHandler,
    ErrorSeverity
)
from .detectors import MockDetector, RandomPPEDetector, CallableDetector, as_detector
from .display_handles import InMemoryHandleProvider, DirectoryHandleProvider
from .image_validator import ImageValidator, ValidatedImage
from .image_store import ImageStore

__all__ = [
    'DetectorInterface',
    'DisplayHandleProviderInterface',
    'ImageStoreInterface',
    'ImageStoreError',
    'InvalidInputError',
    'DetectionFailureError',
    'HashCollisionError',
    'ErrorHandler',
    'ErrorSeverity',
    'MockDetector',
    'RandomPPEDetector',
    'CallableDetector',
    'as_detector',
    'InMemoryHandleProvider',
    'DirectoryHandleProvider',
    'ImageValidator',
    'ValidatedImage',
    'ImageStore'
]
