"""Service interfaces and abstract base classes."""

from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional, Union

from ..models.detection import Detection, ImageRecord
from ..models.query import ImageFilters, PaginatedResponse, StoreStats


class DetectorInterface(ABC):
    """Interface for PPE detectors."""

    @abstractmethod
    def detect(self, image_handle: str) -> List[Detection]:
        """Detect PPE in the image behind a display handle."""
        pass

    def __call__(self, image_handle: str) -> List[Detection]:
        return self.detect(image_handle)


class DisplayHandleProviderInterface(ABC):
    """Interface for turning uploaded bytes into displayable handles."""

    @abstractmethod
    def acquire(self, content: bytes, mimetype: str, filename: str) -> str:
        """Materialize content and return a handle referring to it."""
        pass

    @abstractmethod
    def resolve(self, handle: str) -> bytes:
        """Return the content behind a live handle."""
        pass

    @abstractmethod
    def release(self, handle: str) -> None:
        """Release a handle; each handle is released exactly once."""
        pass


class ImageStoreInterface(ABC):
    """Interface for the image record store."""

    @abstractmethod
    def upload_image(self, content, filename: str, detector=None) -> ImageRecord:
        """Store an image, returning the existing record for duplicate content."""
        pass

    @abstractmethod
    def get_images(self, filters: Union[ImageFilters, Mapping[str, Any], None] = None,
                   **params) -> PaginatedResponse[ImageRecord]:
        """List records matching filters, newest first, one page at a time."""
        pass

    @abstractmethod
    def get_image_by_id(self, image_id: str) -> Optional[ImageRecord]:
        """Look up a record by identifier."""
        pass

    @abstractmethod
    def delete_image(self, image_id: str) -> bool:
        """Delete a record, returning False if it does not exist."""
        pass

    @abstractmethod
    def get_stats(self) -> StoreStats:
        """Aggregate statistics over all live records."""
        pass
