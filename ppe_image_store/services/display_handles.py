"""Display handle providers for uploaded image content."""

import mimetypes
import os
import threading
import uuid
from typing import Dict, List

from ..config.defaults import DEFAULT_PATHS
from ..logging_config import get_logger
from ..utils import ensure_directory_exists
from .interfaces import DisplayHandleProviderInterface

logger = get_logger("display_handles")


class InMemoryHandleProvider(DisplayHandleProviderInterface):
    """Keeps content in memory behind ``blob:`` style handles."""

    def __init__(self):
        self._blobs: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def acquire(self, content: bytes, mimetype: str, filename: str) -> str:
        handle = f"blob:{uuid.uuid4()}"
        with self._lock:
            self._blobs[handle] = bytes(content)
        return handle

    def resolve(self, handle: str) -> bytes:
        with self._lock:
            if handle not in self._blobs:
                raise KeyError(f"Unknown display handle: {handle}")
            return self._blobs[handle]

    def release(self, handle: str) -> None:
        with self._lock:
            released = self._blobs.pop(handle, None)
        if released is None:
            logger.warning(f"Release of unknown display handle {handle}")

    @property
    def active_handles(self) -> List[str]:
        with self._lock:
            return list(self._blobs)


class DirectoryHandleProvider(DisplayHandleProviderInterface):
    """Writes each upload to its own file under ``images_dir``.

    The handle is the file path; releasing it deletes the file.
    """

    def __init__(self, images_dir: str = DEFAULT_PATHS["images_dir"]):
        self.images_dir = images_dir
        ensure_directory_exists(self.images_dir)

    def acquire(self, content: bytes, mimetype: str, filename: str) -> str:
        extension = mimetypes.guess_extension(mimetype) or os.path.splitext(filename)[1] or ".bin"
        image_path = os.path.join(self.images_dir, f"{uuid.uuid4().hex}{extension}")
        with open(image_path, "wb") as f:
            f.write(content)
        logger.debug(f"Wrote {len(content)} bytes to {image_path}")
        return image_path

    def resolve(self, handle: str) -> bytes:
        if not self._owns(handle) or not os.path.exists(handle):
            raise KeyError(f"Unknown display handle: {handle}")
        with open(handle, "rb") as f:
            return f.read()

    def release(self, handle: str) -> None:
        if not self._owns(handle):
            logger.warning(f"Refusing to release handle outside {self.images_dir}: {handle}")
            return
        try:
            os.remove(handle)
        except FileNotFoundError:
            logger.warning(f"Release of missing image file {handle}")

    def _owns(self, handle: str) -> bool:
        directory = os.path.abspath(self.images_dir)
        return os.path.dirname(os.path.abspath(handle)) == directory
