"""In-memory image record store with content deduplication."""

import os
import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import numpy as np

from ..config.defaults import DEFAULT_PATHS
from ..hashing import HASH_ALGORITHMS, fingerprint_bytes, fingerprint_detections, sha256_hex
from ..logging_config import get_logger, log_performance, setup_logging
from ..models.config import StoreConfig
from ..models.detection import Detection, ImageRecord, LabelVocabulary, export_filename, export_json
from ..models.query import ImageFilters, PaginatedResponse, StoreStats
from ..utils import ensure_directory_exists, to_utc, utc_now
from .detectors import as_detector
from .display_handles import DirectoryHandleProvider, InMemoryHandleProvider
from .error_handler import (
    DetectionFailureError,
    ErrorHandler,
    HashCollisionError,
    with_error_handling,
)
from .image_validator import ImageValidator, ValidatedImage
from .interfaces import DetectorInterface, DisplayHandleProviderInterface, ImageStoreInterface
from .query_engine import query_records, sort_newest_first

logger = get_logger("image_store")

# Attempts at drawing an unused id before giving up
_MAX_ID_ATTEMPTS = 5


class _PendingUpload:
    """Marks a fingerprint whose first upload is still running."""

    def __init__(self):
        self.done = threading.Event()


class ImageStore(ImageStoreInterface):
    """Stores one record per distinct uploaded image.

    Two indices are kept: records by id, and record ids by content
    fingerprint. Both change together under one lock. Uploads of the same
    content are serialized, so the detector runs at most once per distinct
    content even when identical uploads race.
    """

    def __init__(self,
                 detector: Optional[Any] = None,
                 handle_provider: Optional[DisplayHandleProviderInterface] = None,
                 config: Optional[StoreConfig] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 validator: Optional[ImageValidator] = None,
                 clock: Optional[Callable[[], Any]] = None,
                 id_factory: Optional[Callable[[], str]] = None):
        """
        Initialize the image store.

        Args:
            detector: Default detector (DetectorInterface or callable) for uploads
            handle_provider: Materializes uploaded bytes as display handles
            config: Store configuration; defaults to StoreConfig()
            error_handler: Receives upload failures; a private one is created if omitted
            validator: Upload validator; built from config if omitted
            clock: Returns the upload timestamp; defaults to current UTC time
            id_factory: Returns new record ids; defaults to uuid4 strings
        """
        self.config = config or StoreConfig()
        if self.config.hash_algorithm not in HASH_ALGORITHMS:
            raise ValueError(f"Unknown hash algorithm {self.config.hash_algorithm!r}")

        self.detector: Optional[DetectorInterface] = as_detector(detector) if detector is not None else None
        self.handle_provider = handle_provider or InMemoryHandleProvider()
        self.vocabulary = LabelVocabulary(self.config.extra_labels)
        self.validator = validator or ImageValidator(
            allowed_formats=self.config.allowed_image_formats,
            max_upload_size_mb=self.config.max_upload_size_mb,
        )
        self.error_handler = error_handler or ErrorHandler()
        self.error_handler.register_component("image_store")

        self._clock = clock or utc_now
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

        self._images: Dict[str, ImageRecord] = {}
        self._hash_to_id: Dict[str, str] = {}
        self._pending: Dict[str, _PendingUpload] = {}
        self._lock = threading.RLock()

        logger.info(f"Image store initialized (hash={self.config.hash_algorithm}, "
                    f"labels={', '.join(self.vocabulary)})")

    @classmethod
    def from_config(cls, config: StoreConfig, detector: Optional[Any] = None,
                    configure_logging: bool = True, **kwargs) -> "ImageStore":
        """Build a store whose handle provider is chosen by ``config.handle_provider``.

        Unless ``configure_logging`` is False, logging is also set up from
        ``config.log_level`` and ``config.log_dir``.
        """
        if "handle_provider" not in kwargs:
            if config.handle_provider == "directory":
                kwargs["handle_provider"] = DirectoryHandleProvider(config.images_dir)
            elif config.handle_provider == "memory":
                kwargs["handle_provider"] = InMemoryHandleProvider()
            else:
                raise ValueError(f"Unknown handle provider {config.handle_provider!r}")
        if configure_logging:
            setup_logging(config.log_level, config.log_dir or None)
        return cls(detector=detector, config=config, **kwargs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._images)

    def __contains__(self, image_id: object) -> bool:
        with self._lock:
            return image_id in self._images

    # Upload

    @with_error_handling("image_store")
    def upload_image(self, content: Any, filename: str,
                     detector: Optional[Any] = None) -> ImageRecord:
        """Store an uploaded image and its detections.

        Byte-identical content returns the already stored record without
        running the detector again.

        Raises:
            InvalidInputError: content is empty, unreadable or not an allowed image
            DetectionFailureError: the detector failed or returned invalid detections
            HashCollisionError: the fingerprint matches a record with different content
        """
        start_time = time.perf_counter()
        image = self.validator.validate(content)
        filename = "" if filename is None else str(filename)
        file_hash = fingerprint_bytes(image.content, self.config.hash_algorithm, image.mimetype)
        content_digest = sha256_hex(image.content)

        while True:
            with self._lock:
                existing = self._find_duplicate(file_hash, image.size, content_digest)
                if existing is not None:
                    logger.info(f"Duplicate upload of {filename!r} matches record {existing.id}")
                    return existing

                pending = self._pending.get(file_hash)
                if pending is None:
                    pending = _PendingUpload()
                    self._pending[file_hash] = pending
                    break

            logger.debug(f"Waiting for in-flight upload of fingerprint {file_hash}")
            pending.done.wait()

        try:
            active_detector = as_detector(detector) if detector is not None else self.detector
            record = self._create_record(image, filename, file_hash, content_digest, active_detector)
        finally:
            with self._lock:
                self._pending.pop(file_hash, None)
            pending.done.set()

        log_performance("Image uploaded", {
            "image_id": record.id,
            "detections": record.detection_count,
            "size_bytes": record.size,
            "upload_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
        })
        logger.info(f"Stored {filename!r} as {record.id} with {record.detection_count} detections")
        return record

    def _find_duplicate(self, file_hash: str, size: int, content_digest: str) -> Optional[ImageRecord]:
        """Existing record for a fingerprint; caller holds the lock."""
        existing_id = self._hash_to_id.get(file_hash)
        if existing_id is None:
            return None

        record = self._images.get(existing_id)
        if record is None:
            logger.warning(f"Dropping dedup entry {file_hash} for missing record {existing_id}")
            del self._hash_to_id[file_hash]
            return None

        if self.config.verify_collisions and (
                record.size != size or record.content_digest != content_digest):
            raise HashCollisionError(file_hash, record.id)
        return record

    def _create_record(self, image: ValidatedImage, filename: str, file_hash: str,
                       content_digest: str, detector: Optional[DetectorInterface]) -> ImageRecord:
        if detector is None:
            raise DetectionFailureError("No detector configured for this upload")

        handle = self.handle_provider.acquire(image.content, image.mimetype, filename)
        try:
            detections = self._run_detector(detector, handle)
            detections_hash = fingerprint_detections(detections, self.config.hash_algorithm)
            uploaded_at = to_utc(self._clock())

            with self._lock:
                record = ImageRecord(
                    id=self._allocate_id(),
                    filename=filename,
                    file_hash=file_hash,
                    file_url=handle,
                    detections_hash=detections_hash,
                    uploaded_at=uploaded_at,
                    detections=tuple(detections),
                    processed=True,
                    mimetype=image.mimetype,
                    size=image.size,
                    content_digest=content_digest,
                )
                self._images[record.id] = record
                self._hash_to_id[file_hash] = record.id
        except Exception:
            self.handle_provider.release(handle)
            raise

        return record

    def _run_detector(self, detector: DetectorInterface, handle: str) -> List[Detection]:
        try:
            result = detector.detect(handle)
            if result is None:
                raise DetectionFailureError("Detector returned no result")
            detections = list(result)
        except DetectionFailureError:
            raise
        except Exception as e:
            raise DetectionFailureError(f"Detector failed: {e}") from e

        seen_ids = set()
        for detection in detections:
            if not isinstance(detection, Detection):
                raise DetectionFailureError(
                    f"Detector returned {type(detection).__name__} instead of Detection"
                )
            if detection.label not in self.vocabulary:
                raise DetectionFailureError(f"Detector returned unknown label {detection.label!r}")
            if detection.id in seen_ids:
                raise DetectionFailureError(f"Detector returned duplicate detection id {detection.id}")
            seen_ids.add(detection.id)
        return detections

    def _allocate_id(self) -> str:
        """Draw an id not used by a live record; caller holds the lock."""
        for _ in range(_MAX_ID_ATTEMPTS):
            image_id = str(self._id_factory())
            if image_id and image_id not in self._images:
                return image_id
        raise RuntimeError(f"Could not allocate a unique record id after {_MAX_ID_ATTEMPTS} attempts")

    # Queries

    def get_images(self, filters: Union[ImageFilters, Mapping[str, Any], None] = None,
                   **params) -> PaginatedResponse[ImageRecord]:
        """List records matching the filters, newest first.

        Filters may be passed as an ImageFilters, as a mapping of query
        parameters (``label``, ``from``/``from_date``, ``to``/``to_date``,
        ``limit``, ``offset``) or as the same parameters by keyword.
        """
        if filters is not None and params:
            raise TypeError("Pass either filters or keyword filters, not both")
        if filters is None:
            filters = ImageFilters.from_params(params)
        elif isinstance(filters, Mapping):
            filters = ImageFilters.from_params(filters)
        elif not isinstance(filters, ImageFilters):
            raise TypeError(f"Expected ImageFilters or a mapping, got {type(filters).__name__}")

        with self._lock:
            records = list(self._images.values())

        page = query_records(records, filters, self.vocabulary, self.config.default_page_limit)
        logger.debug(f"Listed {len(page.data)} of {page.total} records "
                     f"(limit={page.limit}, offset={page.offset})")
        return page

    def get_image_by_id(self, image_id: str) -> Optional[ImageRecord]:
        with self._lock:
            return self._images.get(image_id)

    def get_image_content(self, image_id: str) -> Optional[bytes]:
        """Bytes behind a record's display handle, or None for unknown ids."""
        record = self.get_image_by_id(image_id)
        if record is None:
            return None
        return self.handle_provider.resolve(record.file_url)

    def get_all_labels(self) -> List[str]:
        return list(self.vocabulary)

    # Deletion

    def delete_image(self, image_id: str) -> bool:
        """Remove a record and its dedup entry, then release its display handle."""
        with self._lock:
            record = self._images.pop(image_id, None)
            if record is None:
                return False
            if self._hash_to_id.get(record.file_hash) == image_id:
                del self._hash_to_id[record.file_hash]

        self._release_handle(record)
        logger.info(f"Deleted record {image_id} ({record.filename!r})")
        return True

    def clear(self) -> int:
        """Remove every record; returns how many were removed."""
        with self._lock:
            records = list(self._images.values())
            self._images.clear()
            self._hash_to_id.clear()

        for record in records:
            self._release_handle(record)
        logger.info(f"Cleared {len(records)} records")
        return len(records)

    def _release_handle(self, record: ImageRecord) -> None:
        try:
            self.handle_provider.release(record.file_url)
        except Exception as e:
            logger.warning(f"Failed to release display handle {record.file_url}: {e}")

    # Statistics

    def get_stats(self) -> StoreStats:
        """Aggregate counts over the current records."""
        with self._lock:
            records = list(self._images.values())

        label_counts: Dict[str, int] = {}
        confidences: Dict[str, List[float]] = {}
        for record in records:
            for detection in record.detections:
                label_counts[detection.label] = label_counts.get(detection.label, 0) + 1
                confidences.setdefault(detection.label, []).append(detection.confidence)

        # Report labels in vocabulary order
        label_counts = {label: label_counts[label] for label in self.vocabulary if label in label_counts}
        total_detections = sum(record.detection_count for record in records)

        label_percentages = {
            label: round(count / total_detections * 100, 1)
            for label, count in label_counts.items()
        }
        average_confidence = {
            label: float(np.mean(confidences[label])) for label in label_counts
        }
        average_detections = (
            float(np.mean([record.detection_count for record in records])) if records else 0.0
        )

        return StoreStats(
            total_images=len(records),
            total_detections=total_detections,
            label_counts=label_counts,
            recent_images=sort_newest_first(records)[:self.config.recent_images_count],
            average_detections_per_image=average_detections,
            label_percentages=label_percentages,
            average_confidence=average_confidence,
            generated_at=utc_now(),
        )

    # Export

    def export_image(self, image_id: str) -> Optional[str]:
        """JSON export document for a record, or None for unknown ids."""
        record = self.get_image_by_id(image_id)
        if record is None:
            return None
        return export_json(record)

    def export_image_to_file(self, image_id: str, directory: Optional[str] = None) -> Optional[str]:
        """Write a record's export document into ``directory`` and return its path."""
        record = self.get_image_by_id(image_id)
        if record is None:
            return None

        directory = directory or DEFAULT_PATHS["exports_dir"]
        ensure_directory_exists(directory)
        export_path = os.path.join(directory, export_filename(record))
        with open(export_path, "w", encoding="utf-8") as f:
            f.write(export_json(record))

        logger.info(f"Exported record {image_id} to {export_path}")
        return export_path
