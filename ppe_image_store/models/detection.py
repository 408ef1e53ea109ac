"""Detection data models."""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config.defaults import STORE_CONSTANTS
from ..utils import format_iso_timestamp

# Absorbs float rounding in x + width / y + height sums
_EDGE_TOLERANCE = 1e-9


class PPELabel(str, Enum):
    """Personal protective equipment categories."""
    HELMET = "helmet"
    VEST = "vest"
    GLOVES = "gloves"
    BOOTS = "boots"
    MASK = "mask"


class LabelVocabulary:
    """Closed, ordered set of labels a store accepts.

    Built once from the PPE labels plus any configured extras and never
    changed afterwards.
    """

    def __init__(self, extra_labels: Iterable[str] = ()):
        labels = [label.value for label in PPELabel]
        for label in extra_labels:
            label = str(label).strip()
            if not label:
                raise ValueError("Extra labels must be non-empty strings")
            if label not in labels:
                labels.append(label)
        self._labels: Tuple[str, ...] = tuple(labels)

    @property
    def labels(self) -> Tuple[str, ...]:
        return self._labels

    def __contains__(self, label: object) -> bool:
        return _label_value(label) in self._labels

    def __iter__(self):
        return iter(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def validate(self, label: Any) -> str:
        """Return the canonical label string or raise InvalidInputError."""
        # Imported here to keep models free of a services import cycle
        from ..services.error_handler import InvalidInputError

        value = _label_value(label)
        if value not in self._labels:
            raise InvalidInputError(
                f"Unknown label {label!r}; expected one of {', '.join(self._labels)}"
            )
        return value


def _label_value(label: object) -> str:
    if isinstance(label, Enum):
        return str(label.value)
    return label if isinstance(label, str) else str(label)


@dataclass(frozen=True)
class BoundingBox:
    """Rectangle normalized to image dimensions, all values in [0, 1]."""
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        for name in ("x", "y", "width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Bounding box {name} must be a number, got {value!r}")
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Bounding box {name} must be within [0, 1], got {value}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Bounding box width and height must be positive")
        if self.x + self.width > 1.0 + _EDGE_TOLERANCE:
            raise ValueError("Bounding box extends past the right edge of the image")
        if self.y + self.height > 1.0 + _EDGE_TOLERANCE:
            raise ValueError("Bounding box extends past the bottom edge of the image")

    def area(self) -> float:
        """Fraction of the image covered by the box."""
        return self.width * self.height

    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def to_absolute(self, image_width: int, image_height: int) -> Dict[str, int]:
        """Scale to pixel coordinates for an image of the given size."""
        return {
            "x": int(round(self.x * image_width)),
            "y": int(round(self.y * image_height)),
            "width": int(round(self.width * image_width)),
            "height": int(round(self.height * image_height)),
        }

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoundingBox":
        return cls(x=data["x"], y=data["y"], width=data["width"], height=data["height"])


@dataclass(frozen=True)
class Detection:
    """A labeled region produced by a detector."""
    label: str
    confidence: float
    bbox: BoundingBox
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        # Store plain strings so PPELabel members and strings compare and hash alike
        object.__setattr__(self, "label", _label_value(self.label))
        if not self.label:
            raise ValueError("Detection label must not be empty")
        if isinstance(self.confidence, bool) or not isinstance(self.confidence, (int, float)):
            raise ValueError(f"Detection confidence must be a number, got {self.confidence!r}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Detection confidence must be within [0, 1], got {self.confidence}")
        if not isinstance(self.bbox, BoundingBox):
            raise ValueError("Detection bbox must be a BoundingBox")

    def semantic_dict(self) -> Dict[str, Any]:
        """Fields that define the detection's content, identifier excluded."""
        return {"label": self.label, "bbox": self.bbox.to_dict(), "confidence": self.confidence}

    def to_export_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "confidence": self.confidence, "bbox": self.bbox.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Detection":
        kwargs = {
            "label": data["label"],
            "confidence": data["confidence"],
            "bbox": BoundingBox.from_dict(data["bbox"]),
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)


@dataclass(frozen=True)
class ImageRecord:
    """Stored result of one distinct uploaded image."""
    id: str
    filename: str
    file_hash: str
    file_url: str
    detections_hash: str
    uploaded_at: datetime
    detections: Tuple[Detection, ...]
    processed: bool = True
    mimetype: str = "application/octet-stream"
    size: int = 0
    content_digest: str = ""

    def __post_init__(self):
        object.__setattr__(self, "detections", tuple(self.detections))

    @property
    def detection_count(self) -> int:
        return len(self.detections)

    @property
    def labels(self) -> List[str]:
        """Distinct labels in the order they first appear."""
        seen: List[str] = []
        for detection in self.detections:
            if detection.label not in seen:
                seen.append(detection.label)
        return seen

    def has_label(self, label: str) -> bool:
        return any(detection.label == label for detection in self.detections)

    def to_export_dict(self) -> Dict[str, Any]:
        """Canonical export document; key order is part of the format."""
        return {
            "id": self.id,
            "filename": self.filename,
            "detections_hash": self.detections_hash,
            "uploaded_at": format_iso_timestamp(self.uploaded_at),
            "detections": [d.to_export_dict() for d in self.detections],
        }


def export_json(record: ImageRecord, indent: Optional[int] = 2) -> str:
    """Render a record's export document as JSON text."""
    return json.dumps(record.to_export_dict(), indent=indent)


def export_filename(record: ImageRecord) -> str:
    """Download name for an exported record, e.g. ``site_detections.json``."""
    stem = record.filename.split(".")[0] or "image"
    return stem + STORE_CONSTANTS["EXPORT_SUFFIX"]
