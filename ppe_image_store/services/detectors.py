"""Detector implementations consumed by the image store."""

import random
import threading
from typing import Callable, Iterable, List, Optional, Sequence, Union

from ..models.detection import BoundingBox, Detection, PPELabel
from ..logging_config import get_logger
from .interfaces import DetectorInterface

logger = get_logger("detectors")

DetectorFn = Callable[[str], List[Detection]]


class MockDetector(DetectorInterface):
    """Detector returning scripted results, for tests and demos.

    Each call returns the next scripted detection list. Once the script runs
    out the last entry is repeated, or ``default`` when given. A scripted
    entry that is an exception instance is raised instead of returned.
    """

    def __init__(self,
                 script: Optional[Sequence[Union[Iterable[Detection], Exception]]] = None,
                 default: Optional[Iterable[Detection]] = None):
        self.script = list(script or [])
        self.default = list(default) if default is not None else None
        self.calls: List[str] = []
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def detect(self, image_handle: str) -> List[Detection]:
        with self._lock:
            index = len(self.calls)
            self.calls.append(image_handle)

        if index < len(self.script):
            result = self.script[index]
        elif self.default is not None:
            result = self.default
        elif self.script:
            result = self.script[-1]
        else:
            result = []

        if isinstance(result, Exception):
            raise result
        return list(result)


class RandomPPEDetector(DetectorInterface):
    """Placeholder detector producing plausible random PPE detections.

    Generates 1-4 detections with labels drawn from ``labels``, confidence in
    [0.7, 1.0) and box sides in [0.1, 0.4), positioned inside the image.
    Seed it for reproducible output.
    """

    def __init__(self, seed: Optional[int] = None, labels: Optional[Sequence[str]] = None):
        self.labels = list(labels) if labels else [label.value for label in PPELabel]
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def detect(self, image_handle: str) -> List[Detection]:
        with self._lock:
            rng = self._random
            detections = []
            for _ in range(rng.randint(1, 4)):
                label = rng.choice(self.labels)
                x = rng.random() * 0.6
                y = rng.random() * 0.6
                width = rng.random() * 0.3 + 0.1
                height = rng.random() * 0.3 + 0.1
                detections.append(Detection(
                    label=label,
                    confidence=rng.random() * 0.3 + 0.7,
                    bbox=BoundingBox(
                        x=min(x, 1 - width),
                        y=min(y, 1 - height),
                        width=width,
                        height=height,
                    ),
                ))

        logger.debug(f"Generated {len(detections)} placeholder detections for {image_handle}")
        return detections


class CallableDetector(DetectorInterface):
    """Adapts a plain function ``handle -> detections`` to the detector interface."""

    def __init__(self, func: DetectorFn):
        self.func = func

    def detect(self, image_handle: str) -> List[Detection]:
        return list(self.func(image_handle))


def as_detector(detector: Union[DetectorInterface, DetectorFn]) -> DetectorInterface:
    """Wrap callables so the store can treat every detector alike."""
    if isinstance(detector, DetectorInterface):
        return detector
    if callable(detector):
        return CallableDetector(detector)
    raise TypeError(f"Expected a detector or callable, got {type(detector).__name__}")
