"""Unit tests for detector implementations."""

import os
import sys
import unittest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ppe_image_store.models.detection import BoundingBox, Detection, LabelVocabulary
from ppe_image_store.services.detectors import (
    CallableDetector,
    MockDetector,
    RandomPPEDetector,
    as_detector,
)


class TestMockDetector(unittest.TestCase):
    """Test cases for MockDetector."""

    def setUp(self):
        self.bbox = BoundingBox(x=0.1, y=0.1, width=0.2, height=0.2)
        self.helmet = Detection(label="helmet", confidence=0.9, bbox=self.bbox)
        self.vest = Detection(label="vest", confidence=0.8, bbox=self.bbox)

    def test_script_then_repeat_last(self):
        detector = MockDetector(script=[[self.helmet], [self.vest]])

        self.assertEqual(detector.detect("h1"), [self.helmet])
        self.assertEqual(detector.detect("h2"), [self.vest])
        self.assertEqual(detector.detect("h3"), [self.vest])
        self.assertEqual(detector.calls, ["h1", "h2", "h3"])
        self.assertEqual(detector.call_count, 3)

    def test_default_after_script(self):
        detector = MockDetector(script=[[self.helmet]], default=[])
        detector.detect("h1")
        self.assertEqual(detector.detect("h2"), [])

    def test_empty_detector(self):
        self.assertEqual(MockDetector()("h1"), [])

    def test_scripted_exception(self):
        detector = MockDetector(script=[RuntimeError("offline"), [self.helmet]])
        with self.assertRaises(RuntimeError):
            detector.detect("h1")
        self.assertEqual(detector.detect("h1"), [self.helmet])


class TestRandomPPEDetector(unittest.TestCase):
    """Test cases for RandomPPEDetector."""

    def test_output_shape(self):
        detector = RandomPPEDetector(seed=42)
        vocabulary = LabelVocabulary()

        for _ in range(50):
            detections = detector.detect("blob:x")
            self.assertTrue(1 <= len(detections) <= 4)
            for detection in detections:
                self.assertIn(detection.label, vocabulary)
                self.assertTrue(0.7 <= detection.confidence <= 1.0)
                self.assertTrue(0.1 <= detection.bbox.width < 0.4)
                self.assertTrue(0.1 <= detection.bbox.height < 0.4)

    def test_seed_is_reproducible(self):
        def semantic(detections):
            return [d.semantic_dict() for d in detections]

        first = RandomPPEDetector(seed=3)
        second = RandomPPEDetector(seed=3)
        self.assertEqual(semantic(first.detect("a")), semantic(second.detect("b")))

    def test_custom_labels(self):
        detector = RandomPPEDetector(seed=1, labels=["goggles"])
        self.assertEqual({d.label for d in detector.detect("a")}, {"goggles"})


class TestAsDetector(unittest.TestCase):
    """Test cases for as_detector."""

    def test_detector_returned_unchanged(self):
        detector = MockDetector()
        self.assertIs(as_detector(detector), detector)

    def test_callable_wrapped(self):
        detector = as_detector(lambda handle: iter([]))
        self.assertIsInstance(detector, CallableDetector)
        self.assertEqual(detector.detect("h"), [])

    def test_non_callable_rejected(self):
        with self.assertRaises(TypeError):
            as_detector("not a detector")


if __name__ == '__main__':
    unittest.main()
