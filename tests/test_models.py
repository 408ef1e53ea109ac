"""Unit tests for detection data models."""

import json
import unittest
from datetime import datetime, timezone
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ppe_image_store.models.detection import (
    BoundingBox,
    Detection,
    ImageRecord,
    LabelVocabulary,
    PPELabel,
    export_filename,
    export_json,
)
from ppe_image_store.services.error_handler import InvalidInputError


class TestBoundingBox(unittest.TestCase):
    """Test cases for BoundingBox."""

    def test_valid_box(self):
        """A box inside the image is accepted."""
        bbox = BoundingBox(x=0.1, y=0.2, width=0.3, height=0.4)
        self.assertAlmostEqual(bbox.area(), 0.12)
        center_x, center_y = bbox.center()
        self.assertAlmostEqual(center_x, 0.25)
        self.assertAlmostEqual(center_y, 0.4)

    def test_box_touching_edges(self):
        """Boxes may reach the right and bottom edges exactly."""
        bbox = BoundingBox(x=0.6, y=0.0, width=0.4, height=1.0)
        self.assertEqual(bbox.to_dict(), {"x": 0.6, "y": 0.0, "width": 0.4, "height": 1.0})

    def test_rejects_box_past_edge(self):
        """x + width and y + height must stay within the image."""
        with self.assertRaises(ValueError):
            BoundingBox(x=0.7, y=0.1, width=0.4, height=0.2)
        with self.assertRaises(ValueError):
            BoundingBox(x=0.1, y=0.9, width=0.2, height=0.2)

    def test_rejects_out_of_range_and_empty(self):
        """Coordinates outside [0, 1] and zero-size boxes are rejected."""
        with self.assertRaises(ValueError):
            BoundingBox(x=-0.1, y=0.1, width=0.2, height=0.2)
        with self.assertRaises(ValueError):
            BoundingBox(x=0.1, y=0.1, width=0.0, height=0.2)
        with self.assertRaises(ValueError):
            BoundingBox(x=0.1, y=0.1, width=0.2, height=1.5)

    def test_rejects_non_numbers(self):
        with self.assertRaises(ValueError):
            BoundingBox(x="0.1", y=0.1, width=0.2, height=0.2)
        with self.assertRaises(ValueError):
            BoundingBox(x=True, y=0.1, width=0.2, height=0.2)

    def test_to_absolute(self):
        """Normalized boxes scale to pixel coordinates."""
        bbox = BoundingBox(x=0.25, y=0.5, width=0.5, height=0.25)
        self.assertEqual(bbox.to_absolute(200, 100), {"x": 50, "y": 50, "width": 100, "height": 25})


class TestDetection(unittest.TestCase):
    """Test cases for Detection."""

    def setUp(self):
        self.bbox = BoundingBox(x=0.1, y=0.1, width=0.2, height=0.2)

    def test_enum_label_is_stored_as_string(self):
        detection = Detection(label=PPELabel.HELMET, confidence=0.9, bbox=self.bbox)
        self.assertEqual(detection.label, "helmet")
        self.assertIs(type(detection.label), str)

    def test_ids_are_generated_and_unique(self):
        first = Detection(label="vest", confidence=0.8, bbox=self.bbox)
        second = Detection(label="vest", confidence=0.8, bbox=self.bbox)
        self.assertTrue(first.id)
        self.assertNotEqual(first.id, second.id)

    def test_rejects_invalid_confidence(self):
        with self.assertRaises(ValueError):
            Detection(label="vest", confidence=1.2, bbox=self.bbox)
        with self.assertRaises(ValueError):
            Detection(label="vest", confidence=-0.01, bbox=self.bbox)

    def test_semantic_dict_excludes_id(self):
        detection = Detection(label="mask", confidence=0.75, bbox=self.bbox, id="det-1")
        semantic = detection.semantic_dict()
        self.assertNotIn("id", semantic)
        self.assertEqual(list(semantic), ["label", "bbox", "confidence"])

    def test_detection_is_immutable(self):
        detection = Detection(label="mask", confidence=0.75, bbox=self.bbox)
        with self.assertRaises(Exception):
            detection.label = "helmet"

    def test_from_dict(self):
        detection = Detection.from_dict({
            "id": "d1",
            "label": "boots",
            "confidence": 0.7,
            "bbox": {"x": 0.0, "y": 0.5, "width": 0.5, "height": 0.5},
        })
        self.assertEqual(detection.id, "d1")
        self.assertEqual(detection.bbox.y, 0.5)


class TestLabelVocabulary(unittest.TestCase):
    """Test cases for LabelVocabulary."""

    def test_default_labels(self):
        vocabulary = LabelVocabulary()
        self.assertEqual(list(vocabulary), ["helmet", "vest", "gloves", "boots", "mask"])
        self.assertIn(PPELabel.MASK, vocabulary)

    def test_extra_labels_extend_vocabulary(self):
        vocabulary = LabelVocabulary(extra_labels=["goggles", "helmet"])
        self.assertEqual(len(vocabulary), 6)
        self.assertEqual(vocabulary.labels[-1], "goggles")
        self.assertEqual(vocabulary.validate("goggles"), "goggles")

    def test_validate_is_case_sensitive(self):
        vocabulary = LabelVocabulary()
        self.assertEqual(vocabulary.validate(PPELabel.VEST), "vest")
        with self.assertRaises(InvalidInputError):
            vocabulary.validate("Helmet")
        with self.assertRaises(InvalidInputError):
            vocabulary.validate("hat")

    def test_rejects_blank_extra_label(self):
        with self.assertRaises(ValueError):
            LabelVocabulary(extra_labels=["  "])


class TestImageRecord(unittest.TestCase):
    """Test cases for ImageRecord and its export format."""

    def create_test_record(self, filename: str = "site.photo.jpg") -> ImageRecord:
        bbox = BoundingBox(x=0.1, y=0.2, width=0.3, height=0.4)
        return ImageRecord(
            id="rec-1",
            filename=filename,
            file_hash="abc",
            file_url="blob:1",
            detections_hash="def",
            uploaded_at=datetime(2024, 5, 1, 8, 30, 15, 123456, tzinfo=timezone.utc),
            detections=[
                Detection(label="helmet", confidence=0.9, bbox=bbox, id="d1"),
                Detection(label="vest", confidence=0.8, bbox=bbox, id="d2"),
                Detection(label="helmet", confidence=0.7, bbox=bbox, id="d3"),
            ],
        )

    def test_detections_stored_as_tuple(self):
        record = self.create_test_record()
        self.assertIsInstance(record.detections, tuple)
        self.assertEqual(record.detection_count, 3)
        self.assertTrue(record.processed)

    def test_labels_and_has_label(self):
        record = self.create_test_record()
        self.assertEqual(record.labels, ["helmet", "vest"])
        self.assertTrue(record.has_label("vest"))
        self.assertFalse(record.has_label("mask"))

    def test_export_dict_shape_and_order(self):
        export = self.create_test_record().to_export_dict()
        self.assertEqual(list(export), ["id", "filename", "detections_hash", "uploaded_at", "detections"])
        self.assertEqual(export["uploaded_at"], "2024-05-01T08:30:15.123Z")
        self.assertEqual(export["detections"][0], {
            "label": "helmet",
            "confidence": 0.9,
            "bbox": {"x": 0.1, "y": 0.2, "width": 0.3, "height": 0.4},
        })

    def test_export_json(self):
        record = self.create_test_record()
        text = export_json(record)
        self.assertIn('\n  "id": "rec-1"', text)
        self.assertEqual(json.loads(text)["detections_hash"], "def")

    def test_export_filename_uses_text_before_first_dot(self):
        self.assertEqual(export_filename(self.create_test_record()), "site_detections.json")
        self.assertEqual(export_filename(self.create_test_record(filename="noext")), "noext_detections.json")


if __name__ == '__main__':
    unittest.main()
