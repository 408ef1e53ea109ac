"""Unit tests for content and detection fingerprints."""

import base64
import unittest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ppe_image_store.hashing import (
    canonicalize_detections,
    data_url,
    fingerprint_bytes,
    fingerprint_detections,
    rolling_hash,
)
from ppe_image_store.models.detection import BoundingBox, Detection


class TestRollingHash(unittest.TestCase):
    """The rolling checksum must match the browser client's values."""

    def test_known_values(self):
        self.assertEqual(rolling_hash(""), "0")
        self.assertEqual(rolling_hash("a"), "61")
        self.assertEqual(rolling_hash("ab"), "c21")
        self.assertEqual(rolling_hash("hello"), "5e918d2")

    def test_wraps_to_signed_32_bit(self):
        """Overflowing to the minimum 32-bit value yields its absolute value."""
        self.assertEqual(rolling_hash("polygenelubricants"), "80000000")

    def test_known_collision(self):
        """The checksum is not collision resistant."""
        self.assertEqual(rolling_hash("Aa"), rolling_hash("BB"))


class TestFingerprintBytes(unittest.TestCase):
    """Test cases for file content fingerprints."""

    def test_sha256_default(self):
        self.assertEqual(
            fingerprint_bytes(b"abc"),
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad",
        )

    def test_deterministic_and_content_sensitive(self):
        self.assertEqual(fingerprint_bytes(b"image-1"), fingerprint_bytes(bytearray(b"image-1")))
        self.assertNotEqual(fingerprint_bytes(b"image-1"), fingerprint_bytes(b"image-2"))

    def test_rolling_runs_over_data_url(self):
        """With a mimetype the checksum covers the browser's data URL text."""
        signature = b"\x89PNG\r\n\x1a\n"
        self.assertEqual(data_url(signature, "image/png"), "data:image/png;base64,iVBORw0KGgo=")
        self.assertEqual(fingerprint_bytes(signature, "rolling", "image/png"), "331f5db1")
        self.assertEqual(fingerprint_bytes(b"\x00", "rolling", "image/png"), "666fd307")

    def test_sha256_ignores_mimetype(self):
        self.assertEqual(fingerprint_bytes(b"abc", mimetype="image/png"), fingerprint_bytes(b"abc"))

    def test_rolling_without_mimetype_runs_over_base64_text(self):
        content = b"\x89PNG\r\n"
        expected = rolling_hash(base64.b64encode(content).decode("ascii"))
        self.assertEqual(fingerprint_bytes(content, algorithm="rolling"), expected)

    def test_unknown_algorithm(self):
        with self.assertRaises(ValueError):
            fingerprint_bytes(b"abc", algorithm="md5")


class TestDetectionsFingerprint(unittest.TestCase):
    """Test cases for detection list fingerprints."""

    def create_detections(self, prefix: str):
        return [
            Detection(label="helmet", confidence=0.9,
                      bbox=BoundingBox(x=0.1, y=0.2, width=0.3, height=0.4), id=f"{prefix}-1"),
            Detection(label="vest", confidence=0.8,
                      bbox=BoundingBox(x=0.5, y=0.5, width=0.2, height=0.2), id=f"{prefix}-2"),
        ]

    def test_canonical_form(self):
        detections = [Detection(label="helmet", confidence=0.9,
                                bbox=BoundingBox(x=0.1, y=0.2, width=0.3, height=0.4))]
        self.assertEqual(
            canonicalize_detections(detections),
            '[{"label":"helmet","bbox":{"x":0.1,"y":0.2,"width":0.3,"height":0.4},"confidence":0.9}]',
        )

    def test_integral_floats_serialize_without_fraction(self):
        detections = [Detection(label="mask", confidence=1.0,
                                bbox=BoundingBox(x=0.0, y=0.0, width=1.0, height=0.5))]
        self.assertEqual(
            canonicalize_detections(detections),
            '[{"label":"mask","bbox":{"x":0,"y":0,"width":1,"height":0.5},"confidence":1}]',
        )

    def test_identifiers_do_not_affect_fingerprint(self):
        """Same label, bbox and confidence with different ids hash the same."""
        for algorithm in ("sha256", "rolling"):
            self.assertEqual(
                fingerprint_detections(self.create_detections("a"), algorithm),
                fingerprint_detections(self.create_detections("b"), algorithm),
            )

    def test_order_and_content_affect_fingerprint(self):
        detections = self.create_detections("a")
        self.assertNotEqual(
            fingerprint_detections(detections),
            fingerprint_detections(list(reversed(detections))),
        )
        changed = [detections[0], Detection(label="vest", confidence=0.81, bbox=detections[1].bbox)]
        self.assertNotEqual(fingerprint_detections(detections), fingerprint_detections(changed))

    def test_empty_list(self):
        self.assertEqual(canonicalize_detections([]), "[]")
        self.assertEqual(fingerprint_detections([], "rolling"), rolling_hash("[]"))


if __name__ == '__main__':
    unittest.main()
