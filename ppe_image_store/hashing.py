"""Content fingerprints for deduplication and detection identity.

Fingerprints are deterministic across processes but are not a security
guarantee. The ``rolling`` algorithm is a 32-bit multiply-shift checksum kept
for compatibility with fingerprints the browser client computes over a
file's data URL; it collides easily, so stores verify a SHA-256 digest
before trusting a match.
"""

import base64
import hashlib
import json
from typing import Any, Iterable, List, Optional

from .models.detection import Detection

HASH_ALGORITHMS = ("sha256", "rolling")


def rolling_hash(text: str) -> str:
    """31-multiplier checksum over UTF-16 code units, as lowercase hex."""
    value = 0
    encoded = text.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        value = (value * 31 + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return format(abs(value), "x")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def fingerprint_bytes(content: bytes, algorithm: str = "sha256", mimetype: Optional[str] = None) -> str:
    """Fingerprint raw uploaded content.

    The ``rolling`` algorithm runs over the content's data URL
    (``data:<mimetype>;base64,<payload>``), the text a browser
    ``FileReader.readAsDataURL`` call produces. Without a mimetype it runs over
    the bare base64 payload. ``sha256`` ignores the mimetype.
    """
    _check_algorithm(algorithm)
    if algorithm == "rolling":
        return rolling_hash(data_url(content, mimetype) if mimetype else _b64(content))
    return sha256_hex(bytes(content))


def data_url(content: bytes, mimetype: str) -> str:
    return f"data:{mimetype};base64,{_b64(content)}"


def canonicalize_detections(detections: Iterable[Detection]) -> str:
    """Compact JSON of the ordered detections' label, bbox and confidence.

    Identifiers are left out so identical detection content always
    serializes identically.
    """
    payload: List[Any] = []
    for detection in detections:
        semantic = detection.semantic_dict()
        semantic["bbox"] = {k: _json_number(v) for k, v in semantic["bbox"].items()}
        semantic["confidence"] = _json_number(semantic["confidence"])
        payload.append(semantic)
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def fingerprint_detections(detections: Iterable[Detection], algorithm: str = "sha256") -> str:
    """Fingerprint the semantic content of a detection list."""
    _check_algorithm(algorithm)
    text = canonicalize_detections(detections)
    if algorithm == "rolling":
        return rolling_hash(text)
    return sha256_hex(text.encode("utf-8"))


def _json_number(value: float) -> Any:
    # 1.0 serializes as 1, like JSON.stringify
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _b64(content: bytes) -> str:
    return base64.b64encode(bytes(content)).decode("ascii")


def _check_algorithm(algorithm: str) -> None:
    if algorithm not in HASH_ALGORITHMS:
        raise ValueError(f"Unknown hash algorithm {algorithm!r}; expected one of {HASH_ALGORITHMS}")
