"""Configuration data models."""

from dataclasses import dataclass
from typing import Tuple


@dataclass
class StoreConfig:
    """Image store configuration settings."""
    # Query settings
    default_page_limit: int = 20
    recent_images_count: int = 5

    # Fingerprinting
    hash_algorithm: str = "sha256"  # sha256 or rolling
    verify_collisions: bool = True

    # Labels accepted in addition to the built-in PPE categories
    extra_labels: Tuple[str, ...] = ()

    # Upload validation
    allowed_image_formats: Tuple[str, ...] = ("JPEG", "PNG", "GIF", "BMP", "WEBP", "TIFF")
    max_upload_size_mb: float = 16.0

    # Display handles
    handle_provider: str = "memory"  # memory or directory
    images_dir: str = "data/images"

    # Logging
    log_level: str = "INFO"
    log_dir: str = ""  # empty disables file logging
