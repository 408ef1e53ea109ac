"""Default configuration values and constants."""

from typing import Dict, Any

# Default store configuration
DEFAULT_CONFIG: Dict[str, Any] = {
    # Query settings
    "default_page_limit": 20,
    "recent_images_count": 5,

    # Fingerprinting
    "hash_algorithm": "sha256",
    "verify_collisions": True,

    # Labels
    "extra_labels": [],

    # Upload validation
    "allowed_image_formats": ["JPEG", "PNG", "GIF", "BMP", "WEBP", "TIFF"],
    "max_upload_size_mb": 16.0,

    # Display handles
    "handle_provider": "memory",
    "images_dir": "data/images",

    # Logging
    "log_level": "INFO",
    "log_dir": ""
}

# Store constants
STORE_CONSTANTS = {
    "MAX_PAGE_LIMIT": 500,
    "MAX_UPLOAD_SIZE_MB": 64.0,
    "EXPORT_SUFFIX": "_detections.json"
}

HANDLE_PROVIDERS = ("memory", "directory")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# File paths and directories
DEFAULT_PATHS = {
    "config_file": "config.json",
    "images_dir": "data/images",
    "exports_dir": "data/exports"
}
