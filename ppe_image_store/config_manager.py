"""Configuration management with JSON file persistence."""

import json
import os
from dataclasses import asdict, fields
from typing import Optional, Dict, Any, Callable, List

from .config.defaults import DEFAULT_PATHS, HANDLE_PROVIDERS, LOG_LEVELS, STORE_CONSTANTS
from .hashing import HASH_ALGORITHMS
from .logging_config import get_logger
from .models.config import StoreConfig

logger = get_logger("config_manager")

_TUPLE_FIELDS = ("extra_labels", "allowed_image_formats")


class ConfigManager:
    """Manages store configuration with file persistence and change callbacks."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or DEFAULT_PATHS["config_file"]
        self._config: Optional[StoreConfig] = None
        self._config_change_callbacks: List[Callable[[StoreConfig], None]] = []

        self.load_config()

    def load_config(self) -> StoreConfig:
        """Load configuration from file or create default."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    config_dict = json.load(f)
                self._config = self._from_dict(config_dict)
            except (json.JSONDecodeError, TypeError, AttributeError) as e:
                logger.warning(f"Error loading config {self.config_path}: {e}. Using defaults.")
                self._config = StoreConfig()
        else:
            self._config = StoreConfig()
            self.save_config()

        return self._config

    def save_config(self) -> None:
        """Save current configuration to file."""
        if self._config is None:
            return

        config_dict = asdict(self._config)
        for name in _TUPLE_FIELDS:
            config_dict[name] = list(config_dict[name])

        directory = os.path.dirname(self.config_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.config_path, 'w') as f:
            json.dump(config_dict, f, indent=2)

    def get_config(self) -> StoreConfig:
        """Get current configuration."""
        if self._config is None:
            return self.load_config()
        return self._config

    def update_config(self, **kwargs) -> None:
        """Update configuration with new values."""
        if self._config is None:
            self.load_config()

        for key, value in kwargs.items():
            if hasattr(self._config, key):
                if key in _TUPLE_FIELDS:
                    value = tuple(value)
                setattr(self._config, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: {key}")

        self.save_config()

        for callback in self._config_change_callbacks:
            try:
                callback(self._config)
            except Exception as e:
                logger.error(f"Error in config change callback: {e}")

    def validate_config(self) -> bool:
        """Validate current configuration."""
        if self._config is None:
            return False
        config = self._config

        # Query settings
        if not 1 <= config.default_page_limit <= STORE_CONSTANTS["MAX_PAGE_LIMIT"]:
            return False
        if config.recent_images_count < 0:
            return False

        if config.hash_algorithm not in HASH_ALGORITHMS:
            return False

        if not all(isinstance(label, str) and label.strip() for label in config.extra_labels):
            return False

        # Upload settings
        if not config.allowed_image_formats:
            return False
        if not 0 < config.max_upload_size_mb <= STORE_CONSTANTS["MAX_UPLOAD_SIZE_MB"]:
            return False

        if config.handle_provider not in HANDLE_PROVIDERS:
            return False
        if config.handle_provider == "directory" and not config.images_dir:
            return False

        if config.log_level.upper() not in LOG_LEVELS:
            return False

        return True

    def register_change_callback(self, callback: Callable[[StoreConfig], None]) -> None:
        """Register a callback to be called when config changes."""
        if callback not in self._config_change_callbacks:
            self._config_change_callbacks.append(callback)

    def unregister_change_callback(self, callback: Callable[[StoreConfig], None]) -> None:
        """Unregister a config change callback."""
        if callback in self._config_change_callbacks:
            self._config_change_callbacks.remove(callback)

    def _from_dict(self, config_dict: Dict[str, Any]) -> StoreConfig:
        known = {f.name for f in fields(StoreConfig)}
        unknown = set(config_dict) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

        values = {k: v for k, v in config_dict.items() if k in known}
        for name in _TUPLE_FIELDS:
            if name in values:
                values[name] = tuple(values[name])
        return StoreConfig(**values)
