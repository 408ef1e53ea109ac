"""Configuration components for the PPE image record store."""

from .defaults import (
    DEFAULT_CONFIG,
    STORE_CONSTANTS,
    DEFAULT_PATHS,
    HANDLE_PROVIDERS,
    LOG_LEVELS
)

__all__ = [
    'DEFAULT_CONFIG',
    'STORE_CONSTANTS',
    'DEFAULT_PATHS',
    'HANDLE_PROVIDERS',
    'LOG_LEVELS'
]
