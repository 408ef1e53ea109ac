"""Error types and error tracking for the image store."""

import functools
import threading
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from ..logging_config import get_logger

logger = get_logger("error_handler")


class ImageStoreError(Exception):
    """Base class for image store failures."""


class InvalidInputError(ImageStoreError, ValueError):
    """Uploaded content or query parameters are unusable."""


class DetectionFailureError(ImageStoreError):
    """The detector failed or returned unusable detections."""


class HashCollisionError(ImageStoreError):
    """Two different contents produced the same fingerprint."""

    def __init__(self, file_hash: str, existing_id: str):
        super().__init__(
            f"Fingerprint {file_hash} already belongs to record {existing_id} "
            f"with different content"
        )
        self.file_hash = file_hash
        self.existing_id = existing_id


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComponentStatus(Enum):
    """Component status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    FAILED = "failed"
    UNKNOWN = "unknown"


@dataclass
class ErrorRecord:
    """Record of an error occurrence."""
    component_name: str
    error: Exception
    severity: ErrorSeverity
    timestamp: datetime = field(default_factory=datetime.now)
    traceback_str: str = ""


class ErrorHandler:
    """Collects error records and per-component health for a store."""

    def __init__(self, max_records: int = 1000):
        self.max_records = max_records
        self.error_records: List[ErrorRecord] = []
        self.component_error_counts: Dict[str, int] = {}
        self.component_status: Dict[str, ComponentStatus] = {}
        self._lock = threading.Lock()

    def register_component(self, component_name: str) -> None:
        """Register a component for error tracking."""
        with self._lock:
            self.component_error_counts.setdefault(component_name, 0)
            self.component_status.setdefault(component_name, ComponentStatus.HEALTHY)
        logger.debug(f"Component registered: {component_name}")

    def handle_error(self, component_name: str, error: Exception, severity: ErrorSeverity) -> ErrorRecord:
        """Record an error from a component and update its status."""
        error_record = ErrorRecord(
            component_name=component_name,
            error=error,
            severity=severity,
            traceback_str="".join(traceback.format_exception(type(error), error, error.__traceback__))
        )

        with self._lock:
            self.error_records.append(error_record)
            if len(self.error_records) > self.max_records:
                del self.error_records[:len(self.error_records) - self.max_records]

            self.component_error_counts[component_name] = self.component_error_counts.get(component_name, 0) + 1

            if severity == ErrorSeverity.CRITICAL:
                self.component_status[component_name] = ComponentStatus.FAILED
            elif severity == ErrorSeverity.HIGH:
                self.component_status[component_name] = ComponentStatus.DEGRADED
            else:
                self.component_status.setdefault(component_name, ComponentStatus.HEALTHY)

        if severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
            logger.error(f"Error in {component_name}: {error} (Severity: {severity.value})")
        else:
            logger.warning(f"Error in {component_name}: {error} (Severity: {severity.value})")

        return error_record

    def get_error_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        with self._lock:
            return {
                "total_errors": len(self.error_records),
                "component_error_counts": dict(self.component_error_counts),
                "component_status": {k: v.value for k, v in self.component_status.items()},
            }

    def reset_error_counts(self, component_name: Optional[str] = None) -> None:
        """Reset error counts for a component or all components."""
        with self._lock:
            components = [component_name] if component_name else list(self.component_error_counts)
            for component in components:
                if component in self.component_error_counts:
                    self.component_error_counts[component] = 0
                    self.component_status[component] = ComponentStatus.HEALTHY

    def get_component_health(self) -> Dict[str, ComponentStatus]:
        """Get health status of all registered components."""
        with self._lock:
            return dict(self.component_status)

    def get_error_summary(self, hours: int = 24) -> Dict[str, Any]:
        """Get summary of errors in the last N hours."""
        cutoff_time = datetime.now() - timedelta(hours=hours)

        with self._lock:
            recent_errors = [e for e in self.error_records if e.timestamp >= cutoff_time]

        component_counts: Dict[str, int] = {}
        severity_counts = {severity.value: 0 for severity in ErrorSeverity}
        error_type_counts: Dict[str, int] = {}

        for error in recent_errors:
            component_counts[error.component_name] = component_counts.get(error.component_name, 0) + 1
            severity_counts[error.severity.value] += 1
            error_type = type(error.error).__name__
            error_type_counts[error_type] = error_type_counts.get(error_type, 0) + 1

        return {
            "total_errors": len(recent_errors),
            "component_counts": component_counts,
            "severity_counts": severity_counts,
            "error_type_counts": error_type_counts,
            "time_period_hours": hours
        }


def severity_for(error: Exception) -> ErrorSeverity:
    """Severity an image store failure is recorded with."""
    if isinstance(error, InvalidInputError):
        return ErrorSeverity.LOW
    if isinstance(error, DetectionFailureError):
        return ErrorSeverity.MEDIUM
    if isinstance(error, HashCollisionError):
        return ErrorSeverity.HIGH
    return ErrorSeverity.CRITICAL


def with_error_handling(component_name: str):
    """Record exceptions raised by a method on its owner's error handler, then re-raise.

    The decorated method's instance must expose ``error_handler``.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except Exception as e:
                self.error_handler.handle_error(component_name, e, severity_for(e))
                raise
        return wrapper
    return decorator
