"""
Error Handling Utilities
This module provides the engine's exception hierarchy and the error history used
for failures that are logged and absorbed instead of surfaced to the caller.
"""

import logging
import time
import traceback
from typing import Dict, List, Optional, Any, Callable, Tuple
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""
    VALIDATION = "validation"
    GEOMETRY = "geometry"
    DETECTION = "detection"
    IMAGE_DATA = "image_data"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class SpriteExtractionError(Exception):
    """Base exception for the extraction engine."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN,
                 severity: ErrorSeverity = ErrorSeverity.ERROR,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or {}
        self.timestamp = time.time()
        self.error_code = f"SPRITE-{category.value.upper()[:4]}-{int(self.timestamp * 1000) % 100000}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to structured dictionary for logging/reporting"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp,
            "context": self.context,
        }


class SettingsValidationError(SpriteExtractionError):
    """Raised when a settings patch fails validation"""

    def __init__(self, message: str, settings_name: str = None, errors: List[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.WARNING,
            context={"settings": settings_name, "errors": errors or []}
        )


class InvalidGeometryError(SpriteExtractionError):
    """Raised when a rectangle or grid produces non-positive geometry"""

    def __init__(self, message: str, geometry: Any = None):
        super().__init__(
            message=message,
            category=ErrorCategory.GEOMETRY,
            severity=ErrorSeverity.WARNING,
            context={"geometry": str(geometry)} if geometry is not None else {}
        )


class ImageDecodeError(SpriteExtractionError):
    """Raised when a pixel buffer cannot be interpreted"""

    def __init__(self, message: str, shape: Tuple[int, ...] = None, dtype: str = None):
        super().__init__(
            message=message,
            category=ErrorCategory.IMAGE_DATA,
            severity=ErrorSeverity.ERROR,
            context={"shape": shape, "dtype": dtype}
        )


class DetectionUnavailableError(SpriteExtractionError):
    """Raised when the detection engine has not been initialized"""

    def __init__(self, message: str = "Detection engine is not initialized"):
        super().__init__(
            message=message,
            category=ErrorCategory.DETECTION,
            severity=ErrorSeverity.INFO,
        )


@dataclass
class ErrorContext:
    """Context information for an error."""
    component: str
    operation: str
    additional_data: Optional[Dict[str, Any]] = None


@dataclass
class ErrorRecord:
    """Record of an error occurrence."""
    error_id: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    original_exception: Optional[Exception]
    context: ErrorContext
    timestamp: datetime
    stack_trace: Optional[str] = None
    suggested_actions: List[str] = field(default_factory=list)


class ErrorHandlingSystem:
    """
    Centralized error recorder for operations that degrade instead of raising.

    Detection and cropping failures are absorbed by their callers; this system
    keeps them visible through logging, a bounded history and callbacks.
    """

    def __init__(self, max_history_size: int = 100):
        """
        Initialize the error handling system.

        Args:
            max_history_size: Maximum number of records kept in history
        """
        self.error_history: List[ErrorRecord] = []
        self.max_history_size = max_history_size
        self.error_statistics: Dict[str, Any] = self._empty_statistics()
        self.notification_callbacks: List[Callable[[ErrorRecord], None]] = []

        self.suggestions: Dict[ErrorCategory, List[str]] = {
            ErrorCategory.VALIDATION: ['Check the settings values', 'Reset settings to defaults'],
            ErrorCategory.GEOMETRY: ['Check grid offsets, gap and padding', 'Use a smaller padding'],
            ErrorCategory.DETECTION: ['Wait for the detection engine to initialize', 'Lower the threshold'],
            ErrorCategory.IMAGE_DATA: ['Reload the image', 'Convert the image to RGB or RGBA'],
        }

    @staticmethod
    def _empty_statistics() -> Dict[str, Any]:
        return {
            'total_errors': 0,
            'by_category': {},
            'by_severity': {},
            'by_component': {},
        }

    def handle_error(self, exception: Exception, component: str = "unknown",
                     operation: str = "unknown",
                     additional_data: Optional[Dict[str, Any]] = None) -> ErrorRecord:
        """
        Record, classify and log an absorbed error.

        Args:
            exception: The exception that occurred
            component: Component where error occurred
            operation: Operation being performed
            additional_data: Additional context data

        Returns:
            ErrorRecord with all error information
        """
        category, severity = self._classify_error(exception)
        error_record = ErrorRecord(
            error_id=f"ERR_{int(datetime.now().timestamp())}_{self.error_statistics['total_errors']}",
            category=category,
            severity=severity,
            message=str(exception),
            original_exception=exception,
            context=ErrorContext(component, operation, additional_data),
            timestamp=datetime.now(),
            stack_trace=''.join(traceback.format_exception(type(exception), exception, exception.__traceback__)),
            suggested_actions=list(self.suggestions.get(category, ['Try again'])),
        )

        self._store_error(error_record)
        self._log_error(error_record)
        self._send_notifications(error_record)
        return error_record

    def _classify_error(self, exception: Exception) -> Tuple[ErrorCategory, ErrorSeverity]:
        """Classify error by type."""
        if isinstance(exception, SpriteExtractionError):
            return exception.category, exception.severity
        if isinstance(exception, (ValueError, TypeError)):
            return ErrorCategory.IMAGE_DATA, ErrorSeverity.ERROR
        if isinstance(exception, KeyError):
            return ErrorCategory.CONFIGURATION, ErrorSeverity.ERROR
        return ErrorCategory.UNKNOWN, ErrorSeverity.ERROR

    def _store_error(self, error_record: ErrorRecord):
        """Store error record in history."""
        self.error_history.append(error_record)
        if len(self.error_history) > self.max_history_size:
            self.error_history.pop(0)

        stats = self.error_statistics
        stats['total_errors'] += 1
        for key, value in (('by_category', error_record.category.value),
                           ('by_severity', error_record.severity.value),
                           ('by_component', error_record.context.component)):
            stats[key][value] = stats[key].get(value, 0) + 1

    def _log_error(self, error_record: ErrorRecord):
        """Log error with appropriate level."""
        log_message = (f"{error_record.error_id} [{error_record.category.value}] {error_record.message}"
                       f" (Component: {error_record.context.component}, Operation: {error_record.context.operation})")

        if error_record.severity == ErrorSeverity.CRITICAL:
            logger.critical(log_message)
        elif error_record.severity == ErrorSeverity.ERROR:
            logger.error(log_message)
            logger.debug(f"Stack trace for {error_record.error_id}:\n{error_record.stack_trace}")
        elif error_record.severity == ErrorSeverity.WARNING:
            logger.warning(log_message)
        else:
            logger.info(log_message)

    def _send_notifications(self, error_record: ErrorRecord):
        """Send error notifications to registered callbacks."""
        for callback in self.notification_callbacks:
            try:
                callback(error_record)
            except Exception as e:
                logger.error(f"Error in notification callback: {e}")

    def add_notification_callback(self, callback: Callable[[ErrorRecord], None]):
        """Add a callback for error notifications."""
        self.notification_callbacks.append(callback)

    def get_error_history(self, limit: Optional[int] = None,
                          category: Optional[ErrorCategory] = None) -> List[ErrorRecord]:
        """
        Get error history with optional filtering.

        Args:
            limit: Maximum number of errors to return
            category: Filter by error category

        Returns:
            Filtered list of error records
        """
        errors = self.error_history.copy()
        if category:
            errors = [e for e in errors if e.category == category]
        if limit:
            errors = errors[-limit:]
        return errors

    def get_error_statistics(self) -> Dict[str, Any]:
        """Get error statistics."""
        return dict(self.error_statistics)

    def clear_error_history(self):
        """Clear error history and statistics."""
        self.error_history = []
        self.error_statistics = self._empty_statistics()
        logger.info("Error history cleared")
