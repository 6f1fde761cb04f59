"""
Custom Error Types for the Heat-Loss Confidence Engine

Provides categorized exceptions to distinguish between critical errors
that should stop an assessment and non-critical errors (data quality
problems) that are logged while the assessment still completes.
"""

import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class HeatLossEngineError(Exception):
    """Base exception for all heat-loss engine errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class CriticalError(HeatLossEngineError):
    """
    Critical errors that should stop processing.

    Examples:
    - Survey file not found or not valid JSON
    - Survey document fails schema validation
    - Invalid engine configuration
    """
    pass


class NonCriticalError(HeatLossEngineError):
    """
    Non-critical errors that can be logged but shouldn't stop processing.
    """
    pass


class DataQualityError(NonCriticalError):
    """
    Data quality issues that should be logged but not stop processing.

    Examples:
    - Physics result referencing a room that was never surveyed
    - Surfaces with unrecognised classification
    """
    pass


class ConfigurationError(CriticalError):
    """
    Configuration errors that prevent proper operation.

    Examples:
    - Non-numeric flow temperature in HEATLOSS_FLOW_TEMPS
    - Default flow temperature not among the tracked setpoints
    """
    pass


class ValidationError(CriticalError):
    """
    Input validation errors.

    Examples:
    - Room without a room_id
    - Negative surface area
    """
    pass


def categorize_exception(e: Exception) -> HeatLossEngineError:
    """
    Categorize a generic exception into appropriate error type.

    Args:
        e: Exception to categorize

    Returns:
        Categorized HeatLossEngineError
    """
    if isinstance(e, HeatLossEngineError):
        return e

    error_message = str(e)
    error_type = type(e).__name__

    # pydantic.ValidationError and json.JSONDecodeError
    if error_type in ['ValidationError', 'JSONDecodeError']:
        return ValidationError(f"Invalid survey input: {error_message}", {'original_type': error_type})

    # File-related errors
    if error_type in ['FileNotFoundError', 'PermissionError', 'IsADirectoryError']:
        return CriticalError(f"File access error: {error_message}")

    # Missing room references and similar lookups
    if error_type == 'KeyError':
        return DataQualityError(f"Missing reference: {error_message}", {'original_type': error_type})

    # Default to non-critical for unknown errors
    return NonCriticalError(f"Unexpected error: {error_message}", {'original_type': error_type})


def log_error_with_context(error: HeatLossEngineError, context: Dict[str, Any]):
    """
    Log error with additional context information.

    Args:
        error: Error to log
        context: Additional context (room_id, stage, etc.)
    """
    log_data = {
        'error_type': type(error).__name__,
        'error_message': error.message,
        'details': error.details,
        'context': context
    }

    if isinstance(error, CriticalError):
        logger.error(f"CRITICAL ERROR: {error.message}", extra=log_data)
    else:
        logger.warning(f"Non-critical error: {error.message}", extra=log_data)
