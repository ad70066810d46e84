#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
Title Catalog - Consolidated Exception Classes

All exception classes used by the catalog live here so callers can catch
broadly (BaseError) or specifically depending on context.
"""

from datetime import datetime
from typing import Dict, Any, Optional


class BaseError(Exception):
    """Base class for all project-specific errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code or "ERROR"
        self.details = details or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Converts the exception to a dictionary for structured logging."""
        return {
            'error_code': self.error_code,
            'message': str(self),
            'details': self.details,
            'timestamp': self.timestamp.isoformat()
        }


# =====================================================================================================
# Configuration-related errors
# =====================================================================================================

class ConfigurationError(BaseError):
    """Base class for configuration errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 file_path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        config_details = details or {}
        if file_path:
            config_details['file_path'] = file_path
        super().__init__(message, error_code or "CONFIG_ERROR", config_details)


class ValidationError(ConfigurationError):
    """Raised when settings validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        validation_details = details or {}
        if field_name:
            validation_details['field_name'] = field_name
        super().__init__(message, "VALIDATION_ERROR", None, validation_details)


# =====================================================================================================
# Scan and entry errors
# =====================================================================================================

class ScanFailure(BaseError):
    """Raised when an entry source cannot complete a scan.

    This is the only error that reaches the catalog state as ``Error``.
    """

    def __init__(self, message: str, location: Optional[str] = None,
                 source_name: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        scan_details = details or {}
        if location:
            scan_details['location'] = str(location)
        if source_name:
            scan_details['source_name'] = source_name
        super().__init__(message, "SCAN_FAILURE", scan_details)


class EntryParseError(BaseError):
    """A single entry could not be parsed. Never fatal to the whole scan."""

    def __init__(self, message: str, location: Optional[str] = None,
                 row_index: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        entry_details = details or {}
        if location:
            entry_details['location'] = str(location)
        if row_index is not None:
            entry_details['row_index'] = row_index
        super().__init__(message, "ENTRY_PARSE_ERROR", entry_details)


class CacheError(BaseError):
    """Raised when the entry cache cannot be read or written."""

    def __init__(self, message: str, file_path: Optional[str] = None,
                 operation: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        cache_details = details or {}
        if file_path:
            cache_details['file_path'] = str(file_path)
        if operation:
            cache_details['operation'] = operation
        super().__init__(message, "CACHE_ERROR", cache_details)
