"""
Core Exceptions
================

Custom exceptions for the SLA engine.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationException(ApplicationException):
    """Exception for invalid snapshot data rejected at the boundary."""


class ConfigurationException(ApplicationException):
    """
    Exception for configuration errors.

    Raised at startup when the business calendar or the allotment table
    cannot be used. Never raised per request.
    """
