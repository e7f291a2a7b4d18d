"""
Core Module
============

Shared core utilities and abstractions used across the engine.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from slaengine.core.exceptions import (
    ApplicationException,
    ValidationException,
    ConfigurationException,
)

__all__ = [
    "ApplicationException",
    "ValidationException",
    "ConfigurationException",
]
