"""
Exception handlers for the NAMC portal server.

This package turns typed application errors, request validation failures,
database constraint violations and unhandled exceptions into the standard
JSON error envelope, and provides a setup function to register them.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
