"""NAMC NorCal member portal service."""

__version__ = "0.1.0"
