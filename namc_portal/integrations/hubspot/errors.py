"""Error types specific to the HubSpot API layer.

Purpose:
- Provide typed exceptions thrown by `HubSpotClient`.
- Expose HTTP-oriented context (status code, response body) for diagnosis.

Usage:
- Catch `HubSpotApiError` for general failures and inspect `status_code` or
  `details`.
- Catch `HubSpotNotFoundError` when an object lookup by id returns 404.
- `HubSpotNotConfiguredError` means no API key was provided at all.
"""

from __future__ import annotations

from typing import Any, Optional


class HubSpotApiError(Exception):
    """Base error for HubSpot API failures.

    Args:
        message: Human-readable error description.
        status_code: Optional HTTP status code associated with the failure.
        details: Optional structured payload from the server (e.g., JSON body).
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class HubSpotNotFoundError(HubSpotApiError):
    """Raised when a CRM object cannot be found (HTTP 404).

    Args:
        object_type: CRM object type, e.g. ``contacts``.
        object_id: The identifier that was not found.
    """

    def __init__(self, object_type: str, object_id: str) -> None:
        super().__init__(f"HubSpot {object_type} not found: {object_id}", status_code=404)
        self.object_type = object_type
        self.object_id = object_id


class HubSpotNotConfiguredError(HubSpotApiError):
    def __init__(self) -> None:
        super().__init__("HUBSPOT_API_KEY is not configured")
