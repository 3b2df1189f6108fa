"""
HubSpot CRM integration.

- client: async CRM v3 client with typed errors
- email: transactional email via single-send (logged in development)
- tech_program: TECH Clean California contractors and projects
"""

from .client import HubSpotClient
from .errors import HubSpotApiError, HubSpotNotConfiguredError, HubSpotNotFoundError
from .models import HubSpotObject

__all__ = [
    "HubSpotApiError",
    "HubSpotClient",
    "HubSpotNotConfiguredError",
    "HubSpotNotFoundError",
    "HubSpotObject",
]
