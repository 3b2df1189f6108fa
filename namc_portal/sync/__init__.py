"""
Batch synchronization of portal data into HubSpot.

Members become contacts; projects and service requests become deals. Runs are
started from the ``namc-hubspot-sync`` CLI or the admin sync endpoint.
"""

from .hubspot_sync import HubSpotDataSyncer
from .models import SyncOptions, SyncStats

__all__ = ["HubSpotDataSyncer", "SyncOptions", "SyncStats"]
