"""Sync run options and statistics."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SyncOptions(BaseModel):
    dry_run: bool = Field(default=False, description="Compute everything but skip HubSpot writes")
    batch_size: int = Field(default=50, ge=1, le=100, description="Records per batch")
    include_contacts: bool = True
    include_deals: bool = True
    full_sync: bool = Field(default=False, description="Select every record instead of recent/unsynced ones")
    verbose: bool = False
    batch_delay_seconds: float = Field(default=1.0, ge=0, description="Pause between batches")


class ObjectStats(BaseModel):
    total: int = 0
    created: int = 0
    updated: int = 0
    errors: int = 0


class SyncStats(BaseModel):
    contacts: ObjectStats = Field(default_factory=ObjectStats)
    deals: ObjectStats = Field(default_factory=ObjectStats)
    dry_run: bool = False
    full_sync: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    duration_seconds: float = 0.0
    aborted: bool = False
    abort_reason: Optional[str] = None

    @property
    def total_records(self) -> int:
        return self.contacts.total + self.deals.total

    @property
    def total_errors(self) -> int:
        return self.contacts.errors + self.deals.errors

    @property
    def success_rate(self) -> float:
        """Percentage of processed records that synced without error."""
        if self.total_records == 0:
            return 100.0
        return round((self.total_records - self.total_errors) / self.total_records * 100, 1)

    @property
    def has_errors(self) -> bool:
        return self.total_errors > 0 or self.aborted
