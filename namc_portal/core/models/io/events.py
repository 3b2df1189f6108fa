"""Event I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    type: str
    status: str
    start_date: datetime
    end_date: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    max_capacity: Optional[int] = None
    current_capacity: int
    location: Optional[str] = None
    is_virtual: bool
    virtual_url: Optional[str] = None
    price: float
    member_price: Optional[float] = None


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    type: str = "NETWORKING"
    status: str = Field(
        default="PUBLISHED",
        pattern="^(DRAFT|PUBLISHED|REGISTRATION_OPEN|REGISTRATION_CLOSED|COMPLETED|CANCELLED)$",
    )
    start_date: datetime
    end_date: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    max_capacity: Optional[int] = Field(default=None, ge=1)
    location: Optional[str] = None
    is_virtual: bool = False
    virtual_url: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
    member_price: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _dates_in_order(self) -> "EventCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class RegistrationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    event_id: str
    user_id: str
    status: str
    registered_at: datetime
