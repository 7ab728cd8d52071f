"""
Pydantic schemas for availability API.
"""

from datetime import datetime
from pydantic import BaseModel, Field


class AvailabilityRequest(BaseModel):
    """Request for bookable slots over the horizon."""
    business_id: str = Field(alias="businessId", min_length=1)
    # UUID or a "fallback-" / "business-" sentinel (whole business)
    staff_id: str = Field(alias="staffId", min_length=1)
    service_duration_min: int = Field(alias="serviceDurationMin", gt=0)
    buffer_before_min: int = Field(0, alias="bufferBeforeMin", ge=0)
    buffer_after_min: int = Field(0, alias="bufferAfterMin", ge=0)

    model_config = {"populate_by_name": True}


class SlotRead(BaseModel):
    """A single bookable slot."""
    staff_id: str = Field(alias="staffId")
    starts_at: datetime = Field(alias="startsAt")
    ends_at: datetime = Field(alias="endsAt")
    score: float
    recommended: bool

    model_config = {"populate_by_name": True, "from_attributes": True}


class AvailabilityResponse(BaseModel):
    """Flat slot list, day-ascending then start-ascending."""
    business_id: str = Field(alias="businessId")
    time_zone: str = Field(alias="timeZone")
    slots: list[SlotRead]

    model_config = {"populate_by_name": True}


class AvailabilityDay(BaseModel):
    """Slots of one local calendar day."""
    date: str = Field(description="Local calendar date, YYYY-MM-DD")
    slots: list[SlotRead]
    recommended: list[SlotRead]

    model_config = {"populate_by_name": True}


class AvailabilityDaysResponse(BaseModel):
    """Slots grouped by local calendar day (day picker)."""
    business_id: str = Field(alias="businessId")
    time_zone: str = Field(alias="timeZone")
    days: list[AvailabilityDay]

    model_config = {"populate_by_name": True}
