# smartslots/schemas/time_blocks.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator, model_validator

from ..services.slots.timezones import ensure_instant


class TimeBlockCreate(BaseModel):
    business_id: str
    starts_at: datetime
    ends_at: datetime
    reason: Optional[str] = None

    # Naive values are taken as UTC
    @field_validator("starts_at", "ends_at")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return ensure_instant(v)

    @model_validator(mode="after")
    def validate_range(self):
        if self.ends_at < self.starts_at:
            raise ValueError("ends_at must not be before starts_at")
        return self

    model_config = {"from_attributes": True}


class TimeBlockRead(BaseModel):
    id: int
    business_id: str
    starts_at: datetime
    ends_at: datetime
    reason: Optional[str] = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return ensure_instant(v)

    model_config = {"from_attributes": True}
