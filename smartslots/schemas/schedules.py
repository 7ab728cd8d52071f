# smartslots/schemas/schedules.py

from pydantic import BaseModel, Field, field_validator, model_validator

from ..services.slots.config import time_str_to_minutes


class DayScheduleRead(BaseModel):
    weekday: int
    start_time: str
    end_time: str
    is_closed: bool
    slot_granularity_min: int
    # True when no row is stored and defaults apply
    is_default: bool = False

    model_config = {"from_attributes": True}


class DayScheduleUpdate(BaseModel):
    start_time: str = "09:00"
    end_time: str = "18:00"
    is_closed: bool = False
    slot_granularity_min: int = Field(15, gt=0)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        time_str_to_minutes(v)
        return v

    @model_validator(mode="after")
    def validate_window(self):
        if not self.is_closed and (
            time_str_to_minutes(self.end_time) <= time_str_to_minutes(self.start_time)
        ):
            raise ValueError("end_time must be after start_time")
        return self
