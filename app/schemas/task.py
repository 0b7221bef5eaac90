from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class TaskBase(BaseModel):
    title: str
    location_query: str | None = None
    address: str | None = None
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)
    duration_minutes: float = Field(default=30, gt=0)
    fixed_time: bool = False
    must_arrive_by: datetime | None = None

    @model_validator(mode="after")
    def _check_coordinates(self) -> "TaskBase":
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be provided together")
        if self.lat is None and not (self.location_query or self.address):
            raise ValueError("a task needs coordinates, a location_query or an address")
        return self


class TaskCreate(TaskBase):
    pass


class TaskRead(TaskBase):
    id: str
    created_at: datetime

    class Config:
        from_attributes = True


class TaskCollection(BaseModel):
    items: list[TaskRead]


class TaskReplace(BaseModel):
    items: list[TaskCreate]
