"""Pydantic schemas for event endpoints."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator, model_validator


def _to_naive_utc(value: datetime | None) -> datetime | None:
    # Timestamps are stored as naive UTC
    if value is not None and value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=256)
    description: str | None = None
    location: str | None = Field(default=None, max_length=256)
    starts_at: datetime
    ends_at: datetime | None = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return _to_naive_utc(value)

    @model_validator(mode="after")
    def check_range(self) -> "EventCreate":
        if self.ends_at is not None and self.ends_at < self.starts_at:
            raise ValueError("ends_at must not be before starts_at")
        return self


class EventUpdate(BaseModel):
    """Partial update; only the fields sent are changed."""

    title: str | None = Field(default=None, min_length=1, max_length=256)
    description: str | None = None
    location: str | None = Field(default=None, max_length=256)
    starts_at: datetime | None = None
    ends_at: datetime | None = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return _to_naive_utc(value)


class EventResponse(BaseModel):
    id: int
    owner_id: int
    title: str
    description: str | None
    location: str | None
    starts_at: datetime
    ends_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    items: list[EventResponse]
    total: int
