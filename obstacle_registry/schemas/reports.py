from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

HEIGHT_MIN = 0
HEIGHT_MAX = 200


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ObstacleForm(BaseModel):
    """
    Raw form input. Every field is optional here; which fields are required
    depends on whether the caller saves a draft or submits.
    """

    action: Literal["draft", "submit"] = "submit"
    obstacle_type: str | None = None
    obstacle_height: float | None = None
    obstacle_description: str | None = None
    obstacle_location: str | None = None

    @field_validator("obstacle_type", "obstacle_description", "obstacle_location", mode="before")
    @classmethod
    def blank_strings_to_none(cls, value):
        return _blank_to_none(value)


class ObstacleDraft(BaseModel):
    obstacle_type: str | None = Field(default=None, max_length=100)
    obstacle_height: float | None = Field(default=None, ge=HEIGHT_MIN, le=HEIGHT_MAX)
    obstacle_description: str | None = Field(default=None, max_length=1000)
    obstacle_location: str = Field(min_length=1, max_length=1000)


class ObstacleSubmission(BaseModel):
    obstacle_type: str = Field(min_length=1, max_length=100)
    obstacle_height: float = Field(ge=HEIGHT_MIN, le=HEIGHT_MAX)
    obstacle_description: str = Field(min_length=1, max_length=1000)
    obstacle_location: str = Field(min_length=1, max_length=1000)


class RejectForm(BaseModel):
    rejection_reason: str | None = None


class AssignRegistrarForm(BaseModel):
    registrar_id: str | None = None


class ReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str | None
    obstacle_type: str | None
    obstacle_height: int | None
    obstacle_description: str | None
    obstacle_location: str | None
    status: str
    assigned_registrar_id: str | None
    rejection_reason: str | None
    processed_at: datetime | None
    created_at: datetime


class ReportDetailsOut(BaseModel):
    report: ReportOut
    sender: str


class ReportListItem(BaseModel):
    """Flat row used by every report listing."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    sender: str
    organization_name: str | None = None
    obstacle_type: str | None = None
    status: str
    obstacle_location: str | None = None


class ObstacleOut(BaseModel):
    id: int
    type: str | None
    height: int | None
    location: str | None


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    report_id: int
    title: str
    message: str | None
    is_read: bool
    created_at: datetime
    read_at: datetime | None


class NotificationsOut(BaseModel):
    unread_count: int
    notifications: list[NotificationOut]


class ReviewOut(BaseModel):
    report: ReportOut
    message: str
