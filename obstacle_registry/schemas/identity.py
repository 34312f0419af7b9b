from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrganizationIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Organization name is required.")
        return value


class OrganizationSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class MemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str | None


class OrganizationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    created_at: datetime
    users: list[MemberOut] = []


class RoleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None


class RoleIn(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: str | None = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str | None
    is_active: bool
    organization: OrganizationSummaryOut | None
    roles: list[RoleOut]


class OrganizationAssignment(BaseModel):
    organization_id: int


class RoleAssignment(BaseModel):
    role_name: str = Field(min_length=1)
