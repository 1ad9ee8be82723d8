from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, List, Optional, Union

from typing_extensions import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .utils import coerce_number, coerce_text


class CamelModel(BaseModel):
    """Base for every payload that crosses storage or the wire in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntityModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    OPERATOR = "OPERATOR"


class User(EntityModel):
    name: str = ""
    role: UserRole = UserRole.OPERATOR
    pin: str = ""

    @field_validator("name", "pin", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return coerce_text(value)


class Tractor(EntityModel):
    name: str = ""
    model: str = ""
    current_horimeter: float = 0.0
    expected_consumption: float = 0.0
    last_update_date: Optional[str] = None

    @field_validator("current_horimeter", "expected_consumption", mode="before")
    @classmethod
    def _coerce_numbers(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator("name", "model", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return coerce_text(value)

    @field_validator("last_update_date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        return None if value is None else coerce_text(value)


class ServiceType(EntityModel):
    name: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return coerce_text(value)


class WorkLog(EntityModel):
    operator_id: str = ""
    operator_name: str = ""
    tractor_id: str = ""
    tractor_name: str = ""
    service_id: str = ""
    service_name: str = ""
    service_description: str = ""
    date: str = ""
    start_horimeter: float = 0.0
    end_horimeter: float = 0.0
    start_horimeter_photo: str = ""
    end_horimeter_photo: str = ""
    fuel_liters: float = 0.0
    notes: str = ""
    total_hours: float = 0.0
    created_at: str = ""

    @field_validator(
        "start_horimeter",
        "end_horimeter",
        "fuel_liters",
        "total_hours",
        mode="before",
    )
    @classmethod
    def _coerce_numbers(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator(
        "operator_id",
        "operator_name",
        "tractor_id",
        "tractor_name",
        "service_id",
        "service_name",
        "service_description",
        "date",
        "start_horimeter_photo",
        "end_horimeter_photo",
        "notes",
        "created_at",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return coerce_text(value)


class SyncConfig(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    remote_endpoint_url: str = ""
    auto_sync_enabled: bool = False


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


NumericInput = Optional[Union[float, str]]


class WorkLogDraft(CamelModel):
    """Raw operator input; numeric fields stay as typed until the recorder parses them."""

    tractor_id: str = ""
    service_name: str = ""
    service_description: str = ""
    start_horimeter: NumericInput = None
    end_horimeter: NumericInput = None
    start_photo: Optional[str] = None
    end_photo: Optional[str] = None
    fuel_liters: NumericInput = None
    notes: str = ""


class LoginRequest(CamelModel):
    pin: str


class TractorCreateRequest(CamelModel):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    model: str = ""
    current_horimeter: float = Field(ge=0)
    expected_consumption: float = Field(gt=0)
    last_update_date: Optional[dt.date] = None


class TractorUpdateRequest(CamelModel):
    name: str = Field(min_length=1)
    model: str = ""
    current_horimeter: float = Field(ge=0)
    expected_consumption: float = Field(gt=0)
    last_update_date: Optional[dt.date] = None


class UserCreateRequest(CamelModel):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    role: UserRole = UserRole.OPERATOR
    pin: str = Field(pattern=r"^\d{1,8}$")


class UserUpdateRequest(CamelModel):
    name: str = Field(min_length=1)
    role: UserRole
    pin: str = Field(pattern=r"^\d{1,8}$")


class ServiceTypeRequest(CamelModel):
    name: str = Field(min_length=1)


class ConfigUpdateRequest(CamelModel):
    remote_endpoint_url: str = ""
    auto_sync_enabled: bool = False


ExportFormat = Literal["csv", "xlsx"]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class SessionUser(CamelModel):
    """Public view of the signed-in user; the PIN never leaves the server."""

    id: str
    name: str
    role: UserRole

    @classmethod
    def from_user(cls, user: Optional[User]) -> Optional["SessionUser"]:
        if user is None:
            return None
        return cls(id=user.id, name=user.name, role=user.role)


class SessionResponse(CamelModel):
    authenticated: bool
    user: Optional[SessionUser] = None


class SyncResult(CamelModel):
    success: bool
    message: str


class SyncSnapshot(CamelModel):
    """Partial snapshot exchanged with the remote mirror; absent keys are left alone."""

    logs: Optional[List[WorkLog]] = None
    tractors: Optional[List[Tractor]] = None
    users: Optional[List[User]] = None


class RemotePayload(SyncSnapshot):
    error: Optional[str] = None
