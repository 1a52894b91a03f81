from typing import Optional, List, Dict, Any, Literal
import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

UNKNOWN_USER_NAME = "Unknown User"
UNKNOWN_USER_PHOTO = "https://i.pravatar.cc/150?u=unknown"


class TimeSlot(str, Enum):
    MORNING = "Morning"
    EVENING = "Evening"
    FULL_DAY = "FullDay"

    @classmethod
    def parse(cls, value: Any) -> "TimeSlot":
        if isinstance(value, cls):
            return value
        if value == "Full Day":
            # Older records were written with "Full Day"
            return cls.FULL_DAY
        return cls(value)


class BookingStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


def new_booking_id() -> str:
    return uuid4().hex


def new_user_id() -> str:
    return f"user-{uuid4().hex[:12]}"


def default_photo(username: str) -> str:
    return f"https://i.pravatar.cc/150?u={username}"


class Booking(BaseModel):
    """
    A booking as persisted in the event record store.
    Field names are camelCase on the wire (aliases), snake_case in Python.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    text: str
    place: str
    amount: float = Field(ge=0)
    status: BookingStatus = BookingStatus.PENDING
    time_slot: TimeSlot = Field(alias="timeSlot")
    customer_name: str = Field(default="", alias="customerName")
    customer_mobile: str = Field(default="", alias="customerMobile")
    send_sms: bool = Field(default=False, alias="sendSms")
    date: datetime.date
    owner_id: str = Field(alias="ownerId")

    @model_validator(mode="before")
    @classmethod
    def _legacy_keys(cls, data: Any) -> Any:
        # Older records reference the owner as "userId"
        if isinstance(data, dict) and "ownerId" not in data and "owner_id" not in data and "userId" in data:
            data = {**data, "ownerId": data["userId"]}
        return data

    @field_validator("time_slot", mode="before")
    @classmethod
    def _parse_slot(cls, value: Any) -> TimeSlot:
        return TimeSlot.parse(value)

    @field_validator("text", "place")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("customer_name", "customer_mobile", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return value or ""

    @field_validator("owner_id")
    @classmethod
    def _owner_required(cls, value: str) -> str:
        if not value:
            raise ValueError("owner is required")
        return value

    def to_record(self) -> Dict[str, Any]:
        """Serialises to the persisted camelCase shape (date as YYYY-MM-DD)."""
        return self.model_dump(mode="json", by_alias=True)


class BookingView(Booking):
    """Booking rehydrated with the owner's display details."""
    owner_name: str = Field(default=UNKNOWN_USER_NAME, alias="ownerName")
    owner_photo: str = Field(default=UNKNOWN_USER_PHOTO, alias="ownerPhoto")

    @classmethod
    def from_booking(cls, booking: Booking, owner: Optional["User"]) -> "BookingView":
        data = booking.model_dump(by_alias=True)
        if owner:
            data["ownerName"] = owner.name
            data["ownerPhoto"] = owner.photo
        return cls.model_validate(data)


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_user_id)
    username: str
    password_hash: str = Field(default="", alias="passwordHash")
    role: UserRole = UserRole.USER
    name: str
    phone: str = ""
    photo: str = ""

    @model_validator(mode="after")
    def _default_photo(self) -> "User":
        if not self.photo:
            self.photo = default_photo(self.username)
        return self

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Reminder(BaseModel):
    type: Literal["Today", "Tomorrow"]
    booking: BookingView

    @property
    def notification_key(self) -> str:
        b = self.booking
        return f"{b.date.isoformat()}-{b.time_slot.value}-{b.text}"


class BackupFile(BaseModel):
    version: int = 1
    timestamp: datetime.datetime
    users: List[Dict[str, Any]] = Field(default_factory=list)
    events: List[Dict[str, Any]] = Field(default_factory=list)
