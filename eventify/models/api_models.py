import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from eventify.models.db_models import BookingStatus, BookingView, TimeSlot, UserRole, Reminder

# --- Incoming Request Models ---

class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

class LoginRequest(BaseModel):
    username: str
    password: str

class BookingDraft(CamelModel):
    """
    What the booking form submits. Validation of required fields happens in the
    booking service so that the caller gets one readable message.
    """
    text: str = ""
    place: str = ""
    amount: Optional[float] = None
    status: BookingStatus = BookingStatus.PENDING
    time_slot: TimeSlot = Field(alias="timeSlot")
    customer_name: str = Field(default="", alias="customerName")
    customer_mobile: str = Field(default="", alias="customerMobile")
    send_sms: bool = Field(default=False, alias="sendSms")
    date: datetime.date
    owner_id: Optional[str] = Field(default=None, alias="ownerId")

    @field_validator("time_slot", mode="before")
    @classmethod
    def _parse_slot(cls, value):
        return TimeSlot.parse(value)

class SlotCheckRequest(CamelModel):
    date: datetime.date
    time_slot: TimeSlot = Field(alias="timeSlot")
    owner_id: Optional[str] = Field(default=None, alias="ownerId")
    booking_id: Optional[str] = Field(default=None, alias="bookingId")

    @field_validator("time_slot", mode="before")
    @classmethod
    def _parse_slot(cls, value):
        return TimeSlot.parse(value)

class UserCreateRequest(BaseModel):
    username: str
    name: str
    password: Optional[str] = None
    phone: str = ""
    photo: str = ""
    role: UserRole = UserRole.USER

class UserUpdateRequest(BaseModel):
    username: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    photo: Optional[str] = None
    role: Optional[UserRole] = None

class EmailBackupRequest(BaseModel):
    to: Optional[str] = None

# --- Outgoing Response Models ---

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserPublic(BaseModel):
    id: str
    username: str
    role: UserRole
    name: str
    phone: str
    photo: str

class SlotDecisionResponse(CamelModel):
    accepted: bool
    reason: Optional[str] = None

class OwnerDay(CamelModel):
    owner_id: str = Field(alias="ownerId")
    occupied: List[TimeSlot]
    available: List[TimeSlot]
    default_slot: Optional[TimeSlot] = Field(default=None, alias="defaultSlot")

class DayResponse(CamelModel):
    date: datetime.date
    bookings: List[BookingView]
    owners: List[OwnerDay]

class DashboardStats(CamelModel):
    total_orders: int = Field(alias="totalOrders")
    completed_orders: int = Field(alias="completedOrders")
    pending_orders: int = Field(alias="pendingOrders")
    amount_received: float = Field(alias="amountReceived")
    amount_pending: float = Field(alias="amountPending")

class DetailsResponse(BaseModel):
    title: str
    events: List[BookingView]

class PendingPaymentsResponse(CamelModel):
    total_amount: float = Field(alias="totalAmount")
    events: List[BookingView]

class CalendarDay(CamelModel):
    date: datetime.date
    in_month: bool = Field(alias="inMonth")
    is_today: bool = Field(alias="isToday")
    count: int = 0
    slots: List[TimeSlot] = Field(default_factory=list)

class CalendarMonth(BaseModel):
    year: int
    month: int
    title: str
    weeks: List[List[CalendarDay]]

class RemindersResponse(BaseModel):
    reminders: List[Reminder]

class NotifyResponse(BaseModel):
    sent: int
    skipped: int

class SummaryResponse(BaseModel):
    summary: str
    error: Optional[str] = None

class RestoreReport(BaseModel):
    users: int = 0
    events: int = 0
    skipped: int = 0
    batches: int = 0

class BackupStatus(CamelModel):
    due: bool
    last_backup_date: Optional[datetime.date] = Field(default=None, alias="lastBackupDate")

