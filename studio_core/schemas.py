"""Pydantic schemas for validation and serialization.

Request schemas accept camelCase keys (the admin dashboard's wire format) as
well as snake_case field names. Response schemas always emit camelCase.
"""
from datetime import date, datetime, timezone
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from pydantic.alias_generators import to_camel
from studio_core.enums import (
    UserRole, AppointmentStatus, AppointmentType, PaymentMethod, PaymentStatus,
    MediaType, FormType, FormStatus, AnalyticsPeriod
)
from studio_core.validation import (
    ValidationError, validate_email, validate_phone, sanitize_html, sanitize_string, sanitize_tags
)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MAX_TAGS = 10

REQUEST_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True,
                            str_strip_whitespace=True)
RESPONSE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True,
                             from_attributes=True)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def dump(schema_cls, obj, **extra) -> Dict[str, Any]:
    """Serialize ``obj`` through a response schema, merging any extra camelCase keys."""
    payload = schema_cls.model_validate(obj).model_dump(mode='json', by_alias=True)
    payload.update(extra)
    return payload


def _clean_email(v):
    if v is None or v == "":
        return None
    return validate_email(v)


def _clean_phone(v):
    if v is None or v == "":
        return None
    return validate_phone(v)


def _clean_text(v):
    if v:
        return sanitize_html(sanitize_string(v))
    return v


def _check_media_url(v):
    if v.startswith('//'):
        raise ValidationError("Protocol-relative media URLs are not allowed")
    if not (v.startswith('https://') or v.startswith('http://') or v.startswith('/')):
        raise ValidationError("Media URL must be an absolute http(s) URL or a site path")
    return v


def _check_birth_date(v):
    if v is None:
        return v
    today = date.today()
    age = today.year - v.year - ((today.month, today.day) < (v.month, v.day))
    if v > today:
        raise ValidationError("Date of birth cannot be in the future")
    if age < 18:
        raise ValidationError("Customer must be at least 18 years old")
    if age > 120:
        raise ValidationError("Date of birth is not plausible")
    return v


class PaginationQuery(BaseModel):
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    offset: int = Field(default=0, ge=0)

    model_config = REQUEST_CONFIG


# Auth Schemas
class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=200)

    @field_validator('email')
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    model_config = REQUEST_CONFIG


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole
    email_verified: bool

    model_config = RESPONSE_CONFIG


# Customer Schemas
class CustomerCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(default="", max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    date_of_birth: Optional[date] = None
    address: Optional[str] = Field(None, max_length=500)
    emergency_name: Optional[str] = Field(None, max_length=200)
    emergency_phone: Optional[str] = Field(None, max_length=32)
    emergency_relationship: Optional[str] = Field(None, max_length=100)
    allergies: Optional[str] = Field(None, max_length=1000)
    medical_conditions: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=2000)
    preferred_artist_id: Optional[str] = Field(None, max_length=36)

    @field_validator('first_name', 'last_name')
    @classmethod
    def sanitize_names(cls, v):
        return sanitize_string(v)

    @field_validator('email')
    @classmethod
    def validate_email_field(cls, v):
        return _clean_email(v)

    @field_validator('phone', 'emergency_phone')
    @classmethod
    def validate_phone_fields(cls, v):
        return _clean_phone(v)

    @field_validator('date_of_birth')
    @classmethod
    def validate_birth_date(cls, v):
        return _check_birth_date(v)

    @field_validator('address', 'emergency_name', 'emergency_relationship', 'allergies', 'medical_conditions', 'notes')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _clean_text(v)

    model_config = REQUEST_CONFIG


class CustomerUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    date_of_birth: Optional[date] = None
    address: Optional[str] = Field(None, max_length=500)
    emergency_name: Optional[str] = Field(None, max_length=200)
    emergency_phone: Optional[str] = Field(None, max_length=32)
    emergency_relationship: Optional[str] = Field(None, max_length=100)
    allergies: Optional[str] = Field(None, max_length=1000)
    medical_conditions: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=2000)
    preferred_artist_id: Optional[str] = Field(None, max_length=36)

    @field_validator('first_name', 'last_name')
    @classmethod
    def sanitize_names(cls, v):
        return sanitize_string(v)

    @field_validator('email')
    @classmethod
    def validate_email_field(cls, v):
        return _clean_email(v)

    @field_validator('phone', 'emergency_phone')
    @classmethod
    def validate_phone_fields(cls, v):
        return _clean_phone(v)

    @field_validator('date_of_birth')
    @classmethod
    def validate_birth_date(cls, v):
        return _check_birth_date(v)

    @field_validator('address', 'emergency_name', 'emergency_relationship', 'allergies', 'medical_conditions', 'notes')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _clean_text(v)

    model_config = REQUEST_CONFIG


class CustomerQuery(PaginationQuery):
    search: Optional[str] = Field(None, max_length=200)
    has_appointments: Optional[bool] = None


class CustomerResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    emergency_name: Optional[str] = None
    emergency_phone: Optional[str] = None
    emergency_relationship: Optional[str] = None
    allergies: Optional[str] = None
    medical_conditions: Optional[str] = None
    notes: Optional[str] = None
    preferred_artist_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = RESPONSE_CONFIG


# Appointment Schemas
class AppointmentCreate(BaseModel):
    customer_id: str = Field(..., min_length=1, max_length=36)
    artist_id: Optional[str] = Field(None, max_length=36)
    scheduled_date: datetime
    duration: int = Field(default=60, ge=15, le=480)
    status: AppointmentStatus = Field(default=AppointmentStatus.SCHEDULED)
    appointment_type: AppointmentType = Field(default=AppointmentType.CONSULTATION, alias='type')
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator('scheduled_date')
    @classmethod
    def normalize_date(cls, v):
        return to_naive_utc(v)

    @field_validator('notes')
    @classmethod
    def sanitize_notes(cls, v):
        return _clean_text(v)

    model_config = REQUEST_CONFIG


class AppointmentUpdate(BaseModel):
    artist_id: Optional[str] = Field(None, max_length=36)
    scheduled_date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=15, le=480)
    status: Optional[AppointmentStatus] = None
    appointment_type: Optional[AppointmentType] = Field(None, alias='type')
    notes: Optional[str] = Field(None, max_length=2000)
    reminder_sent: Optional[bool] = None

    @field_validator('scheduled_date')
    @classmethod
    def normalize_date(cls, v):
        return to_naive_utc(v)

    @field_validator('notes')
    @classmethod
    def sanitize_notes(cls, v):
        return _clean_text(v)

    model_config = REQUEST_CONFIG


class AppointmentQuery(PaginationQuery):
    status: Optional[AppointmentStatus] = None
    customer_id: Optional[str] = None
    artist_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator('start_date', 'end_date')
    @classmethod
    def normalize_dates(cls, v):
        return to_naive_utc(v)

    @model_validator(mode='after')
    def check_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must be before endDate")
        return self


class AppointmentResponse(BaseModel):
    id: str
    customer_id: str
    artist_id: Optional[str] = None
    scheduled_date: datetime
    duration: int
    status: AppointmentStatus
    appointment_type: AppointmentType = Field(serialization_alias='type')
    notes: Optional[str] = None
    reminder_sent: bool
    created_at: datetime
    updated_at: datetime

    model_config = RESPONSE_CONFIG


# Payment Schemas
class PaymentCreate(BaseModel):
    customer_id: str = Field(..., min_length=1, max_length=36)
    appointment_id: Optional[str] = Field(None, max_length=36)
    amount: float = Field(..., gt=0, le=1_000_000)
    method: PaymentMethod = Field(default=PaymentMethod.CARD)
    status: PaymentStatus = Field(default=PaymentStatus.PENDING)
    transaction_id: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator('notes')
    @classmethod
    def sanitize_notes(cls, v):
        return _clean_text(v)

    model_config = REQUEST_CONFIG


class PaymentUpdate(BaseModel):
    amount: Optional[float] = Field(None, gt=0, le=1_000_000)
    method: Optional[PaymentMethod] = None
    status: Optional[PaymentStatus] = None
    transaction_id: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator('notes')
    @classmethod
    def sanitize_notes(cls, v):
        return _clean_text(v)

    model_config = REQUEST_CONFIG


class PaymentQuery(PaginationQuery):
    status: Optional[PaymentStatus] = None
    method: Optional[PaymentMethod] = None
    customer_id: Optional[str] = None


class PaymentResponse(BaseModel):
    id: str
    customer_id: str
    appointment_id: Optional[str] = None
    amount: float
    method: PaymentMethod
    status: PaymentStatus
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = RESPONSE_CONFIG


# Form Submission Schemas
class FormSubmissionCreate(BaseModel):
    form_type: FormType
    customer_id: Optional[str] = Field(None, max_length=36)
    client_name: str = Field(..., min_length=1, max_length=200)
    client_email: Optional[str] = Field(None, max_length=255)
    submission_data: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator('client_name')
    @classmethod
    def sanitize_name(cls, v):
        return sanitize_string(v)

    @field_validator('client_email')
    @classmethod
    def validate_email_field(cls, v):
        return _clean_email(v)

    @field_validator('notes')
    @classmethod
    def sanitize_notes(cls, v):
        return _clean_text(v)

    model_config = REQUEST_CONFIG


class FormSubmissionUpdate(BaseModel):
    status: Optional[FormStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)
    customer_id: Optional[str] = Field(None, max_length=36)

    @field_validator('notes')
    @classmethod
    def sanitize_notes(cls, v):
        return _clean_text(v)

    model_config = REQUEST_CONFIG


class FormSubmissionQuery(PaginationQuery):
    form_type: Optional[FormType] = None
    status: Optional[FormStatus] = None
    customer_id: Optional[str] = None
    search: Optional[str] = Field(None, max_length=200)


class FormSubmissionResponse(BaseModel):
    id: str
    form_type: FormType
    customer_id: Optional[str] = None
    client_name: str
    client_email: Optional[str] = None
    submission_data: Dict[str, Any]
    status: FormStatus
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    notes: Optional[str] = None

    model_config = RESPONSE_CONFIG


# Media Schemas
class MediaCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    style: str = Field(default="Traditional", min_length=1, max_length=100)
    tags: List[str] = Field(default_factory=list)
    media_url: str = Field(..., min_length=1, max_length=2048)
    media_type: Optional[MediaType] = Field(None, alias='type')
    artist_id: Optional[str] = Field(None, max_length=36)
    is_public: bool = True
    estimated_hours: float = Field(default=0.0, ge=0, le=100)
    sync_to_website: bool = False

    @field_validator('title', 'style')
    @classmethod
    def sanitize_short_text(cls, v):
        return sanitize_string(v)

    @field_validator('description')
    @classmethod
    def sanitize_description(cls, v):
        return _clean_text(v)

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, v):
        return sanitize_tags(v, max_tags=MAX_TAGS)

    @field_validator('media_url')
    @classmethod
    def validate_media_url(cls, v):
        return _check_media_url(v)

    model_config = REQUEST_CONFIG


class MediaUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    style: Optional[str] = Field(None, min_length=1, max_length=100)
    tags: Optional[List[str]] = None
    media_url: Optional[str] = Field(None, min_length=1, max_length=2048)
    media_type: Optional[MediaType] = Field(None, alias='type')
    artist_id: Optional[str] = Field(None, max_length=36)
    is_public: Optional[bool] = None
    estimated_hours: Optional[float] = Field(None, ge=0, le=100)
    sync_to_website: bool = False

    @field_validator('title', 'style')
    @classmethod
    def sanitize_short_text(cls, v):
        return sanitize_string(v)

    @field_validator('description')
    @classmethod
    def sanitize_description(cls, v):
        return _clean_text(v)

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, v):
        if v is None:
            return v
        return sanitize_tags(v, max_tags=MAX_TAGS)

    @field_validator('media_url')
    @classmethod
    def validate_media_url(cls, v):
        if v is None:
            return v
        return _check_media_url(v)

    model_config = REQUEST_CONFIG


class MediaQuery(PaginationQuery):
    media_type: Optional[MediaType] = Field(None, alias='type')
    is_public: Optional[bool] = None
    artist_id: Optional[str] = None
    search: Optional[str] = Field(None, max_length=200)


class MediaSyncRequest(BaseModel):
    media_id: str = Field(..., min_length=1, max_length=36)
    action: Literal['sync', 'unsync'] = 'sync'

    model_config = REQUEST_CONFIG


class MediaResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    style: str
    tags: List[str]
    media_url: str
    media_type: MediaType = Field(serialization_alias='type')
    artist_id: Optional[str] = None
    is_public: bool
    estimated_hours: float
    popularity: int
    synced_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = RESPONSE_CONFIG


class MediaSyncPayload(BaseModel):
    """Body POSTed to the public website's gallery sync endpoint."""
    id: str
    title: str
    description: Optional[str] = None
    style: str
    tags: List[str]
    media_url: str
    media_type: MediaType = Field(serialization_alias='type')
    artist_name: Optional[str] = None
    is_public: bool
    estimated_hours: float
    source: str
    created_at: datetime
    updated_at: datetime

    model_config = RESPONSE_CONFIG


# Settings Schemas
class StudioInfoSettings(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    address: Optional[str] = Field(None, max_length=500)

    @field_validator('email')
    @classmethod
    def validate_email_field(cls, v):
        return _clean_email(v)

    @field_validator('name', 'address')
    @classmethod
    def sanitize_text_fields(cls, v):
        return sanitize_string(v)

    model_config = REQUEST_CONFIG


class CalComSettings(BaseModel):
    auto_sync: Optional[bool] = None
    email_notifications: Optional[bool] = None
    webhook_url: Optional[str] = Field(None, max_length=2048)

    @field_validator('webhook_url')
    @classmethod
    def validate_webhook(cls, v):
        if v and not v.startswith('https://'):
            raise ValidationError("Webhook URL must use https")
        return v

    model_config = REQUEST_CONFIG


class AppearanceSettings(BaseModel):
    dark_mode: Optional[bool] = None
    compact_sidebar: Optional[bool] = None

    model_config = REQUEST_CONFIG


class NotificationSettings(BaseModel):
    new_bookings: Optional[bool] = None
    payments: Optional[bool] = None
    daily_summary: Optional[bool] = None

    model_config = REQUEST_CONFIG


class SettingsUpdate(BaseModel):
    studio_info: Optional[StudioInfoSettings] = None
    calcom: Optional[CalComSettings] = Field(None, alias='calCom')
    appearance: Optional[AppearanceSettings] = None
    notifications: Optional[NotificationSettings] = None

    def flattened(self) -> Dict[str, Any]:
        """Return the provided values keyed as ``category.name`` in camelCase."""
        nested = self.model_dump(by_alias=True, exclude_none=True)
        return {
            f"{category}.{name}": value
            for category, values in nested.items()
            for name, value in values.items()
        }

    model_config = REQUEST_CONFIG


# Dashboard Schemas
class AnalyticsQuery(BaseModel):
    period: AnalyticsPeriod = AnalyticsPeriod.MONTH
    months: int = Field(default=6, ge=1, le=24)

    model_config = REQUEST_CONFIG


class RecentSessionsQuery(BaseModel):
    limit: int = Field(default=10, ge=1, le=50)

    model_config = REQUEST_CONFIG


class RecentClientsQuery(BaseModel):
    limit: int = Field(default=10, ge=1, le=50)

    model_config = REQUEST_CONFIG


class ReportsQuery(BaseModel):
    months: int = Field(default=12, ge=1, le=24)

    model_config = REQUEST_CONFIG


class ConsolidateArtistRequest(BaseModel):
    artist_name: str = Field(..., min_length=1, max_length=200)
    artist_email: Optional[str] = Field(None, max_length=255)

    @field_validator('artist_name')
    @classmethod
    def sanitize_name(cls, v):
        return sanitize_string(v)

    @field_validator('artist_email')
    @classmethod
    def validate_email_field(cls, v):
        return _clean_email(v)

    model_config = REQUEST_CONFIG


# Response envelope
class ApiResponse(BaseModel):
    """The envelope every API response body is wrapped in.

    Exactly one of ``data`` (success) or ``error`` (failure) is meaningful.
    """
    success: bool
    data: Any = None
    error: Optional[str] = None
    message: Optional[str] = None
    status: int = Field(200, ge=100, le=599)
    timestamp: str
    request_id: Optional[str] = None

    @model_validator(mode='after')
    def check_shape(self):
        if self.success and self.error is not None:
            raise ValueError("A successful response cannot carry an error")
        if self.success and self.status >= 400:
            raise ValueError("A successful response must carry a success status")
        if not self.success:
            if not self.error:
                raise ValueError("A failed response must carry an error message")
            if self.data is not None:
                raise ValueError("A failed response cannot carry data")
            if self.status < 400:
                raise ValueError("A failed response must carry an error status")
        return self

    def to_dict(self) -> Dict[str, Any]:
        payload = self.model_dump(mode='json', by_alias=True)
        return {
            key: value for key, value in payload.items()
            if value is not None or (key == 'data' and self.success)
        }

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
