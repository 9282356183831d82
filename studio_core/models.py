import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, Boolean, Text, Date, DateTime, ForeignKey, Index, JSON, Enum, CheckConstraint
from sqlalchemy.orm import relationship, declarative_base
from studio_core.enums import (
    UserRole, AppointmentStatus, AppointmentType, SessionStatus, PaymentMethod,
    PaymentStatus, MediaType, FormType, FormStatus
)

Base = declarative_base()


def now():
    """Return the current time in UTC as a naive datetime.

    Note: SQLite drops timezone info on storage, so every stored datetime is
    naive UTC. Comparisons against stored values must use this helper.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id():
    """Return a new string primary key."""
    return str(uuid.uuid4())


def value_enum(enum_cls):
    """Enum column type that stores the member values rather than their names."""
    return Enum(enum_cls, values_callable=lambda members: [m.value for m in members],
                native_enum=False, validate_strings=True, length=32)


class TimestampMixin:
    """Mixin providing creation and modification timestamps."""

    created_at = Column(DateTime, default=now, nullable=False)
    updated_at = Column(DateTime, default=now, onupdate=now, nullable=False)


class User(Base, TimestampMixin):
    __tablename__ = 'users'
    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(200), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    role = Column(value_enum(UserRole), default=UserRole.USER, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    sessions = relationship('AuthSession', back_populates='user', lazy='select', cascade="all, delete-orphan")


class AuthSession(Base, TimestampMixin):
    """Server-side record of a signed-in user.

    The token is the opaque value carried by the session cookie or the
    Authorization header. Expired rows are deleted when they are looked up.
    """
    __tablename__ = 'auth_sessions'
    id = Column(String(36), primary_key=True, default=new_id)
    token = Column(String(128), unique=True, nullable=False, index=True)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    ip_address = Column(String(64))
    user_agent = Column(String(500))
    user = relationship('User', back_populates='sessions')


class Artist(Base, TimestampMixin):
    __tablename__ = 'artists'
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(32))
    specialties = Column(JSON, default=list, nullable=False)
    hourly_rate = Column(Float, default=0.0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    bio = Column(Text)
    designs = relationship('TattooDesign', back_populates='artist', lazy='select')
    tattoo_sessions = relationship('TattooSession', back_populates='artist', lazy='select')
    appointments = relationship('Appointment', back_populates='artist', lazy='select')


class Customer(Base, TimestampMixin):
    __tablename__ = 'customers'
    id = Column(String(36), primary_key=True, default=new_id)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(32))
    date_of_birth = Column(Date)
    address = Column(Text)
    emergency_name = Column(String(200))
    emergency_phone = Column(String(32))
    emergency_relationship = Column(String(100))
    allergies = Column(Text)
    medical_conditions = Column(Text)
    notes = Column(Text)
    preferred_artist_id = Column(String(36), ForeignKey('artists.id', ondelete='SET NULL'), nullable=True)
    appointments = relationship('Appointment', back_populates='customer', lazy='select', cascade="all, delete-orphan")
    tattoo_sessions = relationship('TattooSession', back_populates='customer', lazy='select', cascade="all, delete-orphan")
    payments = relationship('Payment', back_populates='customer', lazy='select', cascade="all, delete-orphan")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class Appointment(Base, TimestampMixin):
    __tablename__ = 'appointments'
    id = Column(String(36), primary_key=True, default=new_id)
    customer_id = Column(String(36), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False, index=True)
    artist_id = Column(String(36), ForeignKey('artists.id', ondelete='SET NULL'), nullable=True, index=True)
    scheduled_date = Column(DateTime, nullable=False)
    duration = Column(Integer, default=60, nullable=False)
    status = Column(value_enum(AppointmentStatus), default=AppointmentStatus.SCHEDULED, nullable=False)
    appointment_type = Column('type', value_enum(AppointmentType), default=AppointmentType.CONSULTATION, nullable=False)
    notes = Column(Text)
    reminder_sent = Column(Boolean, default=False, nullable=False)
    customer = relationship('Customer', back_populates='appointments')
    artist = relationship('Artist', back_populates='appointments')

    __table_args__ = (
        CheckConstraint('duration > 0', name='chk_appointment_duration_positive'),
        Index('idx_appointment_status_date', 'status', 'scheduled_date'),
    )


class TattooSession(Base, TimestampMixin):
    __tablename__ = 'tattoo_sessions'
    id = Column(String(36), primary_key=True, default=new_id)
    customer_id = Column(String(36), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False, index=True)
    artist_id = Column(String(36), ForeignKey('artists.id', ondelete='SET NULL'), nullable=True, index=True)
    appointment_date = Column(DateTime, nullable=False)
    duration = Column(Integer, default=60, nullable=False)
    status = Column(value_enum(SessionStatus), default=SessionStatus.SCHEDULED, nullable=False)
    design_description = Column(Text)
    placement = Column(String(200))
    size = Column(String(100))
    style = Column(String(100))
    hourly_rate = Column(Float, default=0.0, nullable=False)
    estimated_hours = Column(Float, default=0.0, nullable=False)
    deposit_amount = Column(Float, default=0.0, nullable=False)
    total_cost = Column(Float, default=0.0, nullable=False)
    paid_amount = Column(Float, default=0.0, nullable=False)
    notes = Column(Text)
    aftercare_provided = Column(Boolean, default=False, nullable=False)
    consent_signed = Column(Boolean, default=False, nullable=False)
    customer = relationship('Customer', back_populates='tattoo_sessions')
    artist = relationship('Artist', back_populates='tattoo_sessions')


class TattooDesign(Base, TimestampMixin):
    """A portfolio media record (photo or video) shown in the gallery."""
    __tablename__ = 'tattoo_designs'
    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    style = Column(String(100), default="Traditional", nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    media_url = Column(Text, nullable=False)
    media_type = Column(value_enum(MediaType), default=MediaType.PHOTO, nullable=False)
    artist_id = Column(String(36), ForeignKey('artists.id', ondelete='SET NULL'), nullable=True, index=True)
    is_public = Column(Boolean, default=True, nullable=False)
    estimated_hours = Column(Float, default=0.0, nullable=False)
    popularity = Column(Integer, default=0, nullable=False)
    synced_at = Column(DateTime, nullable=True)
    artist = relationship('Artist', back_populates='designs')


class Payment(Base, TimestampMixin):
    __tablename__ = 'payments'
    id = Column(String(36), primary_key=True, default=new_id)
    customer_id = Column(String(36), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False, index=True)
    appointment_id = Column(String(36), ForeignKey('appointments.id', ondelete='SET NULL'), nullable=True)
    amount = Column(Float, nullable=False)
    method = Column(value_enum(PaymentMethod), default=PaymentMethod.CARD, nullable=False)
    status = Column(value_enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    transaction_id = Column(String(200))
    notes = Column(Text)
    paid_at = Column(DateTime)
    customer = relationship('Customer', back_populates='payments')

    __table_args__ = (
        CheckConstraint('amount > 0', name='chk_payment_amount_positive'),
    )


class FormSubmission(Base, TimestampMixin):
    __tablename__ = 'form_submissions'
    id = Column(String(36), primary_key=True, default=new_id)
    form_type = Column(value_enum(FormType), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey('customers.id', ondelete='SET NULL'), nullable=True)
    client_name = Column(String(200), nullable=False)
    client_email = Column(String(255))
    submission_data = Column(JSON, default=dict, nullable=False)
    status = Column(value_enum(FormStatus), default=FormStatus.NEW, nullable=False, index=True)
    submitted_at = Column(DateTime, default=now, nullable=False)
    reviewed_at = Column(DateTime)
    reviewed_by = Column(String(36))
    notes = Column(Text)


class Setting(Base, TimestampMixin):
    """A persisted studio setting.

    Keys take the form ``category.name`` (for example ``studioInfo.email``);
    values are stored as JSON so booleans and strings round-trip unchanged.
    """
    __tablename__ = 'settings'
    id = Column(String(36), primary_key=True, default=new_id)
    key = Column(String(200), unique=True, nullable=False)
    value = Column(JSON, nullable=True)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text)
    is_environment = Column(Boolean, default=False, nullable=False)
