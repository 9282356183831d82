import enum


class UserRole(str, enum.Enum):
    """Roles a user account can hold.

    Only ADMIN passes the admin gate; the other roles can sign in but are
    refused access to admin resources.
    """
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    USER = "user"


class AppointmentStatus(str, enum.Enum):
    """Lifecycle states for a booked appointment."""
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    SCHEDULED = "SCHEDULED"


class AppointmentType(str, enum.Enum):
    """Kinds of appointment the studio books."""
    CONSULTATION = "CONSULTATION"
    REMOVAL = "REMOVAL"
    TATTOO_SESSION = "TATTOO_SESSION"
    TOUCH_UP = "TOUCH_UP"


class SessionStatus(str, enum.Enum):
    """Status of a tattoo session.

    Completed sessions count towards revenue in dashboard statistics.
    """
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    IN_PROGRESS = "IN_PROGRESS"
    NO_SHOW = "NO_SHOW"
    SCHEDULED = "SCHEDULED"


class PaymentMethod(str, enum.Enum):
    CARD = "card"
    CASH = "cash"
    TRANSFER = "transfer"
    VENMO = "venmo"
    ZELLE = "zelle"


class PaymentStatus(str, enum.Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    PENDING = "pending"
    REFUNDED = "refunded"


class MediaType(str, enum.Enum):
    """Media kinds stored in the portfolio gallery."""
    PHOTO = "photo"
    VIDEO = "video"


class FormType(str, enum.Enum):
    """Kinds of form a client can submit through the public site."""
    AFTERCARE = "aftercare"
    CONSULTATION = "consultation"
    CONTACT = "contact"
    WAIVER = "waiver"


class FormStatus(str, enum.Enum):
    ARCHIVED = "archived"
    NEW = "new"
    PROCESSED = "processed"
    REVIEWED = "reviewed"


class AnalyticsPeriod(str, enum.Enum):
    """Reporting windows accepted by the analytics endpoint."""
    DAY = "day"
    MONTH = "month"
    WEEK = "week"
    YEAR = "year"
