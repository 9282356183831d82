"""Aggregations behind the dashboard and analytics endpoints."""
import logging
from datetime import datetime, timedelta
from sqlalchemy import func, select
from studio_core.enums import AnalyticsPeriod, AppointmentStatus, FormStatus, SessionStatus
from ..models import db, Appointment, Artist, Customer, FormSubmission, TattooDesign, TattooSession, now

logger = logging.getLogger(__name__)

PERIOD_DAYS = {
    AnalyticsPeriod.DAY: 1,
    AnalyticsPeriod.WEEK: 7,
    AnalyticsPeriod.MONTH: 30,
    AnalyticsPeriod.YEAR: 365,
}


def month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def previous_month_start(moment: datetime) -> datetime:
    return month_start(month_start(moment) - timedelta(days=1))


def percent_change(current, previous):
    if not previous:
        return 100.0 if current else 0.0
    return round((current - previous) / previous * 100, 1)


def _scalar(statement):
    return db.session.execute(statement).scalar() or 0


def _revenue_between(start, end):
    return float(_scalar(
        select(func.coalesce(func.sum(TattooSession.total_cost), 0.0)).where(
            TattooSession.status == SessionStatus.COMPLETED,
            TattooSession.appointment_date >= start,
            TattooSession.appointment_date < end,
        )
    ))


def _count(model, *criteria):
    return int(_scalar(select(func.count()).select_from(model).where(*criteria)))


def get_dashboard_stats(current=None):
    """Headline numbers for the dashboard, comparing this month with the last."""
    current = current or now()
    this_month = month_start(current)
    last_month = previous_month_start(current)
    next_month = month_start(this_month + timedelta(days=32))

    revenue = _revenue_between(this_month, next_month)
    last_revenue = _revenue_between(last_month, this_month)
    new_customers = _count(Customer, Customer.created_at >= this_month)
    last_new_customers = _count(Customer, Customer.created_at >= last_month, Customer.created_at < this_month)

    return {
        'revenue': round(revenue, 2),
        'revenueLastMonth': round(last_revenue, 2),
        'revenueChange': percent_change(revenue, last_revenue),
        'totalCustomers': _count(Customer),
        'newCustomers': new_customers,
        'customerChange': percent_change(new_customers, last_new_customers),
        'upcomingAppointments': _count(
            Appointment,
            Appointment.scheduled_date >= current,
            Appointment.status.in_([AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED]),
        ),
        'completedSessions': _count(TattooSession, TattooSession.status == SessionStatus.COMPLETED),
        'totalMedia': _count(TattooDesign),
        'publicMedia': _count(TattooDesign, TattooDesign.is_public.is_(True)),
        'pendingForms': _count(FormSubmission, FormSubmission.status == FormStatus.NEW),
    }


def get_appointment_stats(current=None):
    current = current or now()
    day_start = current.replace(hour=0, minute=0, second=0, microsecond=0)
    rows = db.session.execute(
        select(Appointment.status, func.count()).group_by(Appointment.status)
    ).all()
    by_status = {status.value: 0 for status in AppointmentStatus}
    for status, count in rows:
        key = status.value if hasattr(status, 'value') else status
        by_status[key] = count

    return {
        'total': sum(by_status.values()),
        'byStatus': by_status,
        'today': _count(Appointment, Appointment.scheduled_date >= day_start,
                        Appointment.scheduled_date < day_start + timedelta(days=1)),
        'thisWeek': _count(Appointment, Appointment.scheduled_date >= day_start,
                           Appointment.scheduled_date < day_start + timedelta(days=7)),
        'upcoming': _count(
            Appointment,
            Appointment.scheduled_date >= current,
            Appointment.status.in_([AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED]),
        ),
    }


def get_recent_sessions(limit=10):
    sessions = db.session.execute(
        select(TattooSession).order_by(TattooSession.appointment_date.desc()).limit(limit)
    ).scalars().all()
    return [
        {
            'id': s.id,
            'customerId': s.customer_id,
            'customerName': s.customer.full_name if s.customer else None,
            'artistName': s.artist.name if s.artist else None,
            'appointmentDate': s.appointment_date.isoformat() + 'Z',
            'status': s.status.value,
            'style': s.style,
            'placement': s.placement,
            'totalCost': s.total_cost,
            'paidAmount': s.paid_amount,
        }
        for s in sessions
    ]


def get_analytics(period=AnalyticsPeriod.MONTH, months=6, current=None):
    """Revenue and activity for the trailing ``period`` plus a monthly revenue series."""
    current = current or now()
    period = AnalyticsPeriod(period)
    start = current - timedelta(days=PERIOD_DAYS[period])

    series = []
    bucket_start = month_start(current)
    for _ in range(months):
        bucket_end = month_start(bucket_start + timedelta(days=32))
        series.append({
            'month': bucket_start.strftime('%Y-%m'),
            'revenue': round(_revenue_between(bucket_start, bucket_end), 2),
            'sessions': _count(TattooSession, TattooSession.appointment_date >= bucket_start,
                               TattooSession.appointment_date < bucket_end),
        })
        bucket_start = previous_month_start(bucket_start)
    series.reverse()

    style_rows = db.session.execute(
        select(TattooSession.style, func.count())
        .where(TattooSession.style.isnot(None), TattooSession.appointment_date >= start)
        .group_by(TattooSession.style)
        .order_by(func.count().desc())
        .limit(5)
    ).all()

    return {
        'period': period.value,
        'range': {'start': start.isoformat() + 'Z', 'end': current.isoformat() + 'Z'},
        'revenue': round(_revenue_between(start, current + timedelta(seconds=1)), 2),
        'sessions': _count(TattooSession, TattooSession.appointment_date >= start),
        'newCustomers': _count(Customer, Customer.created_at >= start),
        'appointments': _count(Appointment, Appointment.scheduled_date >= start,
                               Appointment.scheduled_date <= current),
        'cancelledAppointments': _count(Appointment, Appointment.scheduled_date >= start,
                                        Appointment.status == AppointmentStatus.CANCELLED),
        'topStyles': [{'style': style, 'count': count} for style, count in style_rows],
        'revenueByMonth': series,
    }


def _enum_value(value):
    return value.value if hasattr(value, 'value') else value


def get_recent_clients(limit=10):
    """Most recently updated customers with a hint of their latest activity."""
    customers = db.session.execute(
        select(Customer).order_by(Customer.updated_at.desc()).limit(limit)
    ).scalars().all()
    clients = []
    for customer in customers:
        last_session = db.session.execute(
            select(TattooSession).where(TattooSession.customer_id == customer.id)
            .order_by(TattooSession.created_at.desc()).limit(1)
        ).scalars().first()
        last_appointment = db.session.execute(
            select(Appointment).where(Appointment.customer_id == customer.id)
            .order_by(Appointment.scheduled_date.desc()).limit(1)
        ).scalars().first()

        if last_session and (last_session.design_description or last_session.style):
            last_type = last_session.design_description or last_session.style
        elif last_appointment:
            last_type = _enum_value(last_appointment.appointment_type).lower().replace('_', ' ')
        else:
            last_type = 'New client'

        if last_session:
            status = _enum_value(last_session.status)
        elif last_appointment:
            status = _enum_value(last_appointment.status)
        else:
            status = 'ACTIVE'

        clients.append({
            'id': customer.id,
            'firstName': customer.first_name,
            'lastName': customer.last_name,
            'email': customer.email,
            'lastSessionType': last_type,
            'lastPayment': last_session.total_cost if last_session and last_session.total_cost else None,
            'status': status,
        })
    return clients


def _rate(part, total):
    return round(part / total * 100, 1) if total else 0.0


def get_reports(current=None, months=12):
    """Year-to-date business report.

    Covers customer, revenue and appointment summaries, a monthly revenue
    series, artist performance and the top ten customers by spend. Revenue
    only counts completed sessions.
    """
    current = current or now()
    this_month = month_start(current)
    year_start = this_month.replace(month=1)
    completed = TattooSession.status == SessionStatus.COMPLETED
    completed_this_year = (completed, TattooSession.appointment_date >= year_start)

    active_customers = int(_scalar(
        select(func.count(func.distinct(TattooSession.customer_id)))
        .where(TattooSession.appointment_date >= this_month)
    ))
    year_revenue = float(_scalar(
        select(func.coalesce(func.sum(TattooSession.total_cost), 0.0)).where(*completed_this_year)
    ))
    average_session = float(_scalar(select(func.avg(TattooSession.total_cost)).where(completed)))

    total_appointments = _count(Appointment)
    completed_appointments = _count(Appointment, Appointment.status == AppointmentStatus.COMPLETED)
    cancelled_appointments = _count(Appointment, Appointment.status == AppointmentStatus.CANCELLED)
    appointment_stats = {
        'total': total_appointments,
        'completed': completed_appointments,
        'pending': _count(Appointment, Appointment.status == AppointmentStatus.SCHEDULED),
        'cancelled': cancelled_appointments,
        'completionRate': _rate(completed_appointments, total_appointments),
        'cancellationRate': _rate(cancelled_appointments, total_appointments),
    }

    series = []
    bucket_start = this_month
    for _ in range(months):
        bucket_end = month_start(bucket_start + timedelta(days=32))
        series.append({'month': bucket_start.strftime('%Y-%m'),
                       'revenue': round(_revenue_between(bucket_start, bucket_end), 2)})
        bucket_start = previous_month_start(bucket_start)
    series.reverse()

    artist_rows = db.session.execute(
        select(TattooSession.artist_id, Artist.name, func.sum(TattooSession.total_cost),
               func.count(TattooSession.id), func.avg(TattooSession.total_cost))
        .outerjoin(Artist, Artist.id == TattooSession.artist_id)
        .where(*completed_this_year)
        .group_by(TattooSession.artist_id, Artist.name)
        .order_by(func.sum(TattooSession.total_cost).desc())
    ).all()
    customer_rows = db.session.execute(
        select(Customer.id, Customer.first_name, Customer.last_name,
               func.sum(TattooSession.total_cost), func.count(TattooSession.id))
        .join(TattooSession, TattooSession.customer_id == Customer.id)
        .where(*completed_this_year)
        .group_by(Customer.id, Customer.first_name, Customer.last_name)
        .order_by(func.sum(TattooSession.total_cost).desc())
        .limit(10)
    ).all()

    logger.debug(f"Built reports for {current.isoformat()}")
    return {
        'summary': {
            'totalCustomers': _count(Customer),
            'newCustomersThisMonth': _count(Customer, Customer.created_at >= this_month),
            'activeCustomers': active_customers,
            'totalRevenue': round(year_revenue, 2),
            'monthlyRevenue': round(_revenue_between(this_month, month_start(this_month + timedelta(days=32))), 2),
            'avgSessionValue': round(average_session, 2),
            'totalAppointments': total_appointments,
        },
        'monthlyRevenue': series,
        'artistReports': [
            {
                'artistId': artist_id,
                'artistName': name or 'Unknown',
                'totalRevenue': round(float(total or 0), 2),
                'sessionCount': count,
                'avgSessionValue': round(float(average or 0), 2),
            }
            for artist_id, name, total, count, average in artist_rows
        ],
        'customerReports': [
            {
                'customerId': customer_id,
                'customerName': f"{first_name} {last_name or ''}".strip(),
                'totalSpent': round(float(total or 0), 2),
                'sessionCount': count,
            }
            for customer_id, first_name, last_name, total, count in customer_rows
        ],
        'appointmentStats': appointment_stats,
    }
