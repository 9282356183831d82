"""Appointment persistence operations."""
import logging
from sqlalchemy import select
from studio_core.schemas import AppointmentResponse, dump
from ..models import db, unit_of_work, Appointment, Artist, Customer
from .base import apply_changes, paginate, require

logger = logging.getLogger(__name__)


def serialize_appointment(appointment):
    return dump(
        AppointmentResponse, appointment,
        customerName=appointment.customer.full_name if appointment.customer else None,
        artistName=appointment.artist.name if appointment.artist else None,
    )


def list_appointments(query):
    statement = select(Appointment).order_by(Appointment.scheduled_date.asc())
    if query.status:
        statement = statement.where(Appointment.status == query.status)
    if query.customer_id:
        statement = statement.where(Appointment.customer_id == query.customer_id)
    if query.artist_id:
        statement = statement.where(Appointment.artist_id == query.artist_id)
    if query.start_date:
        statement = statement.where(Appointment.scheduled_date >= query.start_date)
    if query.end_date:
        statement = statement.where(Appointment.scheduled_date <= query.end_date)
    return paginate(statement, query.limit, query.offset, serialize_appointment)


def get_appointment(appointment_id):
    appointment = db.session.get(Appointment, appointment_id)
    return serialize_appointment(appointment) if appointment else None


def create_appointment(data):
    values = data.model_dump()
    require(Customer, values['customer_id'], 'Customer')
    require(Artist, values.get('artist_id'), 'Artist')
    with unit_of_work() as session:
        appointment = Appointment(**values)
        session.add(appointment)
    logger.info(f"Created appointment {appointment.id} for customer {appointment.customer_id}")
    return serialize_appointment(appointment)


def update_appointment(appointment_id, data):
    appointment = db.session.get(Appointment, appointment_id)
    if appointment is None:
        return None
    changes = {key: value for key, value in data.model_dump(exclude_unset=True).items()
               if value is not None or key in ('artist_id', 'notes')}
    require(Artist, changes.get('artist_id'), 'Artist')
    with unit_of_work():
        apply_changes(appointment, changes)
    return serialize_appointment(appointment)


def delete_appointment(appointment_id):
    appointment = db.session.get(Appointment, appointment_id)
    if appointment is None:
        return False
    with unit_of_work() as session:
        session.delete(appointment)
    return True
