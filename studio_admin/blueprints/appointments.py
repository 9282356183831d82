"""Appointments blueprint for the admin API."""
from flask import Blueprint
from studio_core.schemas import AppointmentCreate, AppointmentQuery, AppointmentUpdate
from ..base.generic_crud import CrudOperations, GenericCRUD, register_crud_routes
from ..base.validation import Presets, with_validation
from ..repositories.appointments import (
    create_appointment, delete_appointment, get_appointment, list_appointments, update_appointment
)
from ..services.dashboard_service import get_appointment_stats

bp = Blueprint('appointments', __name__, url_prefix='/api/admin')

appointment_crud = GenericCRUD(
    entity_name='Appointment',
    operations=CrudOperations(
        get_all=list_appointments,
        get_by_id=get_appointment,
        create=create_appointment,
        update=update_appointment,
        delete=delete_appointment,
    ),
    create_schema=AppointmentCreate,
    update_schema=AppointmentUpdate,
    query_schema=AppointmentQuery,
)

register_crud_routes(bp, appointment_crud, 'appointments')


@bp.route('/appointments/stats', methods=['GET'])
@with_validation(Presets.DASHBOARD_READ)
def appointment_stats():
    """Counts of appointments by status and for today, this week and upcoming."""
    return get_appointment_stats()
