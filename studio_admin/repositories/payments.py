"""Payment persistence operations."""
import logging
from sqlalchemy import select
from studio_core.enums import PaymentStatus
from studio_core.schemas import PaymentResponse, dump
from ..errors import ValidationError
from ..models import db, unit_of_work, Appointment, Customer, Payment, now
from .base import apply_changes, paginate, require

logger = logging.getLogger(__name__)


def serialize_payment(payment):
    return dump(PaymentResponse, payment,
                customerName=payment.customer.full_name if payment.customer else None)


def list_payments(query):
    statement = select(Payment).order_by(Payment.created_at.desc())
    if query.status:
        statement = statement.where(Payment.status == query.status)
    if query.method:
        statement = statement.where(Payment.method == query.method)
    if query.customer_id:
        statement = statement.where(Payment.customer_id == query.customer_id)
    return paginate(statement, query.limit, query.offset, serialize_payment)


def get_payment(payment_id):
    payment = db.session.get(Payment, payment_id)
    return serialize_payment(payment) if payment else None


def create_payment(data):
    values = data.model_dump()
    require(Customer, values['customer_id'], 'Customer')
    appointment = require(Appointment, values.get('appointment_id'), 'Appointment')
    if appointment is not None and appointment.customer_id != values['customer_id']:
        raise ValidationError("Validation error: appointmentId: appointment belongs to another customer")
    if values['status'] == PaymentStatus.COMPLETED.value:
        values['paid_at'] = now()
    with unit_of_work() as session:
        payment = Payment(**values)
        session.add(payment)
    logger.info(f"Recorded payment {payment.id} of {payment.amount:.2f}")
    return serialize_payment(payment)


def update_payment(payment_id, data):
    payment = db.session.get(Payment, payment_id)
    if payment is None:
        return None
    changes = {key: value for key, value in data.model_dump(exclude_unset=True).items()
               if value is not None or key in ('transaction_id', 'notes')}
    if changes.get('status') == PaymentStatus.COMPLETED.value and payment.paid_at is None:
        changes['paid_at'] = now()
    with unit_of_work():
        apply_changes(payment, changes)
    return serialize_payment(payment)


def delete_payment(payment_id):
    payment = db.session.get(Payment, payment_id)
    if payment is None:
        return False
    with unit_of_work() as session:
        session.delete(payment)
    return True
