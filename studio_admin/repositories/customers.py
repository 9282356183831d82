"""Customer persistence operations."""
import logging
from sqlalchemy import exists, or_, select, update
from sqlalchemy.exc import IntegrityError
from studio_core.schemas import CustomerResponse, dump
from ..errors import ValidationError
from ..models import db, unit_of_work, Appointment, Artist, Customer, FormSubmission
from .base import apply_changes, paginate, require

logger = logging.getLogger(__name__)


def serialize_customer(customer):
    return dump(CustomerResponse, customer)


def _check_email_free(email, exclude_id=None):
    if not email:
        return
    statement = select(Customer.id).where(Customer.email == email)
    if exclude_id:
        statement = statement.where(Customer.id != exclude_id)
    if db.session.execute(statement).first():
        raise ValidationError("Validation error: email: A customer with this email already exists")


def list_customers(query):
    statement = select(Customer).order_by(Customer.created_at.desc())
    if query.search:
        term = f"%{query.search}%"
        statement = statement.where(or_(
            Customer.first_name.ilike(term),
            Customer.last_name.ilike(term),
            Customer.email.ilike(term),
            Customer.phone.ilike(term),
        ))
    if query.has_appointments is not None:
        has_any = exists().where(Appointment.customer_id == Customer.id)
        statement = statement.where(has_any if query.has_appointments else ~has_any)
    return paginate(statement, query.limit, query.offset, serialize_customer)


def get_customer(customer_id):
    customer = db.session.get(Customer, customer_id)
    return serialize_customer(customer) if customer else None


def create_customer(data):
    values = data.model_dump()
    _check_email_free(values.get('email'))
    require(Artist, values.get('preferred_artist_id'), 'Artist')
    try:
        with unit_of_work() as session:
            customer = Customer(**values)
            session.add(customer)
    except IntegrityError as e:
        raise ValidationError("Validation error: customer conflicts with an existing record") from e
    logger.info(f"Created customer {customer.id}")
    return serialize_customer(customer)


def update_customer(customer_id, data):
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        return None
    changes = data.model_dump(exclude_unset=True)
    if 'first_name' in changes and not changes['first_name']:
        raise ValidationError("Validation error: firstName: cannot be empty")
    if 'last_name' in changes and changes['last_name'] is None:
        changes['last_name'] = ""
    _check_email_free(changes.get('email'), exclude_id=customer_id)
    require(Artist, changes.get('preferred_artist_id'), 'Artist')
    with unit_of_work():
        apply_changes(customer, changes)
    return serialize_customer(customer)


def delete_customer(customer_id):
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        return False
    with unit_of_work() as session:
        session.execute(
            update(FormSubmission).where(FormSubmission.customer_id == customer_id).values(customer_id=None)
        )
        session.delete(customer)
    logger.info(f"Deleted customer {customer_id} and dependent records")
    return True
