"""Form submission persistence operations."""
import logging
from flask import g
from sqlalchemy import or_, select
from studio_core.enums import FormStatus
from studio_core.schemas import FormSubmissionResponse, dump
from ..models import db, unit_of_work, Customer, FormSubmission, now
from .base import apply_changes, paginate, require

logger = logging.getLogger(__name__)


def serialize_form(submission):
    return dump(FormSubmissionResponse, submission)


def list_forms(query):
    statement = select(FormSubmission).order_by(FormSubmission.submitted_at.desc())
    if query.form_type:
        statement = statement.where(FormSubmission.form_type == query.form_type)
    if query.status:
        statement = statement.where(FormSubmission.status == query.status)
    if query.customer_id:
        statement = statement.where(FormSubmission.customer_id == query.customer_id)
    if query.search:
        term = f"%{query.search}%"
        statement = statement.where(or_(FormSubmission.client_name.ilike(term),
                                        FormSubmission.client_email.ilike(term)))
    return paginate(statement, query.limit, query.offset, serialize_form)


def get_form(form_id):
    submission = db.session.get(FormSubmission, form_id)
    return serialize_form(submission) if submission else None


def create_form(data):
    values = data.model_dump()
    require(Customer, values.get('customer_id'), 'Customer')
    with unit_of_work() as session:
        submission = FormSubmission(**values)
        session.add(submission)
    logger.info(f"Recorded {submission.form_type.value} form {submission.id}")
    return serialize_form(submission)


def update_form(form_id, data):
    submission = db.session.get(FormSubmission, form_id)
    if submission is None:
        return None
    changes = {key: value for key, value in data.model_dump(exclude_unset=True).items()
               if value is not None or key in ('notes', 'customer_id')}
    require(Customer, changes.get('customer_id'), 'Customer')
    if changes.get('status') and changes['status'] != FormStatus.NEW.value:
        changes['reviewed_at'] = now()
        changes['reviewed_by'] = g.studio_session.user_id if 'studio_session' in g else None
    with unit_of_work():
        apply_changes(submission, changes)
    return serialize_form(submission)


def delete_form(form_id):
    submission = db.session.get(FormSubmission, form_id)
    if submission is None:
        return False
    with unit_of_work() as session:
        session.delete(submission)
    return True
