"""Form submissions blueprint for the admin API."""
from flask import Blueprint
from studio_core.schemas import FormSubmissionCreate, FormSubmissionQuery, FormSubmissionUpdate
from ..base.generic_crud import CrudOperations, GenericCRUD, register_crud_routes
from ..repositories.forms import create_form, delete_form, get_form, list_forms, update_form

bp = Blueprint('forms', __name__, url_prefix='/api/admin')

form_crud = GenericCRUD(
    entity_name='Form submission',
    operations=CrudOperations(
        get_all=list_forms,
        get_by_id=get_form,
        create=create_form,
        update=update_form,
        delete=delete_form,
    ),
    create_schema=FormSubmissionCreate,
    update_schema=FormSubmissionUpdate,
    query_schema=FormSubmissionQuery,
)

register_crud_routes(bp, form_crud, 'forms')
