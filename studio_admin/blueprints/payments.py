"""Payments blueprint for the admin API."""
from flask import Blueprint
from studio_core.schemas import PaymentCreate, PaymentQuery, PaymentUpdate
from ..base.generic_crud import CrudOperations, GenericCRUD, register_crud_routes
from ..repositories.payments import create_payment, delete_payment, get_payment, list_payments, update_payment

bp = Blueprint('payments', __name__, url_prefix='/api/admin')

payment_crud = GenericCRUD(
    entity_name='Payment',
    operations=CrudOperations(
        get_all=list_payments,
        get_by_id=get_payment,
        create=create_payment,
        update=update_payment,
        delete=delete_payment,
    ),
    create_schema=PaymentCreate,
    update_schema=PaymentUpdate,
    query_schema=PaymentQuery,
)

register_crud_routes(bp, payment_crud, 'payments')
