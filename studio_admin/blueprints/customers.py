"""Customers blueprint for the admin API."""
from flask import Blueprint
from studio_core.schemas import CustomerCreate, CustomerQuery, CustomerUpdate
from ..base.generic_crud import CrudOperations, GenericCRUD, register_crud_routes
from ..repositories.customers import (
    create_customer, delete_customer, get_customer, list_customers, update_customer
)

bp = Blueprint('customers', __name__, url_prefix='/api/admin')

customer_crud = GenericCRUD(
    entity_name='Customer',
    operations=CrudOperations(
        get_all=list_customers,
        get_by_id=get_customer,
        create=create_customer,
        update=update_customer,
        delete=delete_customer,
    ),
    create_schema=CustomerCreate,
    update_schema=CustomerUpdate,
    query_schema=CustomerQuery,
)

register_crud_routes(bp, customer_crud, 'customers')
