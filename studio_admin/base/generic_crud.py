"""Generic CRUD routes built from a set of resource operations."""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Type
from flask import g
from pydantic import BaseModel
from ..envelope import success_response
from ..errors import NotFoundError, ValidationError
from .validation import Presets, ValidationConfig, with_validation


@dataclass(frozen=True)
class CrudOperations:
    """Callables implementing a resource. Any of them may be omitted.

    Attributes:
        get_all: ``(query_model) -> dict`` with ``items`` and ``pagination``
        get_by_id: ``(resource_id) -> dict | None``
        create: ``(body_model) -> dict``
        update: ``(resource_id, body_model) -> dict | None``
        delete: ``(resource_id) -> bool``
    """
    get_all: Optional[Callable[[Any], Any]] = None
    get_by_id: Optional[Callable[[str], Any]] = None
    create: Optional[Callable[[Any], Any]] = None
    update: Optional[Callable[[str, Any], Any]] = None
    delete: Optional[Callable[[str], bool]] = None


class GenericCRUD:
    """Generic CRUD handlers that turn operation results into envelopes.

    A ``None`` from ``get_by_id``/``update`` or ``False`` from ``delete``
    becomes a 404; validation failures were already turned into 400s by the
    validation pipeline before the handler ran.

    Usage:
        crud = GenericCRUD(
            entity_name='Customer',
            operations=CrudOperations(get_all=list_customers, create=create_customer),
            create_schema=CustomerCreate,
            query_schema=CustomerQuery,
        )
    """

    def __init__(
        self,
        entity_name: str,
        operations: CrudOperations,
        create_schema: Optional[Type[BaseModel]] = None,
        update_schema: Optional[Type[BaseModel]] = None,
        query_schema: Optional[Type[BaseModel]] = None,
        read_config: ValidationConfig = Presets.RESOURCE_READ,
        write_config: ValidationConfig = Presets.RESOURCE_WRITE,
        delete_config: ValidationConfig = Presets.RESOURCE_DELETE,
    ):
        self.entity_name = entity_name
        self.operations = operations
        self.create_schema = create_schema
        self.update_schema = update_schema
        self.query_schema = query_schema
        self.read_config = read_config
        self.write_config = write_config
        self.delete_config = delete_config
        self.logger = logging.getLogger(f"{__name__}.{entity_name.lower()}")

    def _found(self, result, resource_id):
        if result is None or result is False:
            self.logger.info(f"{self.entity_name} {resource_id} not found")
            raise NotFoundError(f"{self.entity_name} not found")
        return result

    def list_view(self):
        return success_response(self.operations.get_all(g.validated_query))

    def detail_view(self, resource_id):
        return success_response(self._found(self.operations.get_by_id(resource_id), resource_id))

    def create_view(self):
        created = self.operations.create(g.validated_body)
        self.logger.info(f"Created {self.entity_name.lower()}: {created.get('id') if isinstance(created, dict) else ''}")
        return success_response(created, message=f"{self.entity_name} created successfully", status=201)

    def update_view(self, resource_id):
        body = g.validated_body
        if body is not None and not body.model_dump(exclude_unset=True):
            raise ValidationError("Validation error: no fields to update")
        updated = self._found(self.operations.update(resource_id, body), resource_id)
        self.logger.info(f"Updated {self.entity_name.lower()}: {resource_id}")
        return success_response(updated, message=f"{self.entity_name} updated successfully")

    def delete_view(self, resource_id):
        self._found(self.operations.delete(resource_id), resource_id)
        self.logger.info(f"Deleted {self.entity_name.lower()}: {resource_id}")
        return success_response({'id': resource_id}, message=f"{self.entity_name} deleted successfully")


def register_crud_routes(bp, crud_instance, resource_name):
    """Register standard CRUD routes for the operations that exist.

    Args:
        bp: Flask Blueprint instance
        crud_instance: GenericCRUD instance
        resource_name: URL segment of the resource (e.g., 'customers')

    This function registers, when the matching operation is provided:
        GET    /{resource_name}        - list (query schema)
        POST   /{resource_name}        - create (create schema), 201
        GET    /{resource_name}/<id>   - detail
        PUT    /{resource_name}/<id>   - update (update schema)
        PATCH  /{resource_name}/<id>   - update (update schema)
        DELETE /{resource_name}/<id>   - delete
    """
    ops = crud_instance.operations
    collection = f'/{resource_name}'
    item = f'/{resource_name}/<string:resource_id>'

    if ops.get_all:
        config = crud_instance.read_config.replace(query_schema=crud_instance.query_schema)
        bp.add_url_rule(collection, endpoint=f'{resource_name}_list',
                        view_func=with_validation(config)(crud_instance.list_view), methods=['GET'])

    if ops.create:
        config = crud_instance.write_config.replace(body_schema=crud_instance.create_schema)
        bp.add_url_rule(collection, endpoint=f'{resource_name}_create',
                        view_func=with_validation(config)(crud_instance.create_view), methods=['POST'])

    if ops.get_by_id:
        bp.add_url_rule(item, endpoint=f'{resource_name}_detail',
                        view_func=with_validation(crud_instance.read_config)(crud_instance.detail_view), methods=['GET'])

    if ops.update:
        config = crud_instance.write_config.replace(body_schema=crud_instance.update_schema)
        bp.add_url_rule(item, endpoint=f'{resource_name}_update',
                        view_func=with_validation(config)(crud_instance.update_view), methods=['PUT', 'PATCH'])

    if ops.delete:
        bp.add_url_rule(item, endpoint=f'{resource_name}_delete',
                        view_func=with_validation(crud_instance.delete_config)(crud_instance.delete_view), methods=['DELETE'])
