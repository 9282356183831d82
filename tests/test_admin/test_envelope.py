"""Tests for the response envelope and error taxonomy."""
import json
import pytest
import requests
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import NotFound, RequestEntityTooLarge, MethodNotAllowed
from studio_core.validation import ValidationError as InputValidationError
from studio_admin.envelope import (
    REQUEST_ID_HEADER, TIMESTAMP_HEADER, api_error_response, create_error_response, create_success_response,
    forbidden_response, internal_error_response, not_found_response, rate_limit_response, success_response,
    unauthorized_response
)
from studio_admin.errors import (
    ErrorKind, GENERIC_DATABASE_MESSAGE, GENERIC_INTERNAL_MESSAGE, NotFoundError, RateLimitError,
    classify_exception, from_http_exception, status_for
)


class _Sample(BaseModel):
    count: int


class TestEnvelope:
    def test_success_shape(self):
        body = create_success_response({'id': 1}, message='Done', request_id='req_x')
        assert body['success'] is True
        assert body['data'] == {'id': 1}
        assert body['message'] == 'Done'
        assert body['requestId'] == 'req_x'
        assert body['timestamp'].endswith('Z')
        assert 'error' not in body

    def test_error_shape(self):
        body = create_error_response('Broken', status_code=503)
        assert body['success'] is False
        assert body['error'] == 'Broken'
        assert body['status'] == 503
        assert 'data' not in body

    def test_error_from_exception(self):
        assert create_error_response(NotFoundError('Customer not found'), 404)['error'] == 'Customer not found'
        assert create_error_response(ValueError('bad input'), 400)['error'] == 'bad input'

    def test_status_line_matches_body(self, app):
        with app.test_request_context('/'):
            for response, status in ((unauthorized_response(), 401), (forbidden_response(), 403),
                                     (not_found_response('Payment'), 404), (internal_error_response(), 500),
                                     (success_response({}, status=201), 201)):
                assert response.status_code == status
                assert json.loads(response.data)['status'] == status
            assert json.loads(not_found_response('Payment').data)['error'] == 'Payment not found'
            assert rate_limit_response(30).headers['Retry-After'] == '30'

    def test_headers_set(self, app):
        with app.test_request_context('/', headers={REQUEST_ID_HEADER: 'req_from_client'}):
            response = success_response([1, 2])
            assert response.headers[REQUEST_ID_HEADER] == 'req_from_client'
            assert response.headers[TIMESTAMP_HEADER]
            assert json.loads(response.data)['requestId'] == 'req_from_client'

    def test_oversized_request_id_replaced(self, app):
        with app.test_request_context('/', headers={REQUEST_ID_HEADER: 'x' * 101}):
            response = success_response(None)
            assert response.headers[REQUEST_ID_HEADER].startswith('req_')

    def test_rate_limit_sets_retry_after(self, app):
        with app.test_request_context('/'):
            response = api_error_response(RateLimitError(retry_after=42))
            assert response.status_code == 429
            assert response.headers['Retry-After'] == '42'


class TestClassification:
    def test_status_table(self):
        assert status_for(ErrorKind.VALIDATION) == 400
        assert status_for(ErrorKind.AUTHENTICATION) == 401
        assert status_for(ErrorKind.AUTHORIZATION) == 403
        assert status_for(ErrorKind.NOT_FOUND) == 404
        assert status_for(ErrorKind.METHOD_NOT_ALLOWED) == 405
        assert status_for(ErrorKind.RATE_LIMIT) == 429
        assert status_for(ErrorKind.DATABASE) == 500
        assert status_for(ErrorKind.EXTERNAL_SERVICE) == 502

    def test_api_errors_pass_through(self):
        error = NotFoundError("Customer not found")
        assert classify_exception(error) is error

    def test_pydantic_errors_are_validation(self):
        with pytest.raises(PydanticValidationError) as info:
            _Sample.model_validate({'count': 'many'})
        error = classify_exception(info.value)
        assert error.kind == ErrorKind.VALIDATION
        assert error.message.startswith('Validation error: count:')

    def test_input_validation_errors(self):
        assert classify_exception(InputValidationError('bad')).kind == ErrorKind.VALIDATION

    def test_database_errors_hide_details(self):
        error = classify_exception(OperationalError('SELECT 1', {}, Exception('disk I/O error')))
        assert error.kind == ErrorKind.DATABASE
        assert error.message == GENERIC_DATABASE_MESSAGE
        assert 'disk' not in error.message

    def test_network_errors_are_external(self):
        assert classify_exception(requests.Timeout('slow')).kind == ErrorKind.EXTERNAL_SERVICE
        assert classify_exception(requests.ConnectionError('down')).status_code == 502

    def test_unknown_errors_are_internal(self):
        error = classify_exception(KeyError('boom'))
        assert error.kind == ErrorKind.INTERNAL
        assert error.message == GENERIC_INTERNAL_MESSAGE

    def test_http_exceptions(self):
        assert from_http_exception(NotFound()).status_code == 404
        assert from_http_exception(MethodNotAllowed()).status_code == 405
        too_large = from_http_exception(RequestEntityTooLarge())
        assert too_large.kind == ErrorKind.VALIDATION
        assert too_large.message == 'Request body too large'


def test_unknown_api_route_returns_envelope(client):
    response = client.get('/api/does-not-exist')
    assert response.status_code == 404
    data = json.loads(response.data)
    assert data['success'] is False
    assert data['error'] == 'Not found'
    assert response.headers[REQUEST_ID_HEADER].startswith('req_')
