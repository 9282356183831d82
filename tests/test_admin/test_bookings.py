"""Tests for appointments, payments and form submissions."""
import json
from datetime import datetime, timedelta
from studio_admin.models import db, Appointment, FormSubmission, now


def book(admin_client, customer, **fields):
    payload = {'customerId': customer, 'scheduledDate': '2030-03-01T15:00:00Z', 'type': 'TATTOO_SESSION',
               'duration': 180}
    payload.update(fields)
    return admin_client.post('/api/admin/appointments', json=payload)


class TestAppointments:
    def test_create(self, admin_client, customer, artist):
        response = book(admin_client, customer, artistId=artist)
        assert response.status_code == 201
        appointment = json.loads(response.data)['data']
        assert appointment['type'] == 'TATTOO_SESSION'
        assert appointment['status'] == 'SCHEDULED'
        assert appointment['customerName'] == 'Jane Doe'
        assert appointment['artistName'] == 'Kat Lin'
        assert appointment['scheduledDate'].startswith('2030-03-01T15:00:00')

    def test_unknown_customer(self, admin_client):
        response = book(admin_client, 'no-such-customer')
        assert response.status_code == 404
        assert json.loads(response.data)['error'] == 'Customer not found'

    def test_duration_out_of_range(self, admin_client, customer):
        response = book(admin_client, customer, duration=5)
        assert response.status_code == 400

    def test_filters(self, admin_client, customer):
        book(admin_client, customer, scheduledDate='2030-01-10T10:00:00Z')
        book(admin_client, customer, scheduledDate='2030-02-10T10:00:00Z', status='CONFIRMED')

        data = json.loads(admin_client.get('/api/admin/appointments?status=CONFIRMED').data)['data']
        assert [item['status'] for item in data['items']] == ['CONFIRMED']

        data = json.loads(admin_client.get(
            '/api/admin/appointments?startDate=2030-01-01T00:00:00Z&endDate=2030-01-31T00:00:00Z').data)['data']
        assert data['pagination']['total'] == 1

    def test_bad_date_range(self, admin_client):
        response = admin_client.get('/api/admin/appointments?startDate=2030-02-01T00:00:00Z&endDate=2030-01-01T00:00:00Z')
        assert response.status_code == 400

    def test_update_and_delete(self, admin_client, customer):
        appointment_id = json.loads(book(admin_client, customer).data)['data']['id']
        response = admin_client.patch(f'/api/admin/appointments/{appointment_id}', json={'status': 'CANCELLED'})
        assert json.loads(response.data)['data']['status'] == 'CANCELLED'
        assert admin_client.delete(f'/api/admin/appointments/{appointment_id}').status_code == 200
        assert admin_client.get(f'/api/admin/appointments/{appointment_id}').status_code == 404

    def test_stats(self, app, admin_client, customer):
        with app.app_context():
            current = now()
            db.session.add_all([
                Appointment(customer_id=customer, scheduled_date=current + timedelta(days=2), duration=60),
                Appointment(customer_id=customer, scheduled_date=current - timedelta(days=40), duration=60,
                            status='COMPLETED'),
            ])
            db.session.commit()
        data = json.loads(admin_client.get('/api/admin/appointments/stats').data)['data']
        assert data['total'] == 2
        assert data['byStatus']['COMPLETED'] == 1
        assert data['upcoming'] == 1


class TestPayments:
    def test_completed_payment_records_paid_at(self, admin_client, customer):
        response = admin_client.post('/api/admin/payments', json={
            'customerId': customer, 'amount': 250.5, 'method': 'cash', 'status': 'completed'})
        assert response.status_code == 201
        payment = json.loads(response.data)['data']
        assert payment['amount'] == 250.5
        assert payment['paidAt'] is not None
        assert payment['customerName'] == 'Jane Doe'

    def test_pending_then_completed(self, admin_client, customer):
        payment = json.loads(admin_client.post('/api/admin/payments', json={
            'customerId': customer, 'amount': 80}).data)['data']
        assert payment['status'] == 'pending'
        assert payment['paidAt'] is None
        updated = json.loads(admin_client.patch(f"/api/admin/payments/{payment['id']}",
                                                json={'status': 'completed'}).data)['data']
        assert updated['paidAt'] is not None

    def test_non_positive_amount(self, admin_client, customer):
        response = admin_client.post('/api/admin/payments', json={'customerId': customer, 'amount': -5})
        assert response.status_code == 400

    def test_appointment_of_other_customer(self, app, admin_client, customer):
        other = json.loads(admin_client.post('/api/admin/customers', json={'firstName': 'Other'}).data)['data']
        appointment_id = json.loads(book(admin_client, other['id']).data)['data']['id']
        response = admin_client.post('/api/admin/payments', json={
            'customerId': customer, 'appointmentId': appointment_id, 'amount': 50})
        assert response.status_code == 400

    def test_filter_by_status(self, admin_client, customer):
        admin_client.post('/api/admin/payments', json={'customerId': customer, 'amount': 10})
        admin_client.post('/api/admin/payments', json={'customerId': customer, 'amount': 20, 'status': 'completed'})
        data = json.loads(admin_client.get('/api/admin/payments?status=completed').data)['data']
        assert [item['amount'] for item in data['items']] == [20]


class TestForms:
    def test_create_and_review(self, app, admin_client, admin_user):
        response = admin_client.post('/api/admin/forms', json={
            'formType': 'consultation',
            'clientName': 'Robin Vale',
            'clientEmail': 'Robin@Example.com',
            'submissionData': {'placement': 'forearm', 'size': 'palm'},
        })
        assert response.status_code == 201
        form = json.loads(response.data)['data']
        assert form['status'] == 'new'
        assert form['clientEmail'] == 'robin@example.com'

        response = admin_client.patch(f"/api/admin/forms/{form['id']}", json={'status': 'reviewed'})
        reviewed = json.loads(response.data)['data']
        assert reviewed['status'] == 'reviewed'
        assert reviewed['reviewedBy'] == admin_user
        assert reviewed['reviewedAt'] is not None

    def test_filter_and_search(self, app, admin_client):
        with app.app_context():
            db.session.add_all([
                FormSubmission(form_type='waiver', client_name='Ada Stone'),
                FormSubmission(form_type='contact', client_name='Ben Hart', submitted_at=datetime(2026, 1, 1)),
            ])
            db.session.commit()
        data = json.loads(admin_client.get('/api/admin/forms?formType=waiver').data)['data']
        assert [item['clientName'] for item in data['items']] == ['Ada Stone']
        data = json.loads(admin_client.get('/api/admin/forms?search=hart').data)['data']
        assert data['pagination']['total'] == 1

    def test_invalid_form_type(self, admin_client):
        response = admin_client.post('/api/admin/forms', json={'formType': 'bogus', 'clientName': 'X'})
        assert response.status_code == 400
