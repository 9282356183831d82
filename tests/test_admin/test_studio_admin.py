"""Tests for settings, dashboard, maintenance and health endpoints."""
import json
from datetime import datetime, timedelta
from unittest.mock import patch
import pytest
from sqlalchemy import update as sql_update
from sqlalchemy.exc import OperationalError
from studio_admin.models import db, Appointment, Artist, Customer, Setting, TattooDesign, TattooSession, now
from studio_admin.services.dashboard_service import get_analytics, get_dashboard_stats, get_reports, percent_change


class TestSettings:
    def test_defaults_initialized(self, app, admin_client):
        data = json.loads(admin_client.get('/api/admin/settings').data)['data']
        assert data['studioInfo']['name'] == 'Tattoo Studio'
        assert data['calCom']['autoSync'] is True
        with app.app_context():
            assert db.session.query(Setting).count() == 12

    def test_partial_update(self, app, admin_client):
        response = admin_client.put('/api/admin/settings', json={
            'studioInfo': {'name': 'Ink House', 'email': 'HELLO@inkhouse.test'},
            'appearance': {'darkMode': True},
        })
        assert response.status_code == 200
        data = json.loads(response.data)['data']
        assert data['studioInfo']['name'] == 'Ink House'
        assert data['studioInfo']['email'] == 'hello@inkhouse.test'
        assert data['appearance']['darkMode'] is True
        assert data['appearance']['compactSidebar'] is False

        data = json.loads(admin_client.get('/api/admin/settings').data)['data']
        assert data['studioInfo']['name'] == 'Ink House'

    def test_empty_update_rejected(self, admin_client):
        response = admin_client.patch('/api/admin/settings', json={})
        assert response.status_code == 400

    def test_invalid_value_rejected(self, admin_client):
        response = admin_client.patch('/api/admin/settings', json={'calCom': {'webhookUrl': 'http://insecure'}})
        assert response.status_code == 400

    def test_post_not_allowed(self, admin_client):
        assert admin_client.post('/api/admin/settings', json={}).status_code == 405


@pytest.fixture
def studio_history(app, customer, artist):
    """Completed sessions this month and last month plus one upcoming appointment."""
    current = now()
    this_month = current.replace(day=1, hour=12, minute=0, second=0, microsecond=0)
    last_month = (this_month - timedelta(days=1)).replace(day=1)
    with app.app_context():
        db.session.add_all([
            TattooSession(customer_id=customer, artist_id=artist, appointment_date=this_month, status='COMPLETED',
                          total_cost=300.0, style='Blackwork'),
            TattooSession(customer_id=customer, artist_id=artist, appointment_date=last_month, status='COMPLETED',
                          total_cost=200.0, style='Blackwork'),
            TattooSession(customer_id=customer, appointment_date=this_month, status='CANCELLED', total_cost=999.0,
                          style='Realism'),
            Appointment(customer_id=customer, scheduled_date=current + timedelta(days=3), duration=60),
            TattooDesign(title='Moth', style='Blackwork', media_url='/uploads/moth.jpg', media_type='photo',
                         artist_id=artist, is_public=False, tags=[]),
        ])
        db.session.commit()
    return this_month


class TestDashboard:
    def test_percent_change(self):
        assert percent_change(150, 100) == 50.0
        assert percent_change(0, 0) == 0.0
        assert percent_change(10, 0) == 100.0

    def test_stats(self, app, studio_history):
        with app.app_context():
            stats = get_dashboard_stats(current=studio_history + timedelta(hours=1))
        assert stats['revenue'] == 300.0
        assert stats['revenueLastMonth'] == 200.0
        assert stats['revenueChange'] == 50.0
        assert stats['totalCustomers'] == 1
        assert stats['completedSessions'] == 2
        assert stats['totalMedia'] == 1
        assert stats['publicMedia'] == 0

    def test_stats_endpoint(self, admin_client, studio_history):
        data = json.loads(admin_client.get('/api/admin/dashboard/stats').data)['data']
        assert data['upcomingAppointments'] == 1
        assert data['pendingForms'] == 0

    def test_recent_sessions(self, admin_client, studio_history):
        data = json.loads(admin_client.get('/api/admin/dashboard/recent-sessions?limit=2').data)['data']
        assert len(data) == 2
        assert data[0]['customerName'] == 'Jane Doe'
        assert admin_client.get('/api/admin/dashboard/recent-sessions?limit=0').status_code == 400

    def test_analytics(self, app, studio_history):
        with app.app_context():
            report = get_analytics('year', months=3, current=studio_history + timedelta(hours=1))
        assert report['period'] == 'year'
        assert report['revenue'] == 500.0
        assert report['topStyles'][0] == {'style': 'Blackwork', 'count': 2}
        assert len(report['revenueByMonth']) == 3
        assert report['revenueByMonth'][-1]['revenue'] == 300.0
        assert report['revenueByMonth'][-2]['revenue'] == 200.0

    def test_analytics_endpoint_validates_period(self, admin_client):
        assert admin_client.get('/api/admin/analytics?period=week').status_code == 200
        assert admin_client.get('/api/admin/analytics?period=decade').status_code == 400


@pytest.fixture
def year_of_sessions(app, customer, artist):
    """Sessions spread over a year up to mid June 2026, plus one appointment per status."""
    with app.app_context():
        rob = Customer(first_name='Rob', last_name='Vale', email='rob@example.com')
        guest = Artist(name='Guest Artist', email='guest@studio.test')
        db.session.add_all([rob, guest])
        db.session.flush()
        db.session.add_all([
            TattooSession(customer_id=customer, artist_id=artist, appointment_date=datetime(2026, 6, 3, 14),
                          status='COMPLETED', total_cost=400.0),
            TattooSession(customer_id=rob.id, artist_id=artist, appointment_date=datetime(2026, 5, 10, 14),
                          status='COMPLETED', total_cost=150.0),
            TattooSession(customer_id=rob.id, artist_id=guest.id, appointment_date=datetime(2026, 2, 1, 14),
                          status='COMPLETED', total_cost=300.0),
            TattooSession(customer_id=customer, appointment_date=datetime(2025, 12, 1, 14),
                          status='COMPLETED', total_cost=1000.0),
            TattooSession(customer_id=customer, artist_id=artist, appointment_date=datetime(2026, 6, 10, 14),
                          status='CANCELLED', total_cost=999.0),
        ])
        for status in ('COMPLETED', 'COMPLETED', 'CANCELLED', 'SCHEDULED'):
            db.session.add(Appointment(customer_id=customer, scheduled_date=datetime(2026, 6, 1, 10),
                                       duration=60, status=status))
        db.session.commit()
        return {'jane': customer, 'rob': rob.id, 'kat': artist, 'guest': guest.id}


class TestReports:
    def test_report(self, app, year_of_sessions):
        with app.app_context():
            report = get_reports(current=datetime(2026, 6, 15, 12))
        summary = report['summary']
        assert summary['totalCustomers'] == 2
        assert summary['activeCustomers'] == 1
        assert summary['totalRevenue'] == 850.0
        assert summary['monthlyRevenue'] == 400.0
        assert summary['avgSessionValue'] == 462.5
        assert summary['totalAppointments'] == 4

        assert report['appointmentStats'] == {
            'total': 4, 'completed': 2, 'pending': 1, 'cancelled': 1,
            'completionRate': 50.0, 'cancellationRate': 25.0,
        }
        assert report['artistReports'] == [
            {'artistId': year_of_sessions['kat'], 'artistName': 'Kat Lin', 'totalRevenue': 550.0,
             'sessionCount': 2, 'avgSessionValue': 275.0},
            {'artistId': year_of_sessions['guest'], 'artistName': 'Guest Artist', 'totalRevenue': 300.0,
             'sessionCount': 1, 'avgSessionValue': 300.0},
        ]
        assert [(c['customerName'], c['totalSpent'], c['sessionCount']) for c in report['customerReports']] == [
            ('Rob Vale', 450.0, 2), ('Jane Doe', 400.0, 1)
        ]

        series = report['monthlyRevenue']
        assert len(series) == 12
        assert series[0]['month'] == '2025-07'
        assert series[-1] == {'month': '2026-06', 'revenue': 400.0}
        assert {'month': '2025-12', 'revenue': 1000.0} in series

    def test_empty_report(self, app):
        with app.app_context():
            report = get_reports(current=datetime(2026, 6, 15, 12))
        assert report['summary']['avgSessionValue'] == 0.0
        assert report['appointmentStats']['completionRate'] == 0.0
        assert report['artistReports'] == []

    def test_reports_endpoint(self, admin_client, staff_client, year_of_sessions):
        response = admin_client.get('/api/admin/reports?months=3')
        assert response.status_code == 200
        assert len(json.loads(response.data)['data']['monthlyRevenue']) == 3
        assert admin_client.get('/api/admin/reports?months=30').status_code == 400
        assert staff_client.get('/api/admin/reports').status_code == 403


class TestRecentClients:
    def test_latest_activity(self, app, admin_client, customer):
        with app.app_context():
            rob = Customer(first_name='Rob', last_name='Vale', email='rob@example.com')
            mia = Customer(first_name='Mia', last_name='Sol', email='mia@example.com')
            db.session.add_all([rob, mia])
            db.session.flush()
            db.session.add_all([
                TattooSession(customer_id=customer, appointment_date=now(), status='COMPLETED',
                              style='Blackwork', total_cost=300.0),
                Appointment(customer_id=rob.id, scheduled_date=now() + timedelta(days=2), duration=30,
                            appointment_type='TOUCH_UP'),
            ])
            db.session.commit()

        response = admin_client.get('/api/admin/dashboard/recent-clients')
        assert response.status_code == 200
        clients = {c['firstName']: c for c in json.loads(response.data)['data']}
        assert clients['Jane']['lastSessionType'] == 'Blackwork'
        assert clients['Jane']['lastPayment'] == 300.0
        assert clients['Jane']['status'] == 'COMPLETED'
        assert clients['Rob']['lastSessionType'] == 'touch up'
        assert clients['Rob']['lastPayment'] is None
        assert clients['Rob']['status'] == 'SCHEDULED'
        assert clients['Mia'] == {'id': clients['Mia']['id'], 'firstName': 'Mia', 'lastName': 'Sol',
                                  'email': 'mia@example.com', 'lastSessionType': 'New client',
                                  'lastPayment': None, 'status': 'ACTIVE'}

    def test_limit(self, admin_client, customer):
        assert len(json.loads(admin_client.get('/api/admin/dashboard/recent-clients?limit=1').data)['data']) == 1
        assert admin_client.get('/api/admin/dashboard/recent-clients?limit=0').status_code == 400


class TestConsolidateArtist:
    @pytest.fixture
    def artists(self, app, customer):
        with app.app_context():
            keep = Artist(name='Kat Lin', email='kat@studio.test')
            other = Artist(name='Guest Artist', email='guest@studio.test')
            db.session.add_all([keep, other])
            db.session.flush()
            db.session.add_all([
                TattooSession(customer_id=customer, artist_id=other.id, appointment_date=now()),
                TattooSession(customer_id=customer, artist_id=None, appointment_date=now()),
                Appointment(customer_id=customer, artist_id=other.id, scheduled_date=now(), duration=60),
            ])
            db.session.get(Customer, customer).preferred_artist_id = other.id
            db.session.commit()
            return keep.id, other.id

    def test_consolidates(self, app, admin_client, artists):
        keep, other = artists
        response = admin_client.post('/api/admin/maintenance/consolidate-artist', json={'artistName': 'kat lin'})
        assert response.status_code == 200
        summary = json.loads(response.data)['data']
        assert summary['artist'] == {'id': keep, 'name': 'Kat Lin', 'created': False}
        assert summary['deletedArtists'] == 1
        assert summary['reassigned']['tattoo_sessions'] == 2
        with app.app_context():
            assert [a.id for a in db.session.query(Artist).all()] == [keep]
            assert {s.artist_id for s in db.session.query(TattooSession).all()} == {keep}
            assert db.session.query(Customer).one().preferred_artist_id == keep

    def test_creates_missing_artist(self, app, admin_client, artists):
        response = admin_client.post('/api/admin/maintenance/consolidate-artist',
                                     json={'artistName': 'Sol Reyes', 'artistEmail': 'sol@studio.test'})
        summary = json.loads(response.data)['data']
        assert summary['artist']['created'] is True
        assert summary['deletedArtists'] == 2

    def test_failure_rolls_back_everything(self, app, admin_client, artists):
        """A failure midway leaves artists and assignments untouched."""
        keep, other = artists
        calls = []

        def flaky_update(model):
            calls.append(model)
            if len(calls) == 2:
                raise OperationalError('UPDATE', {}, Exception('database is locked'))
            return sql_update(model)

        with patch('studio_admin.services.maintenance_service.update', side_effect=flaky_update):
            response = admin_client.post('/api/admin/maintenance/consolidate-artist',
                                         json={'artistName': 'Brand New'})
        assert response.status_code == 500
        assert json.loads(response.data)['error'] == 'A database error occurred'
        with app.app_context():
            assert {a.id for a in db.session.query(Artist).all()} == {keep, other}
            assert db.session.query(TattooSession).filter_by(artist_id=other).count() == 1
            assert db.session.query(Appointment).one().artist_id == other

    def test_requires_name(self, admin_client):
        response = admin_client.post('/api/admin/maintenance/consolidate-artist', json={'artistName': ''})
        assert response.status_code == 400


class TestHealth:
    def test_health_is_public(self, client):
        response = client.get('/api/health')
        assert response.status_code == 200
        report = json.loads(response.data)['data']
        assert report['status'] == 'healthy'
        assert report['checks']['database']['status'] == 'ok'
        assert report['checks']['websiteSync']['status'] == 'ok'
        assert report['checks']['monitoring']['status'] == 'disabled'

    def test_health_is_cached(self, app, client):
        client.get('/api/health')
        with patch('studio_admin.services.monitoring.check_database') as check:
            client.get('/api/health')
            check.assert_not_called()
            check.return_value = False
            response = client.get('/api/health?force=true')
        assert response.status_code == 503
        body = json.loads(response.data)
        assert body['success'] is False
        assert body['status'] == 503
        assert body['error'] == 'Service unhealthy: database'
        assert 'data' not in body

    def test_liveness_and_readiness(self, client):
        assert json.loads(client.get('/api/health/live').data)['data']['status'] == 'alive'
        assert client.get('/api/health/ready').status_code == 200
        with patch('studio_admin.blueprints.health.check_database', return_value=False):
            response = client.get('/api/health/ready')
        assert response.status_code == 503
        body = json.loads(response.data)
        assert body['success'] is False
        assert body['error'] == 'Service not ready: DATABASE'
