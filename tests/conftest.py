"""Pytest configuration and fixtures for studio admin tests."""
import pytest
from werkzeug.security import generate_password_hash
from studio_core.enums import UserRole
from studio_admin.app import create_app
from studio_admin.extensions import get_services
from studio_admin.models import db, Artist, Customer, User

ADMIN_PASSWORD = 'correct-horse-battery'


@pytest.fixture
def app(tmp_path):
    """Create and configure a test app instance."""
    test_config = {
        'TESTING': True,
        'ENVIRONMENT': 'test',
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'studio.db'}",
        'SECRET_KEY': 'test-secret-key-that-is-long-enough-for-signing',
        'LOG_DIR': str(tmp_path / 'logs'),
        'LOG_LEVEL': 'DEBUG',
        'STORAGE_PROVIDER': 'local',
        'STORAGE_LOCAL_PATH': str(tmp_path / 'uploads'),
        'STORAGE_BUCKET': 'media',
        'WEBSITE_API_URL': 'https://website.example.com/api',
        'WEBSITE_API_KEY': 'website-key',
        'WEBSITE_PUBLIC_URL': 'https://website.example.com',
        'ADMIN_SOURCE': 'studio-admin',
        'MONITORING_WEBHOOK_URL': None,
        'SYNC_MAX_ATTEMPTS': 1,
    }

    app = create_app(test_config)

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


def _make_user(app, email, role):
    with app.app_context():
        user = User(email=email, name=email.split('@')[0].title(), role=role,
                    password_hash=generate_password_hash(ADMIN_PASSWORD), email_verified=True)
        db.session.add(user)
        db.session.commit()
        return user.id


def _bearer_client(app, user_id):
    with app.app_context():
        user = db.session.get(User, user_id)
        token = get_services().sessions.create(user).token
    client = app.test_client()
    client.environ_base['HTTP_AUTHORIZATION'] = f'Bearer {token}'
    return client


@pytest.fixture
def admin_user(app):
    return _make_user(app, 'owner@studio.test', UserRole.ADMIN)


@pytest.fixture
def staff_user(app):
    return _make_user(app, 'staff@studio.test', UserRole.STAFF)


@pytest.fixture
def admin_client(app, admin_user):
    """A client authenticated as an admin through a Bearer token."""
    return _bearer_client(app, admin_user)


@pytest.fixture
def staff_client(app, staff_user):
    """A client authenticated as a non-admin user."""
    return _bearer_client(app, staff_user)


@pytest.fixture
def artist(app):
    with app.app_context():
        artist = Artist(name='Kat Lin', email='kat@studio.test', specialties=['Fine Line'], hourly_rate=150.0)
        db.session.add(artist)
        db.session.commit()
        return artist.id


@pytest.fixture
def customer(app):
    with app.app_context():
        customer = Customer(first_name='Jane', last_name='Doe', email='jane@example.com', phone='+1 555 123 4567')
        db.session.add(customer)
        db.session.commit()
        return customer.id
