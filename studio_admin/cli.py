import click
import logging
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import select
from werkzeug.security import generate_password_hash
from studio_core.enums import UserRole
from studio_core.validation import ValidationError, validate_email
from .extensions import get_services
from .models import db, check_database, Artist, User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


@click.command('init-db')
@click.option('--artist-name', default=None, help='Create the primary artist if no artist exists.')
@click.option('--artist-email', default=None, help='Email for the primary artist.')
@with_appcontext
def init_db_command(artist_name, artist_email):
    """Create missing tables and seed default settings."""
    logger.info("Creating database tables and schema")
    db.create_all()
    logger.info("Database tables created successfully")

    added = get_services().settings.initialize_defaults()
    click.echo(f"Seeded {added} default settings.")

    if artist_name:
        existing = db.session.execute(select(Artist).limit(1)).scalar_one_or_none()
        if existing is None:
            email = artist_email or f"{artist_name.lower().replace(' ', '.')}@studio.local"
            db.session.add(Artist(name=artist_name, email=email, is_active=True, specialties=[]))
            db.session.commit()
            logger.info(f"Created primary artist '{artist_name}'")
            click.echo(f"Created artist {artist_name}.")
        else:
            click.echo("An artist already exists; skipping artist creation.")
    click.echo('Initialized the database.')


@click.command('create-admin')
@click.option('--email', required=True)
@click.option('--name', default='Administrator')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice([role.value for role in UserRole]), default=UserRole.ADMIN.value)
@with_appcontext
def create_admin_command(email, name, password, role):
    """Create a user, or reset the password and role of an existing one."""
    try:
        email = validate_email(email)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint='--email')
    if len(password) < MIN_PASSWORD_LENGTH:
        raise click.BadParameter(f"must be at least {MIN_PASSWORD_LENGTH} characters", param_hint='--password')

    user = db.session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(email=email, name=name, role=UserRole(role), email_verified=True)
        db.session.add(user)
        action = 'Created'
    else:
        user.role = UserRole(role)
        action = 'Updated'
    user.password_hash = generate_password_hash(password)
    db.session.commit()
    logger.info(f"{action} {role} user {user.id}")
    click.echo(f"{action} {role} user {email}.")


@click.command('db-health')
@with_appcontext
def db_health_command():
    """Check database connectivity and report the health summary."""
    report = get_services().health.report(current_app.config, force=True)
    for name, check in report['checks'].items():
        click.echo(f"{name}: {check['status']}")
    if not check_database():
        raise click.ClickException("Database is not reachable")
    click.echo(f"Overall: {report['status']}")


@click.command('purge-sessions')
@with_appcontext
def purge_sessions_command():
    """Delete expired sign-in sessions."""
    removed = get_services().sessions.purge_expired()
    click.echo(f"Removed {removed} expired sessions.")
