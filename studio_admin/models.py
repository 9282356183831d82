from contextlib import contextmanager
import logging
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from studio_core.models import (
    Base, User, AuthSession, Artist, Customer, Appointment, TattooSession,
    TattooDesign, Payment, FormSubmission, Setting, now
)

logger = logging.getLogger(__name__)
db = SQLAlchemy(model_class=Base)


@contextmanager
def unit_of_work():
    """Run a block of writes as one transaction.

    Commits when the block exits normally and rolls back every change made
    inside it when anything raises, then re-raises the original exception.
    """
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Transaction rolled back after database error: {e}")
        raise
    except Exception:
        db.session.rollback()
        raise


def check_database():
    """Return True when a trivial query succeeds against the configured database."""
    try:
        db.session.execute(text('SELECT 1'))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        db.session.rollback()
        return False
