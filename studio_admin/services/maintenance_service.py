"""Data repair operations run by administrators."""
import logging
import re
from sqlalchemy import select, update
from ..errors import ValidationError
from ..models import unit_of_work, db, Artist, Appointment, Customer, TattooDesign, TattooSession

logger = logging.getLogger(__name__)


def _placeholder_email(name):
    slug = re.sub(r'[^a-z0-9]+', '.', name.lower()).strip('.') or 'artist'
    return f"{slug}@studio.local"


def consolidate_artist(artist_name, artist_email=None):
    """Make one artist own every record and delete all other artists.

    The primary artist is found by name (case-insensitive) and created when
    missing. Reassignment and deletion happen in a single transaction, so a
    failure at any step leaves the database exactly as it was.

    Returns:
        dict: Summary with the primary artist and the number of rows moved
    """
    if not artist_name or not artist_name.strip():
        raise ValidationError("Validation error: artistName: Artist name is required")

    with unit_of_work() as session:
        primary = session.execute(
            select(Artist).where(Artist.name.ilike(artist_name.strip())).order_by(Artist.created_at)
        ).scalars().first()
        created = primary is None
        if created:
            primary = Artist(name=artist_name.strip(), email=artist_email or _placeholder_email(artist_name),
                             is_active=True, specialties=[])
            session.add(primary)
            session.flush()
            logger.info(f"Created primary artist {primary.id} ({primary.name})")

        others = [a.id for a in session.execute(select(Artist.id).where(Artist.id != primary.id)).all()]
        moved = {}
        for model, column, include_unassigned in (
            (TattooSession, TattooSession.artist_id, True),
            (Appointment, Appointment.artist_id, True),
            (TattooDesign, TattooDesign.artist_id, True),
            (Customer, Customer.preferred_artist_id, False),
        ):
            criteria = column != primary.id
            if include_unassigned:
                criteria = criteria | column.is_(None)
            result = session.execute(
                update(model)
                .where(criteria)
                .values({column.key: primary.id})
                .execution_options(synchronize_session=False)
            )
            moved[model.__tablename__] = result.rowcount

        deleted = 0
        for artist_id in others:
            artist = session.get(Artist, artist_id)
            if artist is not None:
                session.delete(artist)
                deleted += 1
        session.flush()
        primary_id, primary_name = primary.id, primary.name

    db.session.expire_all()
    logger.info(f"Consolidated artists into {primary_id}: moved {moved}, deleted {deleted}")
    return {
        'artist': {'id': primary_id, 'name': primary_name, 'created': created},
        'reassigned': moved,
        'deletedArtists': deleted,
    }
