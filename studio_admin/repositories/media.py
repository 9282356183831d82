"""Gallery media persistence operations."""
import logging
from typing import Optional
from flask import current_app
from sqlalchemy import or_, select
from studio_core.schemas import MediaResponse, dump
from studio_core.utils import media_type_for_url
from ..errors import NotFoundError
from ..models import db, unit_of_work, Artist, TattooDesign, now
from .base import apply_changes, paginate, require

logger = logging.getLogger(__name__)


def website_url_for(design_id) -> Optional[str]:
    base = current_app.config.get('WEBSITE_PUBLIC_URL')
    return f"{base}/gallery/{design_id}" if base else None


def serialize_media(design, synced: Optional[bool] = None):
    extra = {
        'imageUrl': design.media_url,
        'artistName': design.artist.name if design.artist else None,
        'websiteUrl': website_url_for(design.id) if design.is_public else None,
    }
    if synced is not None:
        extra['syncedToWebsite'] = synced
    return dump(MediaResponse, design, **extra)


def default_artist() -> Artist:
    """Return the artist new media is credited to when none is given."""
    artist = db.session.execute(
        select(Artist).where(Artist.is_active.is_(True)).order_by(Artist.created_at)
    ).scalars().first()
    if artist is None:
        artist = db.session.execute(select(Artist).order_by(Artist.created_at)).scalars().first()
    if artist is None:
        raise NotFoundError("Artist not found")
    return artist


def list_media(query):
    statement = select(TattooDesign).order_by(TattooDesign.created_at.desc())
    if query.media_type:
        statement = statement.where(TattooDesign.media_type == query.media_type)
    if query.is_public is not None:
        statement = statement.where(TattooDesign.is_public.is_(query.is_public))
    if query.artist_id:
        statement = statement.where(TattooDesign.artist_id == query.artist_id)
    if query.search:
        term = f"%{query.search}%"
        statement = statement.where(or_(TattooDesign.title.ilike(term),
                                        TattooDesign.description.ilike(term),
                                        TattooDesign.style.ilike(term)))
    return paginate(statement, query.limit, query.offset, serialize_media)


def get_media(media_id) -> Optional[TattooDesign]:
    return db.session.get(TattooDesign, media_id)


def create_media(data) -> TattooDesign:
    values = data.model_dump(exclude={'sync_to_website'})
    if values.get('artist_id'):
        require(Artist, values['artist_id'], 'Artist')
    else:
        values['artist_id'] = default_artist().id
    if not values.get('media_type'):
        values['media_type'] = media_type_for_url(values['media_url']).value
    with unit_of_work() as session:
        design = TattooDesign(**values)
        session.add(design)
    logger.info(f"Created media {design.id} ({design.media_type.value})")
    return design


def update_media(media_id, data) -> Optional[TattooDesign]:
    design = db.session.get(TattooDesign, media_id)
    if design is None:
        return None
    changes = {key: value for key, value in data.model_dump(exclude_unset=True, exclude={'sync_to_website'}).items()
               if value is not None or key == 'description'}
    require(Artist, changes.get('artist_id'), 'Artist')
    with unit_of_work():
        apply_changes(design, changes)
    return design


def delete_media(media_id) -> Optional[str]:
    """Delete a media record and return its URL, or None when it did not exist."""
    design = db.session.get(TattooDesign, media_id)
    if design is None:
        return None
    media_url = design.media_url
    with unit_of_work() as session:
        session.delete(design)
    logger.info(f"Deleted media {media_id}")
    return media_url


def mark_synced(design: TattooDesign, synced: bool = True):
    """Record a website push, or clear the record after a withdrawal."""
    with unit_of_work():
        design.synced_at = now() if synced else None
    return design
