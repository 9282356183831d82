"""Administrative maintenance endpoints."""
import logging
from flask import Blueprint, g
from studio_core.schemas import ConsolidateArtistRequest
from ..base.validation import Presets, with_validation
from ..envelope import success_response
from ..services.maintenance_service import consolidate_artist

logger = logging.getLogger(__name__)

bp = Blueprint('maintenance', __name__, url_prefix='/api/admin')


@bp.route('/maintenance/consolidate-artist', methods=['POST'])
@with_validation(Presets.SYSTEM_ADMIN.replace(body_schema=ConsolidateArtistRequest))
def consolidate():
    """Reassign every record to one artist and remove the rest."""
    body = g.validated_body
    logger.warning(f"Artist consolidation requested by {g.studio_session.user_id} for '{body.artist_name}'")
    summary = consolidate_artist(body.artist_name, body.artist_email)
    return success_response(summary, message="Artist consolidation completed")
