"""Gallery media blueprint: records, uploads and website sync."""
import logging
import os
from flask import Blueprint, abort, g, request, send_from_directory
from studio_core.schemas import MediaCreate, MediaQuery, MediaSyncRequest, MediaUpdate
from ..base.validation import Presets, with_validation
from ..envelope import success_response
from ..errors import NotFoundError, ValidationError
from ..extensions import get_services
from ..repositories.media import (
    create_media, delete_media, get_media, list_media, mark_synced, serialize_media, update_media
)

logger = logging.getLogger(__name__)

bp = Blueprint('media', __name__, url_prefix='/api/admin')
files_bp = Blueprint('media_files', __name__)


def _sync(design, unsync=False):
    """Best-effort website sync.

    A successful push records the sync time and a successful withdrawal
    clears it.
    """
    synced = get_services().website_sync.sync_media(design, unsync=unsync)
    if synced:
        mark_synced(design, synced=not unsync)
    return synced


@bp.route('/media', methods=['GET'])
@with_validation(Presets.RESOURCE_READ.replace(query_schema=MediaQuery))
def media_list():
    return list_media(g.validated_query)


@bp.route('/media/<string:media_id>', methods=['GET'])
@with_validation(Presets.RESOURCE_READ)
def media_detail(media_id):
    design = get_media(media_id)
    if design is None:
        raise NotFoundError("Media not found")
    return serialize_media(design)


@bp.route('/media', methods=['POST'])
@with_validation(Presets.RESOURCE_WRITE.replace(body_schema=MediaCreate))
def media_create():
    """Create a media record, optionally pushing it to the public website.

    A failed push never fails the request; it only shows up as
    ``syncedToWebsite: false``.
    """
    body = g.validated_body
    design = create_media(body)
    synced = _sync(design) if body.sync_to_website else False
    return success_response(serialize_media(design, synced=synced), message="Media created successfully", status=201)


@bp.route('/media/<string:media_id>', methods=['PUT', 'PATCH'])
@with_validation(Presets.RESOURCE_WRITE.replace(body_schema=MediaUpdate))
def media_update(media_id):
    body = g.validated_body
    if not body.model_dump(exclude_unset=True, exclude={'sync_to_website'}) and not body.sync_to_website:
        raise ValidationError("Validation error: no fields to update")
    design = update_media(media_id, body)
    if design is None:
        raise NotFoundError("Media not found")
    synced = _sync(design, unsync=not design.is_public) if body.sync_to_website else False
    return success_response(serialize_media(design, synced=synced), message="Media updated successfully")


@bp.route('/media/<string:media_id>', methods=['DELETE'])
@with_validation(Presets.RESOURCE_DELETE)
def media_delete(media_id):
    design = get_media(media_id)
    if design is None:
        raise NotFoundError("Media not found")
    services = get_services()
    if design.synced_at is not None:
        services.website_sync.sync_media(design, unsync=True)
    media_url = delete_media(media_id)
    object_name = services.storage.object_name_for_url(media_url)
    if object_name:
        services.storage.delete_object(object_name)
    return success_response({'id': media_id}, message="Media deleted successfully")


@bp.route('/media/upload', methods=['POST'])
@with_validation(Presets.MEDIA_UPLOAD)
def media_upload():
    """Accept one multipart ``file`` and store it after validation."""
    if request.mimetype != 'multipart/form-data':
        raise ValidationError("Upload must be multipart/form-data")
    uploaded = request.files.get('file')
    if uploaded is None or not uploaded.filename:
        raise ValidationError("No file provided")
    stored = get_services().uploads.store(uploaded)
    return success_response(stored.to_dict(), message="File uploaded successfully", status=201)


@bp.route('/media/sync', methods=['POST'])
@with_validation(Presets.RESOURCE_WRITE.replace(allowed_methods=('POST',), body_schema=MediaSyncRequest))
def media_sync():
    """Explicitly push a media record to, or withdraw it from, the website."""
    body = g.validated_body
    design = get_media(body.media_id)
    if design is None:
        raise NotFoundError("Media not found")
    unsync = body.action == 'unsync'
    synced = _sync(design, unsync=unsync)
    message = "Media synced to website" if synced else "Media could not be synced to website"
    return success_response({
        'mediaId': design.id,
        'action': body.action,
        'syncedToWebsite': synced,
        'syncedAt': design.synced_at.isoformat() + 'Z' if design.synced_at else None,
    }, message=message)


@files_bp.route('/uploads/<path:object_name>', methods=['GET'])
def uploaded_file(object_name):
    """Serve files stored by the local storage provider."""
    storage = get_services().storage
    if not storage.is_local:
        abort(404)
    return send_from_directory(os.path.abspath(storage.container_path), object_name)
