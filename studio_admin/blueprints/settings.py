"""Studio settings blueprint."""
import logging
from flask import Blueprint, g
from studio_core.schemas import SettingsUpdate
from ..base.validation import Presets, with_validation
from ..envelope import success_response
from ..errors import ValidationError
from ..extensions import get_services

logger = logging.getLogger(__name__)

bp = Blueprint('settings', __name__, url_prefix='/api/admin')


@bp.route('/settings', methods=['GET'])
@with_validation(Presets.RESOURCE_READ)
def get_settings():
    settings = get_services().settings
    settings.initialize_defaults()
    return settings.get_settings()


@bp.route('/settings', methods=['PUT', 'PATCH'])
@with_validation(Presets.SETTINGS_WRITE.replace(body_schema=SettingsUpdate))
def update_settings():
    """Apply a partial settings update; unknown categories never reach here."""
    updates = g.validated_body.flattened()
    if not updates:
        raise ValidationError("Validation error: no settings to update")
    settings = get_services().settings
    settings.initialize_defaults()
    return success_response(settings.update_settings(updates), message="Settings updated successfully")
