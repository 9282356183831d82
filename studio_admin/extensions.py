"""Service container attached to the Flask app.

Handlers fetch collaborators through ``get_services()`` instead of module
globals, so tests can swap any of them on ``app.extensions['studio']``.
"""
from dataclasses import dataclass
from flask import current_app
from .services.blob_storage import BlobStorageService
from .services.csrf import CsrfProtector
from .services.monitoring import HealthChecker, MonitoringService
from .services.rate_limiter import FixedWindowRateLimiter
from .services.session_service import SessionStore
from .services.settings_service import SettingsService
from .services.upload_service import MediaUploadService
from .services.website_sync import WebsiteSyncService

EXTENSION_KEY = 'studio'


@dataclass
class StudioServices:
    sessions: SessionStore
    csrf: CsrfProtector
    rate_limiter: FixedWindowRateLimiter
    website_sync: WebsiteSyncService
    storage: BlobStorageService
    uploads: MediaUploadService
    settings: SettingsService
    monitoring: MonitoringService
    health: HealthChecker


def build_services(config) -> StudioServices:
    storage = BlobStorageService(
        provider_name=config['STORAGE_PROVIDER'],
        bucket_name=config['STORAGE_BUCKET'],
        local_path=config['STORAGE_LOCAL_PATH'],
        access_key=config.get('STORAGE_ACCESS_KEY'),
        secret_key=config.get('STORAGE_SECRET_KEY'),
        region=config.get('STORAGE_REGION', 'us-east-1'),
        public_url=config.get('STORAGE_PUBLIC_URL'),
    )
    return StudioServices(
        sessions=SessionStore(lifetime_hours=config['SESSION_LIFETIME_HOURS']),
        csrf=CsrfProtector(config['SECRET_KEY'], max_age_seconds=config['SESSION_LIFETIME_HOURS'] * 3600),
        rate_limiter=FixedWindowRateLimiter(),
        website_sync=WebsiteSyncService(
            api_url=config.get('WEBSITE_API_URL'),
            api_key=config.get('WEBSITE_API_KEY'),
            admin_source=config.get('ADMIN_SOURCE', 'studio-admin'),
            timeout=config.get('SYNC_TIMEOUT_SECONDS', 5.0),
            max_attempts=config.get('SYNC_MAX_ATTEMPTS', 1),
        ),
        storage=storage,
        uploads=MediaUploadService(storage),
        settings=SettingsService(),
        monitoring=MonitoringService(config.get('MONITORING_WEBHOOK_URL'), environment=config.get('ENVIRONMENT')),
        health=HealthChecker(cache_seconds=config.get('HEALTH_CACHE_SECONDS', 30)),
    )


def init_services(app) -> StudioServices:
    services = build_services(app.config)
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> StudioServices:
    return current_app.extensions[EXTENSION_KEY]
