"""Environment configuration for the admin API.

Configuration is read from environment variables, validated once at startup
and copied into ``app.config``. Required values missing in production stop
the app from starting; in development they fall back to local defaults with
a warning.
"""
import logging
import os
import secrets
from typing import Literal, Mapping, Optional
from urllib.parse import urlparse
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = 'sqlite:///studio_admin.db'
MIN_SECRET_LENGTH = 32


class ConfigurationError(RuntimeError):
    """Raised when the environment does not describe a runnable deployment."""
    pass


class EnvConfig(BaseModel):
    environment: Literal['development', 'production', 'test'] = Field('development', alias='APP_ENV')
    database_url: Optional[str] = Field(None, alias='DATABASE_URL')
    auth_secret: Optional[str] = Field(None, alias='AUTH_SECRET')
    auth_base_url: Optional[str] = Field(None, alias='AUTH_BASE_URL')
    session_cookie_domain: Optional[str] = Field(None, alias='SESSION_COOKIE_DOMAIN')
    session_lifetime_hours: int = Field(24 * 7, ge=1, le=24 * 90, alias='SESSION_LIFETIME_HOURS')
    website_api_url: Optional[str] = Field(None, alias='WEBSITE_API_URL')
    website_api_key: Optional[str] = Field(None, alias='WEBSITE_API_KEY')
    website_public_url: Optional[str] = Field(None, alias='WEBSITE_PUBLIC_URL')
    admin_source: Optional[str] = Field(None, min_length=1, max_length=100, alias='ADMIN_SOURCE')
    sync_timeout: float = Field(5.0, gt=0, le=60, alias='SYNC_TIMEOUT_SECONDS')
    sync_max_attempts: int = Field(1, ge=1, le=5, alias='SYNC_MAX_ATTEMPTS')
    monitoring_webhook_url: Optional[str] = Field(None, alias='MONITORING_WEBHOOK_URL')
    storage_provider: Literal['local', 's3', 'gcs', 'azure', 'minio'] = Field('local', alias='STORAGE_PROVIDER')
    storage_local_path: str = Field('./uploads', alias='STORAGE_LOCAL_PATH')
    storage_bucket: str = Field('media', alias='STORAGE_BUCKET')
    storage_access_key: Optional[str] = Field(None, alias='STORAGE_ACCESS_KEY')
    storage_secret_key: Optional[str] = Field(None, alias='STORAGE_SECRET_KEY')
    storage_region: str = Field('us-east-1', alias='STORAGE_REGION')
    storage_public_url: Optional[str] = Field(None, alias='STORAGE_PUBLIC_URL')
    log_level: str = Field('INFO', alias='LOG_LEVEL')
    log_dir: Optional[str] = Field(None, alias='LOG_DIR')

    @field_validator('website_api_url', 'website_public_url', 'auth_base_url', 'storage_public_url')
    @classmethod
    def strip_trailing_slash(cls, v):
        if v:
            return v.rstrip('/')
        return v or None

    @field_validator('monitoring_webhook_url', 'website_api_key', 'session_cookie_domain',
                     'storage_access_key', 'storage_secret_key', 'database_url', 'auth_secret', 'admin_source')
    @classmethod
    def blank_is_unset(cls, v):
        return v or None

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]):
        aliases = {field.alias for field in cls.model_fields.values()}
        return cls.model_validate({key: value for key, value in environ.items() if key in aliases})


def load_config(environ: Optional[Mapping[str, str]] = None) -> dict:
    """Validate the environment and return a mapping for ``app.config``.

    Raises:
        ConfigurationError: If the environment is invalid, or if DATABASE_URL
            or AUTH_SECRET is missing or unusable in production
    """
    environ = os.environ if environ is None else environ
    try:
        env = EnvConfig.from_environ(environ)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = '.'.join(str(x) for x in error['loc'])
        raise ConfigurationError(f"Invalid environment configuration: {field}: {error['msg']}") from e

    production = env.environment == 'production'
    missing = [name for name, value in (('DATABASE_URL', env.database_url), ('AUTH_SECRET', env.auth_secret)) if not value]
    if missing and production:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    database_url = env.database_url
    if not database_url:
        logger.warning(f"DATABASE_URL is not set; using {DEFAULT_DATABASE_URL}")
        database_url = DEFAULT_DATABASE_URL

    auth_secret = env.auth_secret
    if auth_secret and len(auth_secret) < MIN_SECRET_LENGTH:
        if production:
            raise ConfigurationError(f"AUTH_SECRET must be at least {MIN_SECRET_LENGTH} characters")
        logger.warning(f"AUTH_SECRET is shorter than {MIN_SECRET_LENGTH} characters")
    if not auth_secret:
        logger.warning("AUTH_SECRET is not set; generated a temporary secret, sessions will not survive restarts")
        auth_secret = secrets.token_hex(32)

    # Sync requests identify the admin host unless a source name is configured
    admin_source = env.admin_source or urlparse(env.auth_base_url or '').netloc or 'studio-admin'

    if not (env.website_api_url and env.website_api_key):
        logger.info("WEBSITE_API_URL or WEBSITE_API_KEY not set; website sync is disabled")

    return {
        'ENVIRONMENT': env.environment,
        'SQLALCHEMY_DATABASE_URI': database_url,
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SECRET_KEY': auth_secret,
        'AUTH_BASE_URL': env.auth_base_url,
        'SESSION_COOKIE_DOMAIN': env.session_cookie_domain,
        'STUDIO_SESSION_COOKIE': 'studio_session',
        'CSRF_COOKIE_NAME': 'csrf_token',
        'CSRF_HEADER_NAME': 'X-CSRF-Token',
        'SESSION_LIFETIME_HOURS': env.session_lifetime_hours,
        'SESSION_COOKIE_SECURE': production,
        'WEBSITE_API_URL': env.website_api_url,
        'WEBSITE_API_KEY': env.website_api_key,
        'WEBSITE_PUBLIC_URL': env.website_public_url,
        'ADMIN_SOURCE': admin_source,
        'SYNC_TIMEOUT_SECONDS': env.sync_timeout,
        'SYNC_MAX_ATTEMPTS': env.sync_max_attempts,
        'MONITORING_WEBHOOK_URL': env.monitoring_webhook_url,
        'STORAGE_PROVIDER': env.storage_provider,
        'STORAGE_LOCAL_PATH': env.storage_local_path,
        'STORAGE_BUCKET': env.storage_bucket,
        'STORAGE_ACCESS_KEY': env.storage_access_key,
        'STORAGE_SECRET_KEY': env.storage_secret_key,
        'STORAGE_REGION': env.storage_region,
        'STORAGE_PUBLIC_URL': env.storage_public_url,
        'LOG_LEVEL': env.log_level,
        'LOG_DIR': env.log_dir,
        # Largest accepted upload (100MB video) plus multipart overhead
        'MAX_CONTENT_LENGTH': 101 * 1024 * 1024,
        'HEALTH_CACHE_SECONDS': 30,
    }
