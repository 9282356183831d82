"""Push gallery media to the public website.

The website exposes ``POST <WEBSITE_API_URL>/gallery/sync``. Calls are
bounded by a timeout and never fail the admin operation that triggered them.
"""
import logging
from typing import Optional
import requests
from sqlalchemy.exc import SQLAlchemyError
from studio_core.schemas import MediaSyncPayload
from studio_core.models import TattooDesign
from ..errors import ExternalServiceError
from ..utils import with_retry

logger = logging.getLogger(__name__)

SYNC_PATH = '/gallery/sync'


class WebsiteSyncService:
    """Client for the public website's gallery sync endpoint."""

    def __init__(self, api_url: Optional[str], api_key: Optional[str], admin_source: str = 'studio-admin',
                 timeout: float = 5.0, max_attempts: int = 1, http: Optional[requests.Session] = None):
        self.api_url = api_url.rstrip('/') if api_url else None
        self.api_key = api_key
        self.admin_source = admin_source
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.http = http or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.api_url and self.api_key)

    @property
    def endpoint(self) -> Optional[str]:
        return f"{self.api_url}{SYNC_PATH}" if self.api_url else None

    def build_payload(self, design: TattooDesign, is_public: Optional[bool] = None) -> MediaSyncPayload:
        return MediaSyncPayload(
            id=design.id,
            title=design.title,
            description=design.description,
            style=design.style,
            tags=list(design.tags or []),
            media_url=design.media_url,
            media_type=design.media_type,
            artist_name=design.artist.name if design.artist else None,
            is_public=design.is_public if is_public is None else is_public,
            estimated_hours=design.estimated_hours or 0.0,
            source=self.admin_source,
            created_at=design.created_at,
            updated_at=design.updated_at or design.created_at,
        )

    def _post(self, payload: MediaSyncPayload) -> dict:
        try:
            response = self.http.post(
                self.endpoint,
                json=payload.model_dump(mode='json', by_alias=True),
                headers={
                    'Authorization': f"Bearer {self.api_key}",
                    'X-Admin-Source': self.admin_source,
                },
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise ExternalServiceError(f"Website sync timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise ExternalServiceError(f"Website sync request failed: {e}") from e

        if not response.ok:
            raise ExternalServiceError(
                f"Failed to sync to main website: {response.status_code} {response.reason}",
                details={'status': response.status_code},
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    def push(self, payload: MediaSyncPayload) -> dict:
        """Send ``payload`` to the website, raising ExternalServiceError on failure."""
        if not self.enabled:
            raise ExternalServiceError("Website sync is not configured")
        return with_retry(self._post, payload, attempts=self.max_attempts, retry_on=(ExternalServiceError,))

    def sync_media(self, design: TattooDesign, unsync: bool = False) -> bool:
        """Best-effort sync of one media record.

        Returns True only when the website acknowledged the update. Delivery
        and lookup failures are logged and reported as False; anything else
        is a bug and propagates.
        """
        if not self.enabled:
            logger.info(f"Website sync skipped for media {design.id}: sync is not configured")
            return False
        try:
            payload = self.build_payload(design, is_public=False if unsync else None)
            self.push(payload)
        except ExternalServiceError as e:
            logger.error(f"Website sync failed for media {design.id}: {e.message}")
            return False
        except SQLAlchemyError as e:
            logger.error(f"Website sync failed for media {design.id}: {e}", exc_info=True)
            return False
        action = 'unsynced from' if unsync else 'synced to'
        logger.info(f"Media {design.id} {action} website")
        return True
