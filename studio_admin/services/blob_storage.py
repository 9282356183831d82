"""Media blob storage using Apache Libcloud."""

import logging
import os
from threading import Lock
from libcloud.storage.types import Provider, ObjectDoesNotExistError
from libcloud.storage.providers import get_driver
from ..errors import ExternalServiceError
from ..utils import with_retry


logger = logging.getLogger(__name__)

LOCAL_PUBLIC_PREFIX = '/uploads'


class BlobStorageService:
    """Store uploaded media in a libcloud container.

    The ``local`` provider keeps objects on disk below ``local_path`` and is
    served by the app under ``/uploads``; the cloud providers need access
    credentials. The driver and container are created lazily on first use.
    """

    def __init__(self, provider_name='local', bucket_name='media', local_path='./uploads',
                 access_key=None, secret_key=None, region='us-east-1', public_url=None):
        self.provider_name = provider_name
        self.bucket_name = bucket_name
        self.local_path = os.path.abspath(local_path)
        self.access_key = access_key
        self.secret_key = secret_key
        self.region = region
        self.public_url = public_url.rstrip('/') if public_url else None
        self._driver = None
        self._container = None
        self._lock = Lock()
        self.upload_attempts = 3
        self.retry_wait = 1

        if provider_name != 'local' and not all([access_key, secret_key, bucket_name]):
            raise ValueError("Cloud storage configuration incomplete. Check STORAGE_* environment variables.")

    @property
    def is_local(self):
        return self.provider_name == 'local'

    @property
    def container_path(self):
        """Directory holding local objects (only meaningful for the local provider)."""
        return os.path.join(self.local_path, self.bucket_name)

    def _get_driver(self):
        """Get the appropriate libcloud driver based on provider."""
        provider_map = {
            'local': Provider.LOCAL,
            's3': Provider.S3,
            'gcs': Provider.GOOGLE_STORAGE,
            'azure': Provider.AZURE_BLOBS,
            'minio': Provider.S3,  # MinIO uses S3 driver
        }

        if self.provider_name not in provider_map:
            raise ValueError(f"Unsupported provider: {self.provider_name}")

        driver_cls = get_driver(provider_map[self.provider_name])
        if self.is_local:
            os.makedirs(self.local_path, exist_ok=True)
            return driver_cls(self.local_path)

        kwargs = {
            'key': self.access_key,
            'secret': self.secret_key,
        }
        if self.provider_name == 's3':
            kwargs['region'] = self.region
        return driver_cls(**kwargs)

    def _get_container(self):
        """Get or create the storage container/bucket."""
        try:
            return self.driver.get_container(container_name=self.bucket_name)
        except Exception:
            logger.info(f"Creating container: {self.bucket_name}")
            return self.driver.create_container(container_name=self.bucket_name)

    @property
    def driver(self):
        if self._driver is None:
            with self._lock:
                if self._driver is None:
                    self._driver = self._get_driver()
                    logger.info(f"Blob storage initialized with provider: {self.provider_name}")
        return self._driver

    @property
    def container(self):
        if self._container is None:
            self.driver  # takes the lock itself, so resolve it first
            with self._lock:
                if self._container is None:
                    self._container = self._get_container()
        return self._container

    def public_url_for(self, object_name, obj=None):
        if self.public_url:
            return f"{self.public_url}/{object_name}"
        if self.is_local:
            return f"{LOCAL_PUBLIC_PREFIX}/{object_name}"
        if obj is not None and hasattr(obj, 'get_cdn_url'):
            return obj.get_cdn_url()
        return self.driver.get_object_cdn_url(self.driver.get_object(self.bucket_name, object_name))

    def _upload_object(self, data, object_name, content_type):
        """Stream ``data`` to the container, retrying transient I/O failures."""
        return with_retry(self._stream_object, data, object_name, content_type,
                          attempts=self.upload_attempts, retry_on=(OSError, ConnectionError),
                          wait_min=self.retry_wait, wait_max=10)

    def _stream_object(self, data, object_name, content_type):
        def chunk_iterator():
            chunk_size = 64 * 1024
            for start in range(0, len(data), chunk_size):
                yield data[start:start + chunk_size]

        logger.info(f"Uploading {len(data)} bytes to {object_name} (streaming)")
        return self.driver.upload_object_via_stream(
            iterator=chunk_iterator(),
            container=self.container,
            object_name=object_name,
            extra={'content_type': content_type}
        )

    def upload_bytes(self, data, object_name, content_type):
        """
        Upload ``data`` and return its public URL.

        Raises:
            ExternalServiceError: If the storage backend rejects the upload
        """
        try:
            obj = self._upload_object(data, object_name, content_type)
        except Exception as e:
            logger.error(f"Failed to upload {object_name}: {e}", exc_info=True)
            raise ExternalServiceError("Failed to store uploaded file") from e
        return self.public_url_for(object_name, obj)

    def object_name_for_url(self, url):
        """Return the object name for a URL this service produced, else None."""
        prefix = self.public_url or (LOCAL_PUBLIC_PREFIX if self.is_local else None)
        if prefix and url and url.startswith(prefix + '/'):
            return url[len(prefix) + 1:]
        return None

    def delete_object(self, object_name):
        """Delete an object; failures are logged, not raised."""
        try:
            obj = self.driver.get_object(self.bucket_name, object_name)
            self.driver.delete_object(obj)
            logger.info(f"Deleted media object: {object_name}")
            return True
        except ObjectDoesNotExistError:
            logger.warning(f"Media object already gone: {object_name}")
        except Exception as e:
            logger.error(f"Failed to delete media object {object_name}: {e}")
        return False
