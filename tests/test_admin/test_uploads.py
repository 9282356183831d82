"""Tests for media uploads and blob storage."""
import io
import json
from unittest.mock import Mock, patch
import pytest
from PIL import Image
from studio_admin.errors import ExternalServiceError, ValidationError
from studio_admin.services.blob_storage import BlobStorageService
from studio_admin.services.upload_service import MAX_PHOTO_SIZE, MediaUploadService


def jpeg_bytes(size=(20, 10)):
    buffer = io.BytesIO()
    Image.new('RGB', size, color=(10, 10, 10)).save(buffer, format='JPEG')
    return buffer.getvalue()


def upload(client, data, filename='flash.jpg', content_type='image/jpeg'):
    return client.post('/api/admin/media/upload', data={'file': (io.BytesIO(data), filename, content_type)},
                       content_type='multipart/form-data')


class TestUploadEndpoint:
    def test_photo_stored_and_served(self, admin_client):
        response = upload(admin_client, jpeg_bytes(), filename='../My Flash.jpg')
        assert response.status_code == 201
        stored = json.loads(response.data)['data']
        assert stored['mediaType'] == 'photo'
        assert stored['width'] == 20
        assert stored['height'] == 10
        assert stored['originalName'] == 'My_Flash.jpg'
        assert stored['objectName'].startswith('gallery/photos/')
        assert stored['url'] == f"/uploads/{stored['objectName']}"

        served = admin_client.get(stored['url'])
        assert served.status_code == 200
        assert served.data[:2] == b'\xff\xd8'

    def test_signature_mismatch_never_stored(self, app, admin_client):
        """A PNG body declared as JPEG is rejected before storage is touched."""
        buffer = io.BytesIO()
        Image.new('RGB', (4, 4)).save(buffer, format='PNG')
        storage = app.extensions['studio'].storage
        with patch.object(storage, 'upload_bytes') as upload_bytes:
            response = upload(admin_client, buffer.getvalue())
        assert response.status_code == 400
        assert json.loads(response.data)['error'] == 'File content does not match its declared type'
        upload_bytes.assert_not_called()

    def test_disallowed_type(self, admin_client):
        response = upload(admin_client, b'%PDF-1.7 fake document', filename='doc.pdf', content_type='application/pdf')
        assert response.status_code == 400
        assert json.loads(response.data)['error'] == "File type 'application/pdf' is not allowed"

    def test_executable_rejected(self, admin_client):
        response = upload(admin_client, b'MZ' + b'\x00' * 64, filename='x.jpg')
        assert response.status_code == 400
        assert json.loads(response.data)['error'] == 'Executable content is not allowed'

    def test_missing_file(self, admin_client):
        response = admin_client.post('/api/admin/media/upload', data={'other': 'x'},
                                     content_type='multipart/form-data')
        assert response.status_code == 400
        assert json.loads(response.data)['error'] == 'No file provided'

    def test_requires_admin(self, client):
        assert upload(client, jpeg_bytes()).status_code == 401

    def test_storage_failure_is_502(self, app, admin_client):
        storage = app.extensions['studio'].storage
        with patch.object(storage, '_upload_object', side_effect=RuntimeError('bucket gone')):
            response = upload(admin_client, jpeg_bytes())
        assert response.status_code == 502
        assert json.loads(response.data)['error'] == 'Failed to store uploaded file'


class TestUploadValidation:
    def setup_method(self):
        self.service = MediaUploadService(storage=Mock())

    def test_video_signature(self):
        data = b'\x00\x00\x00\x18ftypmp42' + b'\x00' * 32
        media_type, name, width, height = self.service.validate('clip.mp4', 'video/mp4', data)
        assert media_type.value == 'video'
        assert (width, height) == (None, None)

    def test_photo_size_limit(self):
        data = b'\xff\xd8' + b'\x00' * MAX_PHOTO_SIZE
        with pytest.raises(ValidationError, match='limited to 10MB'):
            self.service.validate('big.jpg', 'image/jpeg', data)

    def test_truncated_file(self):
        with pytest.raises(ValidationError, match='empty or truncated'):
            self.service.validate('tiny.jpg', 'image/jpeg', b'\xff\xd8\xff')

    def test_corrupted_image(self):
        with pytest.raises(ValidationError, match='corrupted'):
            self.service.validate('bad.jpg', 'image/jpeg', b'\xff\xd8\xff\xe0' + b'\x00' * 40)

    def test_object_naming(self):
        self.service.storage.upload_bytes.return_value = 'https://cdn.example.com/x'
        file_storage = Mock(filename='Rose Sleeve.jpg', mimetype='image/jpeg', stream=io.BytesIO(jpeg_bytes()))
        stored = self.service.store(file_storage)
        object_name = self.service.storage.upload_bytes.call_args.args[1]
        assert object_name.startswith('gallery/photos/')
        assert object_name.endswith('-Rose_Sleeve.jpg')
        assert stored.url == 'https://cdn.example.com/x'
        assert len(stored.sha256) == 64


class TestBlobStorage:
    @patch('studio_admin.services.blob_storage.get_driver')
    def test_cloud_driver_initialization(self, mock_get_driver):
        driver_cls = Mock()
        mock_get_driver.return_value = driver_cls
        service = BlobStorageService(provider_name='s3', bucket_name='studio', access_key='k', secret_key='s',
                                     region='eu-west-1')
        assert service.driver is driver_cls.return_value
        driver_cls.assert_called_once_with(key='k', secret='s', region='eu-west-1')

    def test_cloud_requires_credentials(self):
        with pytest.raises(ValueError, match='configuration incomplete'):
            BlobStorageService(provider_name='s3', bucket_name='studio')

    @patch('studio_admin.services.blob_storage.get_driver')
    def test_public_url_prefix(self, mock_get_driver):
        driver = mock_get_driver.return_value.return_value
        service = BlobStorageService(provider_name='s3', access_key='k', secret_key='s',
                                     public_url='https://media.example.com/')
        url = service.upload_bytes(b'data', 'gallery/photos/a.jpg', 'image/jpeg')
        assert url == 'https://media.example.com/gallery/photos/a.jpg'
        assert driver.upload_object_via_stream.call_args.kwargs['extra'] == {'content_type': 'image/jpeg'}
        assert service.object_name_for_url(url) == 'gallery/photos/a.jpg'
        assert service.object_name_for_url('https://elsewhere.example.com/a.jpg') is None

    def test_local_round_trip(self, tmp_path):
        service = BlobStorageService(local_path=str(tmp_path))
        url = service.upload_bytes(b'hello world!', 'gallery/photos/a.jpg', 'image/jpeg')
        assert url == '/uploads/gallery/photos/a.jpg'
        assert (tmp_path / 'media' / 'gallery' / 'photos' / 'a.jpg').read_bytes() == b'hello world!'
        assert service.delete_object('gallery/photos/a.jpg') is True
        assert service.delete_object('gallery/photos/a.jpg') is False

    def test_upload_failure(self):
        service = BlobStorageService(local_path='/tmp/unused')
        with patch.object(service, '_upload_object', side_effect=OSError('disk full')):
            with pytest.raises(ExternalServiceError):
                service.upload_bytes(b'x', 'a.jpg', 'image/jpeg')

    def test_transient_failure_is_retried(self):
        service = BlobStorageService(local_path='/tmp/unused')
        service.retry_wait = 0
        stored = Mock()
        with patch.object(service, '_stream_object', side_effect=[OSError('busy'), stored]) as stream:
            assert service._upload_object(b'x', 'a.jpg', 'image/jpeg') is stored
        assert stream.call_count == 2

    def test_retries_stop_after_three_attempts(self):
        service = BlobStorageService(local_path='/tmp/unused')
        service.retry_wait = 0
        with patch.object(service, '_stream_object', side_effect=ConnectionError('reset')) as stream:
            with pytest.raises(ExternalServiceError):
                service.upload_bytes(b'x', 'a.jpg', 'image/jpeg')
        assert stream.call_count == 3
