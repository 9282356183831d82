"""Tests for media inspection utilities."""
import io
import pytest
from PIL import Image
from studio_core.enums import MediaType
from studio_core.utils import (
    CorruptedImageError, compute_media_hash, inspect_image, looks_executable, matches_signature,
    media_type_for_mime, media_type_for_url
)


def make_image(fmt='JPEG', size=(32, 24)):
    buffer = io.BytesIO()
    Image.new('RGB', size, color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


class TestSignatures:
    def test_image_signatures(self):
        assert matches_signature('image/jpeg', make_image('JPEG')[:16])
        assert matches_signature('image/png', make_image('PNG')[:16])
        assert matches_signature('image/gif', make_image('GIF')[:16])
        assert matches_signature('image/webp', b'RIFF\x00\x00\x00\x00WEBPVP8 ')

    def test_mismatch(self):
        assert not matches_signature('image/jpeg', make_image('PNG')[:16])
        assert not matches_signature('image/jpeg', b'not an image at all')

    def test_video_signatures(self):
        assert matches_signature('video/mp4', b'\x00\x00\x00\x18ftypmp42')
        assert matches_signature('video/quicktime', b'\x00\x00\x00\x08wide\x00\x00')
        assert matches_signature('video/webm', b'\x1a\x45\xdf\xa3\x01\x00')

    def test_unknown_type_never_matches(self):
        assert not matches_signature('application/pdf', b'%PDF-1.7')

    def test_executables(self):
        assert looks_executable(b'MZ\x90\x00')
        assert looks_executable(b'\x7fELF\x02')
        assert looks_executable(b'#!/bin/sh')
        assert not looks_executable(make_image()[:16])


def test_media_type_helpers():
    assert media_type_for_mime('image/png') == MediaType.PHOTO
    assert media_type_for_mime('video/webm') == MediaType.VIDEO
    assert media_type_for_mime('text/html') is None
    assert media_type_for_url('https://cdn.example.com/a/b.MP4?v=2') == MediaType.VIDEO
    assert media_type_for_url('/uploads/gallery/photos/rose.jpg') == MediaType.PHOTO


def test_inspect_image_reports_dimensions():
    assert inspect_image(make_image('PNG', (40, 10))) == ('PNG', 40, 10)


def test_inspect_image_corrupted():
    """Truncated data with a valid header is reported as corrupted."""
    with pytest.raises(CorruptedImageError):
        inspect_image(b'\xff\xd8\xff\xe0' + b'\x00' * 20)


def test_media_hash_bytes_and_stream():
    data = make_image()
    assert compute_media_hash(data) == compute_media_hash(io.BytesIO(data))
    assert len(compute_media_hash(data)) == 64
