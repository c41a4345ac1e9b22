"""
Listings Backend — Image Service Unit Tests
=============================================

What:  Content hashing, image name validation, fallback and storage.
How:   Each test gets its own ImageService over a temporary directory.
"""

import hashlib
from unittest.mock import patch

import pytest

from listings.exceptions import FileStorageError, NotFoundError, ValidationError
from listings.services.image_service import (
    ImageService,
    hash_image_bytes,
    hash_image_file,
)

ABC_SHA256 = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


class TestContentHash:
    """Tests for the content-derived naming scheme."""

    def test_hash_known_value(self):
        assert hash_image_bytes(b"abc") == ABC_SHA256 + ".jpg"

    def test_hash_is_deterministic(self):
        data = b"\x00\x01\x02 some image bytes"
        assert hash_image_bytes(data) == hash_image_bytes(data)

    def test_different_bytes_different_names(self):
        names = {hash_image_bytes(bytes([i])) for i in range(256)}
        assert len(names) == 256

    def test_hash_file_reads_current_content(self, tmp_path):
        path = tmp_path / "photo.jpg"
        path.write_bytes(b"abc")
        assert hash_image_file(path) == ABC_SHA256 + ".jpg"

        path.write_bytes(b"abcd")
        assert hash_image_file(path) == hashlib.sha256(b"abcd").hexdigest() + ".jpg"

    def test_hash_unreadable_file_uses_empty_content(self, tmp_path):
        assert hash_image_file(tmp_path / "missing.jpg") == EMPTY_SHA256 + ".jpg"


class TestFilenameValidation:
    """Tests for GET /image name checks."""

    @pytest.fixture(autouse=True)
    def _service(self, temp_image_dir):
        self.service = ImageService(image_dir=temp_image_dir)

    def test_jpg_accepted(self):
        path = self.service.validate_filename("photo.jpg")
        assert path.parent == self.service.image_dir
        assert path.name == "photo.jpg"

    def test_png_rejected(self):
        with pytest.raises(ValidationError, match="does not end with .jpg"):
            self.service.validate_filename("x.png")

    def test_jpeg_rejected(self):
        with pytest.raises(ValidationError, match="does not end with .jpg"):
            self.service.validate_filename("x.jpeg")

    def test_parent_segment_rejected(self):
        with pytest.raises(ValidationError, match="Invalid image file name"):
            self.service.validate_filename("../secret.jpg")

    def test_nested_path_rejected(self):
        with pytest.raises(ValidationError, match="Invalid image file name"):
            self.service.validate_filename("sub/photo.jpg")

    def test_hidden_name_rejected(self):
        with pytest.raises(ValidationError, match="Invalid image file name"):
            self.service.validate_filename("..jpg")


class TestResolveImage:
    """Tests for existing / missing / fallback lookups."""

    def test_existing_image_served(self, temp_image_dir):
        service = ImageService(image_dir=temp_image_dir)
        (service.image_dir / "a.jpg").write_bytes(b"a")
        assert service.resolve_image("a.jpg") == service.image_dir / "a.jpg"

    def test_missing_image_falls_back_to_default(self, temp_image_dir, sample_image_bytes):
        service = ImageService(image_dir=temp_image_dir)
        (service.image_dir / "default.jpg").write_bytes(sample_image_bytes)
        assert service.resolve_image("missing.jpg") == service.image_dir / "default.jpg"

    def test_missing_default_raises_not_found(self, temp_image_dir):
        service = ImageService(image_dir=temp_image_dir)
        with pytest.raises(NotFoundError):
            service.resolve_image("missing.jpg")


class TestStoreImage:
    """Tests for writing uploads into the image directory."""

    @pytest.mark.asyncio
    async def test_store_writes_hash_named_file(self, temp_image_dir):
        service = ImageService(image_dir=temp_image_dir)
        filename = await service.store_image(b"abc")

        assert filename == ABC_SHA256 + ".jpg"
        assert (service.image_dir / filename).read_bytes() == b"abc"

    @pytest.mark.asyncio
    async def test_identical_uploads_share_one_file(self, temp_image_dir):
        service = ImageService(image_dir=temp_image_dir)
        first = await service.store_image(b"same bytes")
        second = await service.store_image(b"same bytes")

        assert first == second
        assert sorted(p.name for p in service.image_dir.iterdir()) == [first]

    @pytest.mark.asyncio
    async def test_write_failure_raises_file_storage_error(self, temp_image_dir):
        service = ImageService(image_dir=temp_image_dir)
        with patch("listings.services.image_service.aiofiles.open", side_effect=OSError("disk full")):
            with pytest.raises(FileStorageError):
                await service.store_image(b"abc")

        assert list(service.image_dir.iterdir()) == []
