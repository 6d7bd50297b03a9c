import re
from unittest.mock import AsyncMock, patch

import pytest
from cloudinary.exceptions import Error as CloudinaryError

from school_directory.services.cloudinary_service import CloudinaryStorage, build_storage_key
from school_directory.services.errors import StorageError


class TestBuildStorageKey:
    def test_key_format(self):
        key = build_storage_key("school-1", "Photo.PNG")
        assert re.fullmatch(r"school-1/\d{13}_[0-9a-f]{12}\.png", key)

    def test_missing_filename_has_no_extension(self):
        key = build_storage_key("school-1", None)
        assert re.fullmatch(r"school-1/\d{13}_[0-9a-f]{12}", key)

    def test_keys_do_not_collide(self):
        keys = {build_storage_key("school-1", "a.jpg") for _ in range(50)}
        assert len(keys) == 50


class TestCloudinaryStorage:
    def setup_method(self):
        self.storage = CloudinaryStorage("demo", "key", "secret", folder="test-images", max_retries=3)
        self.upload_patcher = patch("cloudinary.uploader.upload")
        self.mock_upload = self.upload_patcher.start()
        self.sleep_patcher = patch(
            "school_directory.services.cloudinary_service.asyncio.sleep", new_callable=AsyncMock
        )
        self.mock_sleep = self.sleep_patcher.start()

    def teardown_method(self):
        self.upload_patcher.stop()
        self.sleep_patcher.stop()

    async def test_upload_returns_secure_url(self):
        self.mock_upload.return_value = {
            "public_id": "test-images/school-1/123_abc",
            "secure_url": "https://res.cloudinary.com/demo/image/upload/school-1/123_abc.jpg",
        }

        url = await self.storage.upload("school-1/123_abc.jpg", b"data")

        assert url == "https://res.cloudinary.com/demo/image/upload/school-1/123_abc.jpg"
        args, kwargs = self.mock_upload.call_args
        assert args == (b"data",)
        assert kwargs["folder"] == "test-images"
        assert kwargs["public_id"] == "school-1/123_abc"
        assert kwargs["format"] == "jpg"
        assert kwargs["overwrite"] is False

    async def test_retries_transient_errors(self):
        self.mock_upload.side_effect = [
            CloudinaryError("temporary"),
            {"public_id": "x", "secure_url": "https://res.cloudinary.com/demo/x.png"},
        ]

        url = await self.storage.upload("school-1/x.png", b"data")

        assert url == "https://res.cloudinary.com/demo/x.png"
        assert self.mock_upload.call_count == 2
        self.mock_sleep.assert_awaited_once_with(1)

    async def test_gives_up_after_max_retries(self):
        self.mock_upload.side_effect = CloudinaryError("down")

        with pytest.raises(StorageError) as exc_info:
            await self.storage.upload("school-1/x.png", b"data")

        assert "down" in exc_info.value.message
        assert self.mock_upload.call_count == 3
        assert self.mock_sleep.await_count == 2
