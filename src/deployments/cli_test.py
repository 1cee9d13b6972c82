"""
Unit tests for the deployments CLI.

Run with: pytest src/deployments/cli_test.py -v
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from psycopg.errors import UniqueViolation

from deployments import cli
from deployments.images.model import SoftwareImage, SoftwareImageConstructor
from deployments.images.storage import SoftwareImagesStorage


def make_image(image_id="image-1", name="app-1.0", model="raspberrypi3") -> SoftwareImage:
    return SoftwareImage(
        constructor=SoftwareImageConstructor(name=name, model=model),
        id=image_id,
        modified=datetime(2024, 1, 15, tzinfo=timezone.utc),
    )


@pytest.fixture
def storage():
    with patch("deployments.cli.SoftwareImagesStorage") as storage_class:
        yield storage_class.return_value


class TestIndexStorage:
    def test_index_storage(self, storage):
        assert cli.main(["index-storage"]) == 0
        storage.index_storage.assert_called_once_with()


class TestListImages:
    def test_list_images(self, storage):
        storage.find_all.return_value = [make_image(), make_image("image-2", model="beaglebone")]

        assert cli.main(["list-images"]) == 0
        storage.find_all.assert_called_once_with()

    def test_list_no_images(self, storage):
        storage.find_all.return_value = []

        assert cli.main(["list-images"]) == 0


class TestAddImage:
    def test_add_image(self, storage):
        result = cli.main(["add-image", "--name", "app-1.0", "--model", "raspberrypi3"])

        assert result == 0
        inserted = storage.insert.call_args.args[0]
        assert inserted.name == "app-1.0"
        assert inserted.model == "raspberrypi3"

    def test_add_invalid_image(self):
        connect = MagicMock()
        with patch("deployments.cli.SoftwareImagesStorage") as storage_class:
            storage_class.return_value = SoftwareImagesStorage(connect=connect)
            result = cli.main(["add-image", "--name", " ", "--model", "raspberrypi3"])

        assert result == 1
        connect.assert_not_called()

    def test_add_duplicate_image(self, storage):
        storage.insert.side_effect = UniqueViolation("duplicate key")

        result = cli.main(["add-image", "--name", "app-1.0", "--model", "raspberrypi3"])

        assert result == 1


class TestDeleteImage:
    def test_delete_confirmed(self, storage):
        image = make_image()
        storage.find_all.return_value = [image]

        with patch("deployments.cli.questionary") as mock_questionary:
            mock_questionary.select.return_value.ask.return_value = image
            mock_questionary.confirm.return_value.ask.return_value = True
            result = cli.main(["delete-image"])

        assert result == 0
        storage.delete.assert_called_once_with("image-1")

    def test_delete_cancelled(self, storage):
        image = make_image()
        storage.find_all.return_value = [image]

        with patch("deployments.cli.questionary") as mock_questionary:
            mock_questionary.select.return_value.ask.return_value = image
            mock_questionary.confirm.return_value.ask.return_value = False
            result = cli.main(["delete-image"])

        assert result == 0
        storage.delete.assert_not_called()

    def test_delete_no_images(self, storage):
        storage.find_all.return_value = []

        assert cli.main(["delete-image"]) == 0
        storage.delete.assert_not_called()
