from typing import List, Optional

from deployments.images.contracts import ImagesStore
from deployments.images.errors import ImageValidationError
from deployments.images.model import (
    SoftwareImage,
    SoftwareImageConstructor,
    new_software_image,
)
from deployments.images.storage import SoftwareImagesStorage


class ImagesModel:
    """
    Object-level operations on software images for request handlers.

    Implements the CreateModeler, GetObjectModeler, DeleteObjectModeler,
    ListObjectsModeler and EditObjectModeler contracts.
    """

    def __init__(self, storage: Optional[ImagesStore] = None):
        self.storage = storage if storage is not None else SoftwareImagesStorage()

    def new_object(self) -> SoftwareImageConstructor:
        return SoftwareImageConstructor()

    def validate(self, obj) -> None:
        if not isinstance(obj, SoftwareImageConstructor):
            raise ImageValidationError("softwareimageconstructor", "unexpected object type")
        obj.validate()

    def create(self, obj: SoftwareImageConstructor) -> str:
        """Store a new image built from the constructor and return its id."""
        self.validate(obj)
        image = new_software_image(obj)
        self.storage.insert(image)
        return image.id

    def get_object(self, object_id: str) -> Optional[SoftwareImage]:
        return self.storage.find_by_id(object_id)

    def delete_object(self, object_id: str) -> None:
        self.storage.delete(object_id)

    def list_objects(self, filters: Optional[dict[str, str]] = None) -> List[SoftwareImage]:
        """
        List images, optionally narrowed by "name" and/or "model".

        With both filters set this is the natural key lookup, so at most
        one image comes back.
        """
        filters = filters or {}
        name = filters.get("name")
        model = filters.get("model")

        if name and model:
            image = self.storage.find_image_by_application_and_model(name, model)
            return [image] if image else []

        images = self.storage.find_all()
        if name:
            images = [i for i in images if i.name == name]
        if model:
            images = [i for i in images if i.model == model]
        return images

    def edit_object(self, object_id: str, obj: SoftwareImageConstructor) -> bool:
        """
        Replace the user-supplied part of an existing image.

        Returns False if the image does not exist.
        """
        self.validate(obj)

        image = self.storage.find_by_id(object_id)
        if image is None:
            return False

        image.constructor = obj
        return self.storage.update(image)
