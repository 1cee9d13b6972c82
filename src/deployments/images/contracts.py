"""
Narrow capability interfaces over software image storage.

Calling code depends on the capability it needs rather than on
SoftwareImagesStorage, so a test double only has to provide that one
method. SoftwareImagesStorage satisfies every image-level protocol and
ImagesModel satisfies every object-level one.
"""

from typing import Any, List, Optional, Protocol, runtime_checkable

from deployments.images.model import SoftwareImage

# =============================================================================
# Image-level contracts
# =============================================================================


@runtime_checkable
class ImageInserter(Protocol):
    def insert(self, image: SoftwareImage) -> None: ...


@runtime_checkable
class ImageGetter(Protocol):
    def find_by_id(self, image_id: str) -> Optional[SoftwareImage]: ...


@runtime_checkable
class ImageDeleter(Protocol):
    def delete(self, image_id: str) -> None: ...


@runtime_checkable
class ImageLister(Protocol):
    def find_all(self) -> List[SoftwareImage]: ...


@runtime_checkable
class ImageUpdater(Protocol):
    def update(self, image: SoftwareImage) -> bool: ...


@runtime_checkable
class ImageByApplicationAndModelFinder(Protocol):
    def find_image_by_application_and_model(
        self, version: str, model: str
    ) -> Optional[SoftwareImage]: ...


class ImagesStore(
    ImageInserter,
    ImageGetter,
    ImageDeleter,
    ImageLister,
    ImageUpdater,
    ImageByApplicationAndModelFinder,
    Protocol,
):
    """Everything ImagesModel needs from a storage backend."""


# =============================================================================
# Object-level contracts (consumed by request handlers)
# =============================================================================


@runtime_checkable
class CreateModeler(Protocol):
    def new_object(self) -> Any: ...

    def validate(self, obj: Any) -> None: ...

    def create(self, obj: Any) -> str: ...


@runtime_checkable
class GetObjectModeler(Protocol):
    def get_object(self, object_id: str) -> Any: ...


@runtime_checkable
class DeleteObjectModeler(Protocol):
    def delete_object(self, object_id: str) -> None: ...


@runtime_checkable
class ListObjectsModeler(Protocol):
    def list_objects(self, filters: Optional[dict[str, str]] = None) -> Any: ...


@runtime_checkable
class EditObjectModeler(Protocol):
    def new_object(self) -> Any: ...

    def validate(self, obj: Any) -> None: ...

    def edit_object(self, object_id: str, obj: Any) -> bool: ...
