"""
Images

This module provides classes and functions for storing software image
metadata: the entity, its storage engine and the capability contracts
callers depend on.
"""

from deployments.images.errors import (
    ImageValidationError,
    InvalidIDError,
    InvalidImageError,
    InvalidInputError,
    InvalidModelError,
    InvalidVersionError,
)
from deployments.images.model import SoftwareImage, SoftwareImageConstructor, new_software_image
from deployments.images.service import ImagesModel
from deployments.images.storage import SoftwareImagesStorage

__all__ = [
    "ImageValidationError",
    "ImagesModel",
    "InvalidIDError",
    "InvalidImageError",
    "InvalidInputError",
    "InvalidModelError",
    "InvalidVersionError",
    "SoftwareImage",
    "SoftwareImageConstructor",
    "SoftwareImagesStorage",
    "new_software_image",
]
