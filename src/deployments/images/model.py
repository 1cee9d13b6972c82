"""
Software image entity.

A software image is identified by an opaque string id and by its natural
key, the (name, model) pair held in its constructor. The natural key must
be unique across all stored images.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from deployments.images.errors import ImageValidationError

# Keys are correlated to field names in the persisted document and
# must be kept in sync with to_document()/from_document().
CONSTRUCTOR_KEY = "softwareimageconstructor"
NAME_KEY = "name"
MODEL_KEY = "model"

MAX_FIELD_LENGTH = 4096


def is_blank(value: Any) -> bool:
    """True for None, non-strings and strings made of whitespace only."""
    return not isinstance(value, str) or not value.strip()


def is_malformed(value: Any) -> bool:
    """True for blank values and strings PostgreSQL text cannot store."""
    return is_blank(value) or "\x00" in value


def _check_required(name: str, value: Any) -> None:
    if is_blank(value):
        raise ImageValidationError(name, "must be a non-blank string")
    if "\x00" in value:
        raise ImageValidationError(name, "must not contain NUL characters")
    if len(value) > MAX_FIELD_LENGTH:
        raise ImageValidationError(name, f"must be at most {MAX_FIELD_LENGTH} characters")


def _check_optional(name: str, value: Any) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        raise ImageValidationError(name, "must be a string")
    if "\x00" in value:
        raise ImageValidationError(name, "must not contain NUL characters")
    if len(value) > MAX_FIELD_LENGTH:
        raise ImageValidationError(name, f"must be at most {MAX_FIELD_LENGTH} characters")


@dataclass
class SoftwareImageConstructor:
    """User-supplied part of an image: what it is and which device it targets."""

    name: Optional[str] = None  # application name + version
    model: Optional[str] = None  # target device model
    description: Optional[str] = None
    checksum: Optional[str] = None

    def validate(self) -> None:
        _check_required(NAME_KEY, self.name)
        _check_required(MODEL_KEY, self.model)
        _check_optional("description", self.description)
        _check_optional("checksum", self.checksum)

    def to_dict(self) -> dict:
        return {
            NAME_KEY: self.name,
            MODEL_KEY: self.model,
            "description": self.description,
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SoftwareImageConstructor":
        return cls(
            name=data.get(NAME_KEY),
            model=data.get(MODEL_KEY),
            description=data.get("description"),
            checksum=data.get("checksum"),
        )


@dataclass
class SoftwareImage:
    """
    Stored software image record.

    The id is assigned on insert (by the caller or by the database) and
    never changes afterwards. The modification timestamp is refreshed by
    the storage layer on every update; callers do not set it.
    """

    constructor: SoftwareImageConstructor = field(default_factory=SoftwareImageConstructor)
    id: Optional[str] = None
    verified: bool = False
    modified: Optional[datetime] = None

    @property
    def name(self) -> Optional[str]:
        return self.constructor.name

    @property
    def model(self) -> Optional[str]:
        return self.constructor.model

    def validate(self) -> None:
        """Raise ImageValidationError unless the image may be persisted."""
        if self.constructor is None:
            raise ImageValidationError(CONSTRUCTOR_KEY, "is required")
        self.constructor.validate()
        if self.id is not None and is_malformed(self.id):
            raise ImageValidationError("id", "must be a non-blank string without NUL characters when set")

    def set_modified(self, when: datetime) -> None:
        self.modified = when

    def to_document(self) -> dict:
        """Document body as stored; the id lives in its own column."""
        return {
            CONSTRUCTOR_KEY: self.constructor.to_dict(),
            "verified": self.verified,
            "modified": self.modified.isoformat() if self.modified else None,
        }

    @classmethod
    def from_document(cls, image_id: str, document: dict) -> "SoftwareImage":
        modified = document.get("modified")
        return cls(
            constructor=SoftwareImageConstructor.from_dict(document.get(CONSTRUCTOR_KEY) or {}),
            id=image_id,
            verified=bool(document.get("verified", False)),
            modified=datetime.fromisoformat(modified) if modified else None,
        )


def new_software_image(constructor: SoftwareImageConstructor) -> SoftwareImage:
    """Build an unsaved image from user-supplied data."""
    return SoftwareImage(constructor=constructor)
