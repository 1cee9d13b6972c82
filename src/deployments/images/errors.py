"""Exceptions raised by the software image storage layer."""


class InvalidInputError(ValueError):
    """The caller supplied a malformed or empty argument."""


class InvalidIDError(InvalidInputError):
    def __init__(self, message: str = "Invalid id"):
        super().__init__(message)


class InvalidVersionError(InvalidInputError):
    def __init__(self, message: str = "Invalid version"):
        super().__init__(message)


class InvalidModelError(InvalidInputError):
    def __init__(self, message: str = "Invalid model"):
        super().__init__(message)


class InvalidImageError(InvalidInputError):
    def __init__(self, message: str = "Invalid image"):
        super().__init__(message)


class ImageValidationError(ValueError):
    """A software image failed its domain rules."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")
