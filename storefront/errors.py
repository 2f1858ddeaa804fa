"""Domain exceptions raised by the storefront services."""

from __future__ import annotations


class StorefrontError(Exception):
    """Base exception for storefront operations."""


class NotFoundError(StorefrontError):
    """Raised when a record cannot be located."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class DuplicateCategoryError(StorefrontError):
    """Raised when a category name is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__("A category with this name already exists")
        self.name = name


class ValidationFailure(StorefrontError):
    """Raised for input that passes schema validation but is still unusable."""


class StorageUploadError(StorefrontError):
    """Raised when the object store rejects or fails an upload."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Upload of {path} failed: {reason}")
        self.path = path
        self.reason = reason


class InvalidImageError(StorefrontError):
    """Raised when an uploaded file cannot be decoded as a raster image."""


class StorageRemoveError(StorefrontError):
    """Raised when the object store fails to delete an object."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Removal of {path} failed: {reason}")
        self.path = path
        self.reason = reason
