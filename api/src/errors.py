"""
Error taxonomy for the tours persistence layer.

Errors raised by the repository are classified into an ErrorKind before the
controller picks a status code, so distinct failure causes stay distinct in
logs even where the response status is the same.
"""

from enum import Enum
from typing import Any, Dict, Optional

import pydantic
from pymongo.errors import PyMongoError


class ErrorKind(Enum):
    """Error kind classification"""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORAGE = "storage"
    UNKNOWN = "unknown"


class TourStoreError(Exception):
    """Base class for failures raised by the tours store."""

    name = "TourStoreError"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "message": str(self)}


class TourValidationError(TourStoreError):
    """
    A document failed schema validation.

    Attributes:
        errors: Mapping of field name to violation details, each holding
            ``message``, ``kind``, ``path`` and ``value``.
    """

    name = "ValidationError"

    def __init__(self, errors: Dict[str, Dict[str, Any]], message: Optional[str] = None):
        self.errors = errors
        if message is None:
            summary = ", ".join(
                f"{field}: {detail['message']}" for field, detail in errors.items()
            )
            message = f"Tour validation failed: {summary}"
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, exc: pydantic.ValidationError) -> "TourValidationError":
        """Build from a pydantic ValidationError, keyed by document field name."""
        errors: Dict[str, Dict[str, Any]] = {}
        for error in exc.errors():
            path = str(error["loc"][0]) if error["loc"] else "__root__"
            # First violation per field wins
            errors.setdefault(path, {
                "message": error["msg"],
                "kind": error["type"],
                "path": path,
                "value": error.get("input") if error["type"] != "missing" else None,
            })
        return cls(errors)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class TourNotFoundError(TourStoreError):
    """An operation targeted an id that cannot exist (malformed ObjectId)."""

    name = "CastError"

    def __init__(self, tour_id: Any):
        self.tour_id = tour_id
        super().__init__(f'Cast to ObjectId failed for value "{tour_id}" at path "_id"')


class StorageError(TourStoreError):
    """The store rejected an operation (driver failure, bad filter value)."""

    name = "StorageError"


def classify_error(exception: BaseException) -> ErrorKind:
    """
    Classify an exception raised by the store.

    Args:
        exception: The exception to classify

    Returns:
        ErrorKind for status selection and logging
    """
    if isinstance(exception, (TourValidationError, pydantic.ValidationError)):
        return ErrorKind.VALIDATION

    if isinstance(exception, TourNotFoundError):
        return ErrorKind.NOT_FOUND

    if isinstance(exception, (StorageError, PyMongoError)):
        return ErrorKind.STORAGE

    return ErrorKind.UNKNOWN


def serialize_error(error: Any) -> Any:
    """
    Render an error object in a JSON-compatible form.

    Store errors expose their own ``to_dict``; any other exception becomes
    ``{"name", "message"}``. Non-exception values are returned as-is.
    """
    if isinstance(error, TourStoreError):
        return error.to_dict()
    if isinstance(error, BaseException):
        return {"name": type(error).__name__, "message": str(error)}
    return error
