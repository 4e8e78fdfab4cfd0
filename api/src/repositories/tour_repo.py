"""
Tour repository for MongoDB operations.

Provides async CRUD operations for tour documents using pymongo's asyncio
client, plus a chainable TourQuery used by list requests. Documents are
validated against the tour schema before every write.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import pydantic
import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from api.src.errors import StorageError, TourNotFoundError, TourValidationError
from api.src.models.tour import (
    DATE_FIELDS,
    INTERNAL_FIELDS,
    NUMERIC_FIELDS,
    TourCreate,
    TourUpdate,
    to_public,
)

logger = structlog.get_logger(__name__)

_DATETIME = pydantic.TypeAdapter(datetime)

DEFAULT_PROJECTION: Dict[str, int] = {name: 0 for name in INTERNAL_FIELDS}


@contextmanager
def storage_errors(operation: str, **context: Any) -> Iterator[None]:
    """Re-raise driver failures as StorageError, logging the operation."""
    try:
        yield
    except PyMongoError as e:
        logger.error(f"tour_{operation}_failed", error=str(e), **context)
        raise StorageError(str(e)) from e


def _object_id(tour_id: Any) -> ObjectId:
    try:
        return ObjectId(tour_id)
    except (InvalidId, TypeError) as e:
        raise TourNotFoundError(tour_id) from e


def _cast_scalar(path: str, value: Any) -> Any:
    if not isinstance(value, str):
        return value

    caster = NUMERIC_FIELDS.get(path)
    if caster is not None:
        try:
            number = float(value)
        except ValueError:
            raise StorageError(f'Cast to Number failed for value "{value}" at path "{path}"')
        if caster is int and number.is_integer():
            return int(number)
        return number

    if path in DATE_FIELDS:
        try:
            return _DATETIME.validate_python(value)
        except pydantic.ValidationError:
            raise StorageError(f'Cast to date failed for value "{value}" at path "{path}"')

    if path == "_id":
        try:
            return ObjectId(value)
        except InvalidId:
            raise StorageError(f'Cast to ObjectId failed for value "{value}" at path "_id"')

    return value


def cast_filter(filter_expression: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Cast query-string filter values to the schema's field types.

    Operator sub-expressions are cast value by value; fields outside the
    schema and non-string values are left alone.

    Raises:
        StorageError: If a value cannot be cast
    """
    cast: Dict[str, Any] = {}
    for path, value in filter_expression.items():
        if isinstance(value, Mapping):
            cast[path] = {op: _cast_scalar(path, inner) for op, inner in value.items()}
        else:
            cast[path] = _cast_scalar(path, value)
    return cast


class TourQuery:
    """
    Chainable, awaitable query over the tours collection.

    Nothing runs until the query is awaited.
    """

    def __init__(self, collection: AsyncCollection, filter_expression: Mapping[str, Any]):
        self._collection = collection
        self._filter = dict(filter_expression)
        self._sort: Optional[List[Tuple[str, int]]] = None
        self._fields: Optional[List[str]] = None
        self._skip = 0
        self._limit = 0

    def sort(self, spec: List[Tuple[str, int]]) -> "TourQuery":
        self._sort = list(spec)
        return self

    def select(self, fields: List[str]) -> "TourQuery":
        """Field names to include; a leading ``-`` excludes a field instead."""
        self._fields = list(fields)
        return self

    def skip(self, count: int) -> "TourQuery":
        self._skip = count
        return self

    def limit(self, count: int) -> "TourQuery":
        self._limit = count
        return self

    def projection(self) -> Dict[str, int]:
        if not self._fields:
            return dict(DEFAULT_PROJECTION)

        include = [name for name in self._fields if not name.startswith("-")]
        exclude = [name[1:] for name in self._fields if name.startswith("-") and name[1:]]
        if include:
            projection = {name: 1 for name in include}
            projection.update({name: 0 for name in exclude})
            return projection

        projection = dict(DEFAULT_PROJECTION)
        projection.update({name: 0 for name in exclude})
        return projection

    async def exec(self) -> List[Dict[str, Any]]:
        """
        Run the query.

        Returns:
            Matching documents in their public form, possibly empty

        Raises:
            StorageError: On a failed cast or a driver failure
        """
        filter_expression = cast_filter(self._filter)

        with storage_errors("find", filter=self._filter):
            cursor = self._collection.find(
                filter_expression,
                self.projection(),
                sort=self._sort,
                skip=self._skip,
                limit=self._limit,
            )
            documents = await cursor.to_list()

        logger.debug("tours_found", count=len(documents), filter=self._filter)
        return [to_public(document) for document in documents]

    def __await__(self):
        return self.exec().__await__()


class TourRepository:
    """Repository for tour document operations."""

    def __init__(self, collection: AsyncCollection):
        """
        Initialize tour repository.

        Args:
            collection: Async collection holding tour documents
        """
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create the unique index on tour names."""
        with storage_errors("ensure_indexes"):
            await self.collection.create_index("name", unique=True)
        logger.info("tour_indexes_ensured", collection=self.collection.name)

    def find(self, filter_expression: Optional[Mapping[str, Any]] = None) -> TourQuery:
        """
        Start a query for tours matching a filter expression.

        Args:
            filter_expression: Field -> value or operator sub-expression

        Returns:
            TourQuery; await it to get the documents
        """
        return TourQuery(self.collection, filter_expression or {})

    async def find_by_id(self, tour_id: Any) -> Optional[Dict[str, Any]]:
        """
        Get tour by ID.

        Args:
            tour_id: Hex ObjectId string

        Returns:
            Tour or None if not found

        Raises:
            TourNotFoundError: If the id is not a valid ObjectId
        """
        oid = _object_id(tour_id)

        with storage_errors("find_by_id", tour_id=str(tour_id)):
            document = await self.collection.find_one({"_id": oid}, DEFAULT_PROJECTION)

        if document is None:
            logger.debug("tour_not_found", tour_id=str(tour_id))
            return None
        return to_public(document)

    async def create(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate and insert a new tour.

        Args:
            fields: Request body fields; unknown fields are dropped

        Returns:
            Created tour

        Raises:
            TourValidationError: If the fields violate the tour schema
            StorageError: On database error, including duplicate names
        """
        try:
            tour = TourCreate.model_validate(fields)
        except pydantic.ValidationError as e:
            error = TourValidationError.from_pydantic(e)
            logger.warning("tour_validation_failed", fields=list(error.errors))
            raise error from e

        document = tour.to_document()

        with storage_errors("create", name=tour.name):
            result = await self.collection.insert_one(document)

        document["_id"] = result.inserted_id
        logger.info("tour_created", tour_id=str(result.inserted_id), name=tour.name)
        return to_public(document)

    async def find_by_id_and_update(
        self,
        tour_id: Any,
        fields: Mapping[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Validate and apply a partial update.

        Args:
            tour_id: Hex ObjectId string
            fields: Fields to set

        Returns:
            Updated tour, or None if no tour has this id

        Raises:
            TourNotFoundError: If the id is not a valid ObjectId
            TourValidationError: If the fields violate the tour schema
        """
        oid = _object_id(tour_id)

        try:
            update = TourUpdate.model_validate(fields).to_update()
        except pydantic.ValidationError as e:
            error = TourValidationError.from_pydantic(e)
            logger.warning("tour_validation_failed", tour_id=str(tour_id), fields=list(error.errors))
            raise error from e

        if not update:
            return await self.find_by_id(tour_id)

        with storage_errors("update", tour_id=str(tour_id)):
            document = await self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": update},
                projection=DEFAULT_PROJECTION,
                return_document=ReturnDocument.AFTER,
            )

        if document is None:
            logger.debug("tour_not_found", tour_id=str(tour_id))
            return None

        logger.info("tour_updated", tour_id=str(tour_id), fields=list(update))
        return to_public(document)

    async def find_by_id_and_delete(self, tour_id: Any) -> None:
        """
        Delete a tour by ID.

        Succeeds whether or not the tour existed.

        Raises:
            TourNotFoundError: If the id is not a valid ObjectId
        """
        oid = _object_id(tour_id)

        with storage_errors("delete", tour_id=str(tour_id)):
            result = await self.collection.delete_one({"_id": oid})

        logger.info("tour_deleted", tour_id=str(tour_id), deleted=result.deleted_count)
        return None
