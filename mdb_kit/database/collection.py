"""
Typed collection handle.

A CollectionHandle binds one named pymongo collection to a document type.
It adds typed shortcuts for the call patterns that otherwise repeat
everywhere (find-one, upsert, find-and-update returning the new document)
and forwards every other attribute to the wrapped collection, so the full
pymongo API stays available.

This module is part of MDB_KIT.

Usage:
    from mdb_kit.builders import FilterClause, filters, updates

    widgets = registry.get(Widget)
    widget = widgets.find_one_by("slug", "bolt")
    active = widgets.find_many(FilterClause(filters.eq("status", "active")))
    widgets.find_one_and_upsert_returning(filters.eq("slug", "nut"), updates.inc("stock", 5))
"""

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.cursor import Cursor
from pymongo.results import DeleteResult, UpdateResult

from ..builders.base import resolve_expression
from ..builders.filters import eq
from ..builders.sorts import to_key_list
from ..exceptions import ConsistencyError, InsertionError
from ..observability import get_logger, operation_context, timed_operation
from .codecs import DocumentCodec

logger = get_logger(__name__)

T = TypeVar("T")


class CollectionHandle(Generic[T]):
    """
    A typed facade over a single pymongo collection.

    Every filter, update, sort and projection argument accepts either a
    plain dict or a clause builder. Errors raised by pymongo or by document
    decoding reach the caller unchanged.

    Attributes not defined here are looked up on the wrapped collection:

        handle.count_documents({"status": "active"})
        handle.aggregate([{"$group": {"_id": "$status"}}])

    Forwarded methods are plain pymongo: they take raw mappings, not typed
    documents or clause builders, and return undecoded results. Use the
    typed shortcuts (or ``handle.codec.encode(doc)``) for typed documents:

        handle.insert_one_and_return_id(Widget(name="bolt"))    # typed
        handle.insert_one(handle.codec.encode(Widget(name="nut")))  # forwarded
    """

    def __init__(
        self,
        collection: Collection,
        document_type: type[T],
        name: str | None = None,
        codec: DocumentCodec[T] | None = None,
    ) -> None:
        """
        Initialize the handle.

        Args:
            collection: The pymongo collection to wrap (shared, not owned)
            document_type: Type documents are decoded into
            name: Collection name (defaults to ``collection.name``)
            codec: Document codec (defaults to ``DocumentCodec(document_type)``)
        """
        self._collection = collection
        self._document_type = document_type
        self._name = name if name is not None else collection.name
        self._codec = codec or DocumentCodec(document_type)

    def __repr__(self) -> str:
        type_name = getattr(self._document_type, "__name__", repr(self._document_type))
        return f"CollectionHandle(name={self._name!r}, document_type={type_name})"

    def __getattr__(self, name: str) -> Any:
        # Only proxy public attributes, never internal ones
        if name.startswith("_"):
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")
        return getattr(self._collection, name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def document_type(self) -> type[T]:
        return self._document_type

    @property
    def codec(self) -> DocumentCodec[T]:
        return self._codec

    @property
    def raw(self) -> Collection:
        """The wrapped pymongo collection."""
        return self._collection

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @timed_operation("collection.find_one")
    def find_one(self, filter: Any = None, **kwargs: Any) -> T | None:
        """
        Find at most one document.

        Args:
            filter: Filter dict or FilterClause (None matches everything)
            **kwargs: Passed to ``Collection.find_one`` (sort, projection, ...)

        Returns:
            The decoded document, or None if nothing matched
        """
        raw = self._collection.find_one(
            self._filter(filter), **self._cursor_options(kwargs)
        )
        return self._codec.decode(raw)

    def find_one_by(self, field: str, value: Any) -> T | None:
        """Find the first document whose ``field`` equals ``value``."""
        return self.find_one(eq(field, value))

    @timed_operation("collection.find_many")
    def find_many(
        self,
        filter: Any = None,
        sort: Any = None,
        projection: Any = None,
        skip: int = 0,
        limit: int = 0,
        **kwargs: Any,
    ) -> list[T]:
        """
        Find all matching documents and decode them eagerly.

        Args:
            filter: Filter dict or FilterClause (None matches everything)
            sort: Sort dict, SortClause or ``[(field, direction), ...]``;
                  without one the order is server-determined
            projection: Projection dict or ProjectionClause
            skip: Number of documents to skip
            limit: Maximum number of documents (0 means no limit)
            **kwargs: Passed to ``Collection.find``

        Returns:
            List of decoded documents
        """
        kwargs.update(sort=sort, projection=projection)
        cursor = self._collection.find(
            self._filter(filter), skip=skip, limit=limit, **self._cursor_options(kwargs)
        )
        return [self._codec.decode(raw) for raw in cursor]

    def find(self, filter: Any = None, *args: Any, **kwargs: Any) -> Cursor:
        """
        Forward to ``Collection.find`` after building clause arguments.

        Returns the raw pymongo cursor (documents are not decoded).
        """
        return self._collection.find(self._filter(filter), *args, **self._cursor_options(kwargs))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @timed_operation("collection.insert_one_and_return_id")
    def insert_one_and_return_id(self, document: T, **kwargs: Any) -> Any:
        """
        Insert a document and return its generated id.

        The id is also written back onto ``document`` when it has none.

        Raises:
            InsertionError: If the insert reports no inserted id
        """
        with self._context():
            result = self._collection.insert_one(self._codec.encode(document), **kwargs)
            inserted_id = getattr(result, "inserted_id", None)
            if inserted_id is None:
                raise InsertionError(
                    "Insert reported no generated identifier", collection_name=self._name
                )
            self._codec.assign_id(document, inserted_id)
            logger.debug(f"Inserted document with _id={inserted_id!r}")
        return inserted_id

    @timed_operation("collection.upsert_one")
    def upsert_one(self, filter: Any, update: Any, **kwargs: Any) -> UpdateResult:
        """
        Update the first matching document, or insert one if none matches.

        Returns:
            pymongo UpdateResult (matched_count, modified_count, upserted_id)
        """
        return self._collection.update_one(
            self._filter(filter), self._update(update), upsert=True, **kwargs
        )

    @timed_operation("collection.find_one_and_update_returning")
    def find_one_and_update_returning(self, filter: Any, update: Any, **kwargs: Any) -> T | None:
        """
        Update the first matching document and return its post-update state.

        Nothing is inserted when no document matches.

        Returns:
            The updated document, or None if nothing matched
        """
        raw = self._collection.find_one_and_update(
            self._filter(filter),
            self._update(update),
            return_document=ReturnDocument.AFTER,
            **self._cursor_options(kwargs),
        )
        return self._codec.decode(raw)

    @timed_operation("collection.find_one_and_upsert_returning")
    def find_one_and_upsert_returning(self, filter: Any, update: Any, **kwargs: Any) -> T:
        """
        Update the first matching document, or insert one, and return the result.

        Raises:
            ConsistencyError: If the server returns no document despite the upsert
        """
        with self._context():
            raw = self._collection.find_one_and_update(
                self._filter(filter),
                self._update(update),
                upsert=True,
                return_document=ReturnDocument.AFTER,
                **self._cursor_options(kwargs),
            )
            if raw is None:
                logger.error("Upsert returned no document")
                raise ConsistencyError(
                    "Upsert returned no document",
                    collection_name=self._name,
                    operation="find_one_and_upsert_returning",
                )
        return self._codec.decode(raw)

    @timed_operation("collection.delete_one")
    def delete_one(self, filter: Any, **kwargs: Any) -> DeleteResult:
        """
        Delete at most one matching document.

        Returns:
            pymongo DeleteResult; ``deleted_count`` tells whether one was removed
        """
        return self._collection.delete_one(self._filter(filter), **kwargs)

    def delete_one_by(self, field: str, value: Any) -> DeleteResult:
        """Delete the first document whose ``field`` equals ``value``."""
        return self.delete_one(eq(field, value))

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def create_index(self, keys: Any, **kwargs: Any) -> str:
        """
        Create an index from a key dict, IndexClause, field name or key list.

        Returns:
            The index name chosen by the server
        """
        return self._collection.create_index(to_key_list(keys), **kwargs)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _context(self):
        return operation_context(
            db_name=getattr(self._collection.database, "name", None),
            collection_name=self._name,
            document_type=getattr(self._document_type, "__name__", None),
        )

    def _filter(self, filter: Any) -> Mapping[str, Any]:
        filter = resolve_expression(filter)
        return {} if filter is None else self._codec.encode_value(filter)

    def _update(self, update: Any) -> Any:
        return self._codec.encode_value(resolve_expression(update))

    @staticmethod
    def _cursor_options(kwargs: dict[str, Any]) -> dict[str, Any]:
        options = dict(kwargs)
        if options.get("sort") is not None:
            options["sort"] = to_key_list(options["sort"])
        else:
            options.pop("sort", None)
        if options.get("projection") is not None:
            options["projection"] = resolve_expression(options["projection"])
        else:
            options.pop("projection", None)
        return options
