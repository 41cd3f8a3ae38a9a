"""
Typed collection registry.

A Registry wraps one pymongo database and keeps a single canonical
CollectionHandle per document type. Handles are looked up by document
type (preferred, keeps static typing) or by collection name (fallback).

This module is part of MDB_KIT.

Usage:
    registry = connection.registry
    registry.load_many({"widgets": Widget, "orders": Order})

    widgets = registry.get(Widget)      # CollectionHandle[Widget]
    orders = registry.get("orders")     # CollectionHandle[Any]
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar, overload

from pymongo.database import Database

from ..constants import DEFAULT_REGISTRY_REPLACE, DEFAULT_UUID_AS_STRING
from ..exceptions import AlreadyRegisteredError, NotRegisteredError
from ..observability import get_logger, log_operation, operation_context
from .codecs import DocumentCodec
from .collection import CollectionHandle

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RegistryEntry:
    """One registered collection: its name, document type and handle."""

    name: str
    document_type: type
    handle: CollectionHandle


class Registry:
    """
    Maps collection names and document types to collection handles.

    Loading happens during a single-threaded startup phase; afterwards the
    registry is read-only and safe to share between threads.

    Both lookup views are written from the same RegistryEntry inside
    ``load``. Loading a type or a name that is already registered replaces
    the old entry and drops all of its keys (last write wins), unless the
    registry was created with ``replace_existing=False``, in which case the
    duplicate load raises AlreadyRegisteredError.

    Attributes not defined here are looked up on the wrapped database.
    """

    def __init__(
        self,
        database: Database,
        replace_existing: bool = DEFAULT_REGISTRY_REPLACE,
        uuid_as_string: bool = DEFAULT_UUID_AS_STRING,
    ):
        """
        Initialize the registry.

        Args:
            database: pymongo database the collections live in
            replace_existing: Replace (True) or reject (False) duplicate loads
            uuid_as_string: Store UUID values of loaded documents as strings
        """
        self._database = database
        self._replace_existing = replace_existing
        self._uuid_as_string = uuid_as_string
        self._by_type: dict[type, RegistryEntry] = {}
        self._by_name: dict[str, RegistryEntry] = {}

    def __repr__(self) -> str:
        return f"Registry(database={self.name!r}, collections={self.names})"

    def __getattr__(self, name: str) -> Any:
        # Only proxy public attributes, never internal ones
        if name.startswith("_"):
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")
        return getattr(self._database, name)

    @property
    def database(self) -> Database:
        """The wrapped pymongo database."""
        return self._database

    @property
    def name(self) -> str:
        return self._database.name

    @property
    def replace_existing(self) -> bool:
        return self._replace_existing

    @property
    def uuid_as_string(self) -> bool:
        return self._uuid_as_string

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def new_handle(
        self, name: str, document_type: type[T], codec: DocumentCodec[T] | None = None
    ) -> CollectionHandle[T]:
        """Build a handle for ``name`` without registering it."""
        if codec is None:
            codec = DocumentCodec(document_type, uuid_as_string=self._uuid_as_string)
        return CollectionHandle(self._database[name], document_type, name=name, codec=codec)

    def load(
        self, name: str, document_type: type[T], codec: DocumentCodec[T] | None = None
    ) -> CollectionHandle[T]:
        """
        Create, register and return the handle for a collection.

        Args:
            name: Collection name
            document_type: Type the collection's documents decode into
            codec: Document codec (defaults to one following this registry's
                   UUID storage mode)

        Returns:
            The new canonical handle for ``document_type``

        Raises:
            AlreadyRegisteredError: If duplicates are rejected and the type or
                                    name is already registered
        """
        with operation_context(
            db_name=self.name, collection_name=name, document_type=document_type.__name__
        ):
            previous_by_type = self._by_type.get(document_type)
            previous_by_name = self._by_name.get(name)

            if not self._replace_existing:
                if previous_by_type is not None:
                    raise AlreadyRegisteredError(
                        f"Document type {document_type.__name__} is already registered "
                        f"to collection '{previous_by_type.name}'",
                        key=document_type,
                    )
                if previous_by_name is not None:
                    raise AlreadyRegisteredError(
                        f"Collection '{name}' is already registered", key=name
                    )

            entry = RegistryEntry(name, document_type, self.new_handle(name, document_type, codec))

            stale = (p for p in (previous_by_type, previous_by_name) if p is not None)
            for previous in dict.fromkeys(stale):
                self._by_type.pop(previous.document_type, None)
                self._by_name.pop(previous.name, None)
                logger.warning(
                    f"Replacing registry entry '{previous.name}' "
                    f"({previous.document_type.__name__})",
                    extra={"replaced_collection": previous.name},
                )

            self._by_type[document_type] = entry
            self._by_name[name] = entry

            log_operation(logger, "registry.load", level=logging.DEBUG)
        return entry.handle

    def load_many(self, to_load: Mapping[str, type]) -> "Registry":
        """
        Load several collections in mapping order.

        Stops at the first failure; entries loaded before it stay registered.

        Args:
            to_load: Mapping of collection name to document type

        Returns:
            This registry, for chaining
        """
        for name, document_type in to_load.items():
            self.load(name, document_type)
        return self

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @overload
    def get(self, key: type[T]) -> CollectionHandle[T]: ...

    @overload
    def get(self, key: str) -> CollectionHandle[Any]: ...

    def get(self, key):
        """
        Return the registered handle for a document type or a collection name.

        Lookup by type is the preferred path. Lookup by name is a fallback
        that loses the static document type.

        Raises:
            NotRegisteredError: If nothing is registered under ``key``
            TypeError: If ``key`` is neither a type nor a string
        """
        if isinstance(key, str):
            entry = self._by_name.get(key)
            if entry is None:
                raise NotRegisteredError(
                    f"No collection handle registered with name '{key}'", key=key
                )
            return entry.handle

        if isinstance(key, type):
            entry = self._by_type.get(key)
            if entry is None:
                raise NotRegisteredError(
                    f"No collection handle registered for type {key.__name__}", key=key
                )
            return entry.handle

        raise TypeError(f"Registry keys are document types or names, got {type(key).__name__}")

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return key in self._by_name
        return key in self._by_type

    def __len__(self) -> int:
        return len(self._by_type)

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(list(self._by_type.values()))

    @property
    def entries(self) -> list[RegistryEntry]:
        return list(self._by_type.values())

    @property
    def names(self) -> list[str]:
        return [entry.name for entry in self._by_type.values()]
