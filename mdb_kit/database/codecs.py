"""
Document codecs.

Two layers of conversion sit between application objects and the server:

- BSON level: ``bson.CodecOptions`` applied to every database a connection
  hands out. ``default_codec_options()`` stores UUIDs in the standard
  binary representation (subtype 4) and returns timezone-aware datetimes.
- Document level: ``DocumentCodec`` converts between the mappings pymongo
  returns and the document type a collection handle is bound to. Supported
  types are pydantic models, dataclasses, classes exposing the
  ``from_dict``/``to_dict`` pair, and mapping types.

UUIDs can instead be stored as their canonical string form
(``"0f8fad5b-d9cb-469f-a165-70867728950e"``) by building the codec with
``uuid_as_string=True``. pymongo does not let a ``TypeCodec`` change how
``uuid.UUID`` is encoded, so the conversion happens here, on documents,
filters and updates passing through a collection handle. Decoding turns
the strings back into ``uuid.UUID`` for fields annotated as such on models
and dataclasses; plain mappings keep the strings.

This module is part of MDB_KIT.
"""

import dataclasses
import logging
import typing
import uuid
from collections.abc import Mapping, MutableMapping
from typing import Any, Generic, TypeVar

from bson.binary import UuidRepresentation
from bson.codec_options import CodecOptions
from pydantic import BaseModel, ConfigDict, Field

from ..constants import DEFAULT_UUID_AS_STRING, ID_ATTRIBUTE, ID_FIELD

logger = logging.getLogger(__name__)

T = TypeVar("T")


def default_codec_options() -> CodecOptions:
    """
    Codec options used when a connection is opened without explicit ones.

    Returns:
        CodecOptions with timezone-aware datetimes and standard UUID encoding
    """
    return CodecOptions(tz_aware=True, uuid_representation=UuidRepresentation.STANDARD)


def stringify_uuids(value: Any) -> Any:
    """Replace every ``uuid.UUID`` inside ``value`` (mappings and lists included) by its string."""
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Mapping):
        return {k: stringify_uuids(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [stringify_uuids(v) for v in value]
    return value


def _is_uuid_hint(hint: Any) -> bool:
    return hint is uuid.UUID or uuid.UUID in typing.get_args(hint)


class Document(BaseModel):
    """
    Convenience base model for typed collections.

    ``id`` maps to the ``_id`` field and stays unset until the server (or the
    caller) provides one.

    Example:
        class Widget(Document):
            name: str
            status: str = "active"

        widgets = registry.load("widgets", Widget)
        widget_id = widgets.insert_one_and_return_id(Widget(name="bolt"))
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: Any = Field(default=None, alias=ID_FIELD)


class DocumentCodec(Generic[T]):
    """
    Converts documents between their stored mapping form and ``document_type``.

    Args:
        document_type: Type documents decode into
        uuid_as_string: Store UUID values as strings instead of BSON binary

    Raises:
        TypeError: On construction, if the document type is not supported
    """

    def __init__(
        self, document_type: type[T], uuid_as_string: bool = DEFAULT_UUID_AS_STRING
    ) -> None:
        self.document_type = document_type
        self.uuid_as_string = uuid_as_string
        self._uuid_fields: frozenset[str] = frozenset()
        if isinstance(document_type, type) and issubclass(document_type, BaseModel):
            self._kind = "model"
        elif dataclasses.is_dataclass(document_type):
            self._kind = "dataclass"
        elif isinstance(document_type, type) and issubclass(document_type, Mapping):
            self._kind = "mapping"
        elif hasattr(document_type, "from_dict") and hasattr(document_type, "to_dict"):
            self._kind = "dict_protocol"
        else:
            raise TypeError(
                f"Unsupported document type {document_type!r}: expected a pydantic model, "
                f"a dataclass, a mapping type, or a class with from_dict/to_dict"
            )
        if uuid_as_string and self._kind == "dataclass":
            hints = typing.get_type_hints(document_type)
            self._uuid_fields = frozenset(n for n, hint in hints.items() if _is_uuid_hint(hint))

    def __repr__(self) -> str:
        name = getattr(self.document_type, "__name__", self.document_type)
        return f"DocumentCodec({name}, uuid_as_string={self.uuid_as_string})"

    def decode(self, raw: Mapping[str, Any] | None) -> T | None:
        """
        Build a typed document from a stored mapping.

        Returns:
            The typed document, or None when ``raw`` is None
        """
        if raw is None:
            return None
        if self._kind == "model":
            return self.document_type.model_validate(raw)
        if self._kind == "dataclass":
            return self._decode_dataclass(raw)
        if self._kind == "mapping":
            if type(raw) is self.document_type:
                return raw
            return self.document_type(raw)
        return self.document_type.from_dict(dict(raw))

    def encode(self, document: T) -> dict[str, Any]:
        """
        Convert a typed document into a mapping pymongo can store.

        An unset id is left out so the server generates one.
        """
        if self._kind == "model":
            data = document.model_dump(by_alias=True)
        elif self._kind == "dataclass":
            data = dataclasses.asdict(document)
            if ID_ATTRIBUTE in data and ID_FIELD not in data:
                data[ID_FIELD] = data.pop(ID_ATTRIBUTE)
        elif self._kind == "mapping":
            data = dict(document)
        else:
            data = dict(document.to_dict())

        if ID_FIELD in data and data[ID_FIELD] is None:
            del data[ID_FIELD]
        return self.encode_value(data)

    def encode_value(self, value: Any) -> Any:
        """Apply the UUID storage mode to a filter, update or other stored value."""
        if self.uuid_as_string:
            return stringify_uuids(value)
        return value

    def assign_id(self, document: T, inserted_id: Any) -> None:
        """Write a generated id back onto ``document`` when it has none."""
        if isinstance(document, MutableMapping):
            document.setdefault(ID_FIELD, inserted_id)
            return
        if getattr(document, ID_ATTRIBUTE, None) is not None:
            return
        if dataclasses.is_dataclass(document) and document.__dataclass_params__.frozen:
            logger.debug(f"Not assigning id to frozen {type(document).__name__}")
            return
        if hasattr(document, ID_ATTRIBUTE):
            setattr(document, ID_ATTRIBUTE, inserted_id)

    def _decode_dataclass(self, raw: Mapping[str, Any]) -> T:
        field_names = {f.name for f in dataclasses.fields(self.document_type)}
        data = dict(raw)
        if ID_FIELD in data and ID_ATTRIBUTE in field_names and ID_FIELD not in field_names:
            data[ID_ATTRIBUTE] = data.pop(ID_FIELD)
        for name in self._uuid_fields:
            if isinstance(data.get(name), str):
                data[name] = uuid.UUID(data[name])
        return self.document_type(**{k: v for k, v in data.items() if k in field_names})
