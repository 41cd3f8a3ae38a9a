"""
Index key expressions and the IndexClause builder.
"""

from typing import Any

from ..constants import ASCENDING, DESCENDING
from .base import ClauseBuilder, Expression
from .sorts import to_key_dict


def ascending(*fields: str) -> Expression:
    return {field: ASCENDING for field in fields}


def descending(*fields: str) -> Expression:
    return {field: DESCENDING for field in fields}


def text(*fields: str) -> Expression:
    return {field: "text" for field in fields}


def hashed(field: str) -> Expression:
    return {field: "hashed"}


def geo2dsphere(*fields: str) -> Expression:
    return {field: "2dsphere" for field in fields}


def compound_index(*indexes: Any) -> Expression:
    """Compound several index key specifications, keeping first-seen field order."""
    merged: Expression = {}
    for index in indexes:
        merged.update(to_key_dict(index))
    return merged


class IndexClause(ClauseBuilder):
    """
    Builder for index key specifications.

    There is no sensible default index, so building an empty IndexClause
    raises EmptyBuilderError.

    Example:
        keys = IndexClause(ascending("tenant")).add(descending("created_at"))
        collection.create_index(keys, unique=False)
    """

    def normalize(self, expression: Any) -> Expression:
        return to_key_dict(expression)

    def merge(self, current: Expression, new: Expression) -> Expression:
        return compound_index(current, new)

    def as_list(self) -> list[tuple[str, Any]]:
        """Built keys as ``[(field, type), ...]`` for ``Collection.create_index``."""
        return list(self.build().items())
