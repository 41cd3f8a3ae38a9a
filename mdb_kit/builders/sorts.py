"""
Sort expressions and the SortClause builder.

Sort expressions are ordered ``{field: direction}`` dicts. pymongo cursors
want a list of ``(field, direction)`` pairs, which ``SortClause.as_list()``
and ``to_key_list()`` provide.
"""

from collections.abc import Mapping
from typing import Any

from ..constants import ASCENDING, DESCENDING, ID_FIELD
from .base import ClauseBuilder, Expression, resolve_expression


def to_key_dict(keys: Any) -> Expression:
    """
    Normalize a key specification into an ordered dict.

    Accepts a mapping, a single field name (ascending), or a sequence whose
    items are ``(field, direction)`` pairs or bare field names (ascending).
    """
    keys = resolve_expression(keys)
    if isinstance(keys, Mapping):
        return dict(keys)
    if isinstance(keys, str):
        return {keys: ASCENDING}
    result: Expression = {}
    try:
        for item in keys:
            if isinstance(item, str):
                result[item] = ASCENDING
            else:
                field, direction = item
                result[field] = direction
    except (TypeError, ValueError) as e:
        raise TypeError(
            f"Expected a mapping or (field, direction) pairs, got {keys!r}"
        ) from e
    return result


def to_key_list(keys: Any) -> list[tuple[str, Any]]:
    """Normalize a key specification into pymongo's ``[(field, direction), ...]`` form."""
    return list(to_key_dict(keys).items())


def ascending(*fields: str) -> Expression:
    return {field: ASCENDING for field in fields}


def descending(*fields: str) -> Expression:
    return {field: DESCENDING for field in fields}


def text_score(field: str) -> Expression:
    """Sort by text search relevance stored under ``field``."""
    return {field: {"$meta": "textScore"}}


def order_by(*sorts: Any) -> Expression:
    """
    Compound several sorts.

    Keys keep first-seen position; a repeated field takes the later direction.
    """
    merged: Expression = {}
    for sort in sorts:
        merged.update(to_key_dict(sort))
    return merged


class SortClause(ClauseBuilder):
    """
    Builder for sort specifications.

    An empty SortClause builds ``{"_id": 1}`` (natural identity order).

    Example:
        sort = SortClause(descending("created_at")).add(ascending("name"))
        collection.find_many({"status": "active"}, sort=sort)
    """

    def default_expression(self) -> Expression:
        return ascending(ID_FIELD)

    def normalize(self, expression: Any) -> Expression:
        return to_key_dict(expression)

    def merge(self, current: Expression, new: Expression) -> Expression:
        return order_by(current, new)

    def as_list(self) -> list[tuple[str, Any]]:
        """Built sort as ``[(field, direction), ...]`` for ``Cursor.sort``."""
        return list(self.build().items())
