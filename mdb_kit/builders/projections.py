"""
Projection expressions and the ProjectionClause builder.
"""

from typing import Any

from ..constants import ID_FIELD
from .base import ClauseBuilder, Expression, resolve_expression


def include(*fields: str) -> Expression:
    return {field: 1 for field in fields}


def exclude(*fields: str) -> Expression:
    return {field: 0 for field in fields}


def exclude_id() -> Expression:
    return exclude(ID_FIELD)


def slice_(field: str, limit: int, skip: int | None = None) -> Expression:
    """Return at most ``limit`` array elements, optionally after skipping ``skip``."""
    if skip is None:
        return {field: {"$slice": limit}}
    return {field: {"$slice": [skip, limit]}}


def elem_match(field: str, query: Any) -> Expression:
    """Return only the first array element matching ``query``."""
    return {field: {"$elemMatch": dict(resolve_expression(query))}}


def text_score(field: str) -> Expression:
    """Project the text search relevance score into ``field``."""
    return {field: {"$meta": "textScore"}}


def fields(*projections: Any) -> Expression:
    """Union of several projections; a repeated field takes the later value."""
    merged: Expression = {}
    for projection in projections:
        merged.update(resolve_expression(projection))
    return merged


class ProjectionClause(ClauseBuilder):
    """
    Builder for projections.

    An empty ProjectionClause builds ``{"_id": 1}`` (identity field only).
    """

    def default_expression(self) -> Expression:
        return include(ID_FIELD)

    def merge(self, current: Expression, new: Expression) -> Expression:
        return fields(current, new)
