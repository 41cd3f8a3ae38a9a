"""
Filter expressions and the FilterClause builder.

The helper functions produce MongoDB query selectors as plain dicts:
https://www.mongodb.com/docs/manual/reference/operator/query/
"""

from collections.abc import Iterable
from typing import Any

from .base import ClauseBuilder, Expression, resolve_expression

# ============================================================================
# Query selectors
# ============================================================================


def empty() -> Expression:
    """Filter matching every document: ``{}``."""
    return {}


def eq(field: str, value: Any) -> Expression:
    """field is equal to value: ``{field: value}``."""
    return {field: value}


def ne(field: str, value: Any) -> Expression:
    """field is not equal to value: ``{field: {"$ne": value}}``."""
    return {field: {"$ne": value}}


def gt(field: str, value: Any) -> Expression:
    return {field: {"$gt": value}}


def gte(field: str, value: Any) -> Expression:
    return {field: {"$gte": value}}


def lt(field: str, value: Any) -> Expression:
    return {field: {"$lt": value}}


def lte(field: str, value: Any) -> Expression:
    return {field: {"$lte": value}}


def in_(field: str, values: Iterable[Any]) -> Expression:
    """field is in list: ``{field: {"$in": [...]}}``."""
    return {field: {"$in": list(values)}}


def nin(field: str, values: Iterable[Any]) -> Expression:
    """field is not in list: ``{field: {"$nin": [...]}}``."""
    return {field: {"$nin": list(values)}}


def exists(field: str, present: bool = True) -> Expression:
    return {field: {"$exists": present}}


def type_(field: str, bson_type: Any) -> Expression:
    return {field: {"$type": bson_type}}


def regex(field: str, pattern: str, options: str | None = None) -> Expression:
    """field matches a regular expression; ``$options`` is optional."""
    selector: dict[str, Any] = {"$regex": pattern}
    if options:
        selector["$options"] = options
    return {field: selector}


def not_(field: str, operator_expression: Expression) -> Expression:
    """Negate an operator expression on a field: ``{field: {"$not": {...}}}``."""
    return {field: {"$not": dict(operator_expression)}}


def elem_match(field: str, query: Any) -> Expression:
    return {field: {"$elemMatch": dict(resolve_expression(query))}}


def text(search: str, language: str | None = None) -> Expression:
    """Text search over the collection's text index."""
    selector: dict[str, Any] = {"$search": search}
    if language:
        selector["$language"] = language
    return {"$text": selector}


# ============================================================================
# Logical combinators
# ============================================================================


def _flatten(operator: str, filters: Iterable[Any]) -> Expression:
    clauses: list[Any] = []
    for item in filters:
        item = resolve_expression(item)
        # $and/$or are associative: splice a same-operator group in place
        if isinstance(item, dict) and len(item) == 1 and operator in item:
            clauses.extend(item[operator])
        else:
            clauses.append(item)
    return {operator: clauses}


def and_(*filters: Any) -> Expression:
    """All expressions are true: ``{"$and": [...]}``; nested ``$and`` groups are flattened."""
    return _flatten("$and", filters)


def or_(*filters: Any) -> Expression:
    """Any expression is true: ``{"$or": [...]}``; nested ``$or`` groups are flattened."""
    return _flatten("$or", filters)


def nor(*filters: Any) -> Expression:
    """No expression is true: ``{"$nor": [...]}``. Never flattened."""
    return {"$nor": [resolve_expression(item) for item in filters]}


# ============================================================================
# Builder
# ============================================================================


class FilterClause(ClauseBuilder):
    """
    Builder for query filters.

    An empty FilterClause builds ``{}`` (match everything). ``add`` without an
    operator, and the constructor with several expressions, combine with AND.

    Example:
        clause = FilterClause(eq("status", "active"))
        clause.and_(gte("age", 18)).or_(eq("role", "admin"))
        clause.build()
        # {"$or": [{"$and": [{"status": "active"}, {"age": {"$gte": 18}}]},
        #          {"role": "admin"}]}
    """

    def default_expression(self) -> Expression:
        return empty()

    def merge(self, current: Expression, new: Expression) -> Expression:
        return and_(current, new)

    def and_(self, expression: Any) -> "FilterClause":
        """Combine with AND: current and expression must both match."""
        return self.add(expression, and_)

    def or_(self, expression: Any) -> "FilterClause":
        """Combine with OR: current or expression must match."""
        return self.add(expression, or_)

    def nor(self, expression: Any) -> "FilterClause":
        """Combine with NOR: neither current nor expression may match."""
        return self.add(expression, nor)

    def where(self, field: str, value: Any) -> "FilterClause":
        """Shortcut for ``and_(eq(field, value))``."""
        return self.and_(eq(field, value))
