"""
Update expressions and the UpdateClause builder.

Updates merge key-wise per operator. Fields under different operators, and
different fields under the same operator, coexist. The same field under the
same operator is overwritten by the later value, except for the
accumulating operators ($push, $addToSet) whose values are collected into a
single ``$each`` list in call order.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from ..constants import ACCUMULATING_UPDATE_OPERATORS
from .base import ClauseBuilder, Expression, resolve_expression

# ============================================================================
# Update operators
# ============================================================================


def set_(field: str, value: Any) -> Expression:
    return {"$set": {field: value}}


def set_on_insert(field: str, value: Any) -> Expression:
    """Set ``field`` only when the update inserts a new document."""
    return {"$setOnInsert": {field: value}}


def unset(*fields: str) -> Expression:
    return {"$unset": {field: "" for field in fields}}


def inc(field: str, amount: int | float = 1) -> Expression:
    return {"$inc": {field: amount}}


def mul(field: str, factor: int | float) -> Expression:
    return {"$mul": {field: factor}}


def min_(field: str, value: Any) -> Expression:
    return {"$min": {field: value}}


def max_(field: str, value: Any) -> Expression:
    return {"$max": {field: value}}


def rename(field: str, new_name: str) -> Expression:
    return {"$rename": {field: new_name}}


def current_date(field: str, as_timestamp: bool = False) -> Expression:
    value: Any = {"$type": "timestamp"} if as_timestamp else True
    return {"$currentDate": {field: value}}


def push(field: str, value: Any) -> Expression:
    return {"$push": {field: value}}


def push_each(field: str, values: Iterable[Any]) -> Expression:
    return {"$push": {field: {"$each": list(values)}}}


def add_to_set(field: str, value: Any) -> Expression:
    return {"$addToSet": {field: value}}


def pull(field: str, condition: Any) -> Expression:
    return {"$pull": {field: resolve_expression(condition)}}


def pop_first(field: str) -> Expression:
    return {"$pop": {field: -1}}


def pop_last(field: str) -> Expression:
    return {"$pop": {field: 1}}


# ============================================================================
# Merging
# ============================================================================


def _each(value: Any) -> list[Any]:
    if isinstance(value, Mapping) and "$each" in value:
        return list(value["$each"])
    return [value]


def _accumulate(previous: Any, value: Any) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    # Modifiers ($position, $slice, $sort) of either side are kept, later wins
    for source in (previous, value):
        if isinstance(source, Mapping) and "$each" in source:
            merged.update({k: v for k, v in source.items() if k != "$each"})
    merged["$each"] = _each(previous) + _each(value)
    return merged


def combine(*updates: Any) -> Expression:
    """
    Deep-merge update documents.

    Example:
        combine(set_("a", 1), set_("b", 2), inc("n"))
        # {"$set": {"a": 1, "b": 2}, "$inc": {"n": 1}}
    """
    merged: Expression = {}
    for update in updates:
        update = resolve_expression(update)
        for operator, operand in update.items():
            if not isinstance(operand, Mapping) or not isinstance(merged.get(operator), dict):
                merged[operator] = dict(operand) if isinstance(operand, Mapping) else operand
                continue
            target = merged[operator]
            for field, value in operand.items():
                if operator in ACCUMULATING_UPDATE_OPERATORS and field in target:
                    target[field] = _accumulate(target[field], value)
                else:
                    target[field] = value
    return merged


class UpdateClause(ClauseBuilder):
    """
    Builder for update documents.

    There is no safe default update, so building an empty UpdateClause
    raises EmptyBuilderError.

    Example:
        update = UpdateClause(set_("status", "archived")).add(inc("version"))
        collection.upsert_one(eq("slug", "intro"), update)
    """

    def merge(self, current: Expression, new: Expression) -> Expression:
        return combine(current, new)
