"""Compile domain lookup predicates into SQLAlchemy boolean expressions."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, false, func, or_, true

from dogrula.adapters.sqlalchemy.mappings import StringListType
from dogrula.domain.predicates import AllOf, AnyOf, Contains, EndsWith, Equals, fold_case

if TYPE_CHECKING:
    from sqlalchemy import Column, ColumnElement, Table

    from dogrula.domain.predicates import Predicate


def _column(table: Table, field: str) -> Column[Any] | None:
    return table.c.get(field)


def _is_list(column: Column[Any]) -> bool:
    return isinstance(column.type, StringListType)


def _json_item(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def compile_predicate(predicate: Predicate, table: Table) -> ColumnElement[bool]:
    """Translate ``predicate`` for ``table``.

    Fields the table does not have never match, mirroring the in-memory evaluator.
    List columns hold JSON arrays, so element equality and suffix checks match against
    the quoted element. Both sides are folded the way ``fold_case`` folds them; SQLite
    connections get a matching ``lower`` from ``mappings``.
    """

    match predicate:
        case AnyOf(clauses):
            parts = [compile_predicate(clause, table) for clause in clauses]
            return or_(*parts) if parts else false()
        case AllOf(clauses):
            parts = [compile_predicate(clause, table) for clause in clauses]
            return and_(*parts) if parts else true()
        case Equals(field, value) | Contains(field, value) | EndsWith(field, value):
            column = _column(table, field)
            if column is None:
                return false()
            return _compile_field(predicate, func.lower(column), _is_list(column), fold_case(value))


def _compile_field(
    predicate: Predicate,
    lowered: ColumnElement[Any],
    is_list: bool,
    value: str,
) -> ColumnElement[bool]:
    match predicate:
        case Equals() if is_list:
            return lowered.contains(_json_item(value), autoescape=True)
        case Equals():
            return lowered == value
        case EndsWith() if is_list:
            return lowered.contains(_json_item(value)[1:], autoescape=True)
        case EndsWith():
            return lowered.endswith(value, autoescape=True)
        case _:
            return lowered.contains(value, autoescape=True)
