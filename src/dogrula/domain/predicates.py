"""Storage-neutral lookup predicates.

Services describe *what* to match as a small tree of field predicates; persistence
adapters compile the tree into their own query language. ``matches`` evaluates the same
tree in memory, which keeps fakes and adapters in agreement about the semantics.

Text comparisons are case-insensitive throughout, folded with ``fold_case``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

_DOTTED_CAPITAL_I = "\u0130"


@dataclass(frozen=True, slots=True)
class Equals:
    field: str
    value: str


@dataclass(frozen=True, slots=True)
class Contains:
    """Substring match; list-valued fields match when any element contains the value."""

    field: str
    value: str


@dataclass(frozen=True, slots=True)
class EndsWith:
    field: str
    value: str


@dataclass(frozen=True, slots=True)
class AnyOf:
    """Disjunction; an empty group matches nothing."""

    clauses: tuple[Predicate, ...]


@dataclass(frozen=True, slots=True)
class AllOf:
    """Conjunction; an empty group matches everything."""

    clauses: tuple[Predicate, ...]


def fold_case(text: str) -> str:
    """Lower-case ``text`` so that Turkish dotted capital I folds to a plain ``i``."""

    return text.replace(_DOTTED_CAPITAL_I, "i").lower()


type FieldPredicate = Equals | Contains | EndsWith
type Predicate = FieldPredicate | AnyOf | AllOf


def any_of(clauses: Iterable[Predicate]) -> AnyOf:
    return AnyOf(tuple(clauses))


def all_of(clauses: Iterable[Predicate]) -> AllOf:
    return AllOf(tuple(clauses))


def field_names(predicate: Predicate) -> frozenset[str]:
    """Every record field the predicate tree touches."""

    match predicate:
        case AnyOf(clauses) | AllOf(clauses):
            names: set[str] = set()
            for clause in clauses:
                names |= field_names(clause)
            return frozenset(names)
        case _:
            return frozenset({predicate.field})


def _values(record: object, field: str) -> list[str]:
    value = getattr(record, field, None)
    if value is None:
        return []
    if isinstance(value, list | tuple | set | frozenset):
        return [fold_case(str(item)) for item in value if item is not None]
    return [fold_case(str(value))]


def matches(predicate: Predicate, record: object) -> bool:
    match predicate:
        case AnyOf(clauses):
            return any(matches(clause, record) for clause in clauses)
        case AllOf(clauses):
            return all(matches(clause, record) for clause in clauses)
        case Equals(field, value):
            return fold_case(value) in _values(record, field)
        case Contains(field, value):
            needle = fold_case(value)
            return any(needle in candidate for candidate in _values(record, field))
        case EndsWith(field, value):
            suffix = fold_case(value)
            return any(candidate.endswith(suffix) for candidate in _values(record, field))
