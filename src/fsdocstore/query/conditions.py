from __future__ import annotations

"""
Condition language for `where` clauses.

An operator object ({"$gt": 5}, {"$in": [...]}, {"$and": [...]}, ...) compiles
to exactly one Condition node. Keys are looked up in a fixed priority order and
the first key present decides the node; every other key in the same object is
ignored. So {"$gt": 1, "$lt": 9} means only "$gt": 1. A bounded range is
written {"$and": [{"$gt": 1}, {"$lt": 9}]}.

Priority:
    $gt, $gte, $lt, $lte    -> RangeBound
    $regex                  -> Pattern
    $in, $nin               -> Membership
    $ne, $eq                -> Equality
    $or                     -> AnyOf
    $and                    -> AllOf
    $not                    -> Negation
    (none of the above)     -> MatchAll
"""

from dataclasses import dataclass
import operator
import re
from typing import Any, Callable, Union

from fsdocstore.errors import InvalidArgument

_MISSING = object()

_RANGE_OPS: dict[str, Callable[[Any, Any], bool]] = {
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}

PRIORITY: tuple[str, ...] = (
    "$gt",
    "$gte",
    "$lt",
    "$lte",
    "$regex",
    "$in",
    "$nin",
    "$ne",
    "$eq",
    "$or",
    "$and",
    "$not",
)


def strict_equals(a: Any, b: Any) -> bool:
    """Equality where a bool never equals a number (True != 1)."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if a is _MISSING or b is _MISSING:
        return False
    return a == b


def _contains(items: list[Any], value: Any) -> bool:
    return any(strict_equals(item, value) for item in items)


@dataclass(frozen=True)
class RangeBound:
    op: str
    operand: Any

    def matches(self, value: Any) -> bool:
        if value is _MISSING or value is None or isinstance(value, bool) != isinstance(
            self.operand, bool
        ):
            return False
        try:
            return bool(_RANGE_OPS[self.op](value, self.operand))
        except TypeError:
            return False


@dataclass(frozen=True)
class Pattern:
    regex: re.Pattern

    def matches(self, value: Any) -> bool:
        return isinstance(value, str) and self.regex.search(value) is not None


@dataclass(frozen=True)
class Membership:
    operands: tuple[Any, ...]
    negate: bool = False

    def matches(self, value: Any) -> bool:
        if isinstance(value, list):
            hit = any(_contains(value, item) for item in self.operands)
        else:
            hit = _contains(list(self.operands), value)
        return not hit if self.negate else hit


@dataclass(frozen=True)
class Equality:
    operand: Any
    negate: bool = False

    def matches(self, value: Any) -> bool:
        same = strict_equals(value, self.operand)
        return not same if self.negate else same


@dataclass(frozen=True)
class AnyOf:
    branches: tuple[Condition, ...]

    def matches(self, value: Any) -> bool:
        return any(b.matches(value) for b in self.branches)


@dataclass(frozen=True)
class AllOf:
    branches: tuple[Condition, ...]

    def matches(self, value: Any) -> bool:
        return all(b.matches(value) for b in self.branches)


@dataclass(frozen=True)
class Negation:
    inner: Condition

    def matches(self, value: Any) -> bool:
        return not self.inner.matches(value)


@dataclass(frozen=True)
class MatchAll:
    def matches(self, value: Any) -> bool:
        return True


Condition = Union[RangeBound, Pattern, Membership, Equality, AnyOf, AllOf, Negation, MatchAll]


def _as_operand_list(key: str, raw: Any) -> tuple[Any, ...]:
    if not isinstance(raw, (list, tuple)):
        raise InvalidArgument(f"{key} expects a list, got {type(raw).__name__}")
    return tuple(raw)


def _compile_regex(raw: Any) -> re.Pattern:
    if isinstance(raw, re.Pattern):
        return raw
    if not isinstance(raw, str):
        raise InvalidArgument(f"$regex expects a string or compiled pattern, got {type(raw).__name__}")
    try:
        return re.compile(raw)
    except re.error as exc:
        raise InvalidArgument(f"invalid $regex {raw!r}: {exc}") from exc


def _compile_branches(key: str, raw: Any) -> tuple[Condition, ...]:
    return tuple(compile_operator(sub) for sub in _as_operand_list(key, raw))


def compile_operator(spec: Any) -> Condition:
    """Compile one operator object into its Condition node (first key by priority wins)."""
    if not isinstance(spec, dict):
        raise InvalidArgument(f"operator object must be a dict, got {type(spec).__name__}")

    key = next((k for k in PRIORITY if k in spec), None)
    if key is None:
        return MatchAll()

    raw = spec[key]
    if key in _RANGE_OPS:
        return RangeBound(key, raw)
    if key == "$regex":
        return Pattern(_compile_regex(raw))
    if key == "$in":
        return Membership(_as_operand_list(key, raw))
    if key == "$nin":
        return Membership(_as_operand_list(key, raw), negate=True)
    if key == "$ne":
        return Equality(raw, negate=True)
    if key == "$eq":
        return Equality(raw)
    if key == "$or":
        return AnyOf(_compile_branches(key, raw))
    if key == "$and":
        return AllOf(_compile_branches(key, raw))
    return Negation(compile_operator(raw))


def compile_field_condition(cond: Any) -> Condition:
    """A dict is an operator object; anything else is strict equality."""
    if isinstance(cond, dict):
        return compile_operator(cond)
    return Equality(cond)


def compile_where(where: dict[str, Any] | None) -> Callable[[dict[str, Any]], bool]:
    """Compile a `where` map into a document predicate (every field must match)."""
    if not where:
        return lambda doc: True

    compiled = [(field, compile_field_condition(cond)) for field, cond in where.items()]

    def predicate(doc: dict[str, Any]) -> bool:
        return all(c.matches(doc.get(field, _MISSING)) for field, c in compiled)

    return predicate
