from __future__ import annotations

from numbers import Number
from typing import Any, Literal, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fsdocstore.errors import InvalidArgument

from .conditions import compile_where

D = TypeVar("D", bound=dict)


class SortSpec(BaseModel):
    field: str
    order: Literal["asc", "desc"] = "asc"


class FilterQuery(BaseModel):
    """
    Declarative query over one collection.

    where:  {field: scalar | operator object}; every field must match
    sort:   {"field": ..., "order": "asc" | "desc"}
    offset: leading results dropped after filter + sort
    limit:  at most this many of what remains
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    where: dict[str, Any] | None = None
    sort: SortSpec | None = None
    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)

    @classmethod
    def coerce(cls, query: FilterQuery | dict[str, Any] | None = None, **kwargs: Any) -> FilterQuery:
        if isinstance(query, FilterQuery):
            if not kwargs:
                return query
            query = query.model_dump(exclude_none=True)
        if query is not None and not isinstance(query, dict):
            raise InvalidArgument(f"filter query must be a dict, got {type(query).__name__}")
        data = {**(query or {}), **kwargs}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise InvalidArgument(f"invalid filter query: {exc}") from exc


def _sort_key(value: Any) -> tuple:
    # numbers < strings < everything else; bool counts as a number like in JSON ordering
    if isinstance(value, Number):
        return (0, value)
    if isinstance(value, str):
        return (1, value)
    return (2, repr(value))


def sort_documents(docs: list[D], spec: SortSpec) -> list[D]:
    present = [d for d in docs if d.get(spec.field) is not None]
    missing = [d for d in docs if d.get(spec.field) is None]
    present.sort(key=lambda d: _sort_key(d[spec.field]), reverse=spec.order == "desc")
    return present + missing


def apply_query(docs: Sequence[D], query: FilterQuery | dict[str, Any] | None = None) -> list[D]:
    """Filter, sort, then offset/limit. Pure; no I/O."""
    q = FilterQuery.coerce(query)

    predicate = compile_where(q.where)
    out = [d for d in docs if predicate(d)]

    if q.sort is not None:
        out = sort_documents(out, q.sort)
    if q.offset:
        out = out[q.offset :]
    if q.limit is not None:
        out = out[: q.limit]
    return out
