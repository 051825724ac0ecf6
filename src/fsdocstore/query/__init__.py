from fsdocstore.query.conditions import compile_operator, compile_where
from fsdocstore.query.evaluator import FilterQuery, SortSpec, apply_query

__all__ = ["FilterQuery", "SortSpec", "apply_query", "compile_operator", "compile_where"]
