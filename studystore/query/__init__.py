"""
Query layer for StudyStore.

This module provides:
- Filter variants (Eq, Gte, Lte, In)
- QueryBuilder: immutable, awaitable query descriptor
- MutationEngine: executes queries and mutations against storage
- IdGenerator: monotonic record ids
- APIResponse: data/error result pair
"""

from .builder import Operation, OrderBy, QueryBuilder, run_pipeline
from .filters import Eq, Filter, Gte, In, Lte
from .ids import IdGenerator
from .mutations import UPDATE_LOOKUP_KEYS, MutationEngine
from .response import APIResponse

__all__ = [
    "Eq",
    "Gte",
    "Lte",
    "In",
    "Filter",
    "Operation",
    "OrderBy",
    "QueryBuilder",
    "run_pipeline",
    "IdGenerator",
    "MutationEngine",
    "UPDATE_LOOKUP_KEYS",
    "APIResponse",
]
