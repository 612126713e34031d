"""CLI command modules."""

from .artifacts import artifacts
from .customers import customers
from .enrich import enrich
from .nudges import nudges

__all__ = ["artifacts", "customers", "enrich", "nudges"]
