"""Domain models and pure logic for the currency quotes service.

This package holds the canonical source enum, the pydantic quote models, the
error taxonomy and the aggregation functions. Nothing here performs I/O, so
the averaging and slippage maths can be exercised without a database.
"""

__all__ = [
    "aggregation",
    "errors",
    "quotes",
    "sources",
]
