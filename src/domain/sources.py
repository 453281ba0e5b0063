from __future__ import annotations

from enum import StrEnum
from typing import Any, Mapping


class QuoteSource(StrEnum):
    """Canonical quote sources. Values are opaque, stable keys."""

    AMBITO = "https://www.ambito.com/contenidos/dolar.html"
    DOLARHOY = "https://www.dolarhoy.com"
    CRONISTA = "https://www.cronista.com/MercadosOnline/moneda.html?id=ARSB"


# Provider identifier variant -> canonical source. Several spellings may share a source.
DEFAULT_SOURCE_ALIASES: Mapping[str, QuoteSource] = {
    "oficial": QuoteSource.AMBITO,
    "ambito": QuoteSource.AMBITO,
    "blue": QuoteSource.DOLARHOY,
    "dolarhoy": QuoteSource.DOLARHOY,
    "bolsa": QuoteSource.CRONISTA,
    "cronista": QuoteSource.CRONISTA,
    "ccl": QuoteSource.CRONISTA,
}


class SourceRegistry:
    def __init__(self, aliases: Mapping[str, QuoteSource] | None = None) -> None:
        table: dict[str, QuoteSource] = {}
        for variant, source in (aliases if aliases is not None else DEFAULT_SOURCE_ALIASES).items():
            key = variant.casefold()
            if not key:
                msg = "source alias must be non-empty"
                raise ValueError(msg)
            canonical = QuoteSource(source)
            existing = table.get(key)
            if existing is not None and existing is not canonical:
                msg = f"alias {variant!r} maps to both {existing.name} and {canonical.name}"
                raise ValueError(msg)
            table[key] = canonical
        self._table = table

    @property
    def expected_count(self) -> int:
        return len(QuoteSource)

    def resolve(self, identifier: Any) -> QuoteSource | None:
        if not isinstance(identifier, str) or not identifier:
            return None
        return self._table.get(identifier.casefold())

    def variants_for(self, source: QuoteSource) -> list[str]:
        return [variant for variant, canonical in self._table.items() if canonical is source]


__all__ = ["DEFAULT_SOURCE_ALIASES", "QuoteSource", "SourceRegistry"]
