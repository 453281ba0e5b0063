from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from domain.errors import FetchError, QuoteValidationError
from domain.sources import QuoteSource
from services.dolar_api_client import RawExternalItem
from services.quote_fetcher import QuoteFetcher, parse_price


class _StubClient:
    def __init__(self, items: list[RawExternalItem] | None = None, error: Exception | None = None) -> None:
        self.items = items or []
        self.error = error
        self.calls = 0

    def get_items(self) -> list[RawExternalItem]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.items


class _RecordingList(list[RawExternalItem]):
    """List that records how far iteration went."""

    def __init__(self, items: list[RawExternalItem]) -> None:
        super().__init__(items)
        self.visited = 0

    def __iter__(self) -> Any:
        for item in super().__iter__():
            self.visited += 1
            yield item


def _item(identifier: Any, buy: Any, sell: Any) -> RawExternalItem:
    return RawExternalItem(identifier=identifier, buy_raw=buy, sell_raw=sell)


def test_maps_items_to_canonical_sources_in_provider_order() -> None:
    client = _StubClient(
        [
            _item("blue", "1200", "1220"),
            _item("oficial", 1000, 1050),
            _item("bolsa", "1150.5", "1160.75"),
        ]
    )

    quotes = QuoteFetcher(client).fetch_quotes()

    assert [q.source for q in quotes] == [QuoteSource.DOLARHOY, QuoteSource.AMBITO, QuoteSource.CRONISTA]
    assert quotes[0].buy_price == Decimal("1200")
    assert quotes[2].sell_price == Decimal("1160.75")


def test_first_occurrence_per_source_wins() -> None:
    client = _StubClient(
        [
            _item("bolsa", "1100", "1110"),
            _item("ccl", "1300", "1310"),
            _item("CRONISTA", "1400", "1410"),
        ]
    )

    quotes = QuoteFetcher(client).fetch_quotes()

    assert len(quotes) == 1
    assert quotes[0].source is QuoteSource.CRONISTA
    assert quotes[0].buy_price == Decimal("1100")


def test_invalid_first_occurrence_does_not_block_later_valid_one() -> None:
    client = _StubClient([_item("blue", "-5", "1220"), _item("dolarhoy", "1200", "1220")])

    (quote,) = QuoteFetcher(client).fetch_quotes()

    assert quote.source is QuoteSource.DOLARHOY
    assert quote.buy_price == Decimal("1200")


@pytest.mark.parametrize(
    ("buy", "sell"),
    [(-5, 100), ("abc", 100), (100, None), ("NaN", 100), (0, 100), (100, "inf"), (True, 100)],
)
def test_items_with_invalid_prices_are_skipped(buy: Any, sell: Any) -> None:
    client = _StubClient([_item("oficial", buy, sell)])

    assert QuoteFetcher(client).fetch_quotes() == []


def test_unknown_identifiers_are_skipped() -> None:
    client = _StubClient([_item("unknown_bank", "1", "2"), _item(None, "1", "2"), _item("oficial", "10", "11")])

    quotes = QuoteFetcher(client).fetch_quotes()

    assert [q.source for q in quotes] == [QuoteSource.AMBITO]


def test_stops_once_every_source_is_found() -> None:
    items = _RecordingList(
        [
            _item("oficial", "1", "2"),
            _item("blue", "3", "4"),
            _item("bolsa", "5", "6"),
            _item("ccl", "7", "8"),
            _item("mayorista", "9", "10"),
        ]
    )
    client = _StubClient()
    client.items = items

    quotes = QuoteFetcher(client).fetch_quotes()

    assert len(quotes) == 3
    assert items.visited == 3


def test_partial_result_is_returned_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    client = _StubClient([_item("oficial", "1000", "1050")])

    with caplog.at_level("WARNING"):
        quotes = QuoteFetcher(client).fetch_quotes()

    assert len(quotes) == 1
    assert "Only found 1 out of 3 expected sources" in caplog.text


def test_fetch_errors_propagate_to_caller() -> None:
    client = _StubClient(error=FetchError("boom"))

    with pytest.raises(FetchError):
        QuoteFetcher(client).fetch_quotes()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1050.50", Decimal("1050.50")), (1050.5, Decimal("1050.5")), (" 7 ", Decimal("7"))],
)
def test_parse_price_accepts_numeric_values(raw: Any, expected: Decimal) -> None:
    assert parse_price(raw) == expected


def test_parse_price_reports_offending_value() -> None:
    with pytest.raises(QuoteValidationError) as exc_info:
        parse_price("12,5")

    assert exc_info.value.value == "12,5"


@pytest.mark.parametrize("raw", ["1e30", 1e30, "1E+999999"])
def test_parse_price_rejects_out_of_range_magnitudes(raw: Any) -> None:
    with pytest.raises(QuoteValidationError):
        parse_price(raw)


def test_out_of_range_item_is_skipped_for_later_valid_one() -> None:
    client = _StubClient([_item("oficial", "1e30", "1e30"), _item("ambito", "9999999999999999", "1000")])

    (quote,) = QuoteFetcher(client).fetch_quotes()

    assert quote.source is QuoteSource.AMBITO
    assert quote.buy_price == Decimal("9999999999999999")
