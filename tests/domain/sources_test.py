import pytest

from domain.sources import QuoteSource, SourceRegistry


def test_resolves_every_default_variant_to_its_canonical_source() -> None:
    registry = SourceRegistry()

    assert registry.resolve("oficial") is QuoteSource.AMBITO
    assert registry.resolve("ambito") is QuoteSource.AMBITO
    assert registry.resolve("blue") is QuoteSource.DOLARHOY
    assert registry.resolve("dolarhoy") is QuoteSource.DOLARHOY
    assert registry.resolve("bolsa") is QuoteSource.CRONISTA
    assert registry.resolve("cronista") is QuoteSource.CRONISTA
    assert registry.resolve("ccl") is QuoteSource.CRONISTA


def test_resolution_is_case_insensitive() -> None:
    registry = SourceRegistry()

    assert registry.resolve("Blue") is QuoteSource.DOLARHOY
    assert registry.resolve("OFICIAL") is QuoteSource.AMBITO


@pytest.mark.parametrize("identifier", ["unknown_bank", "mayorista", "", None, 42])
def test_unrecognized_identifiers_resolve_to_none(identifier: object) -> None:
    assert SourceRegistry().resolve(identifier) is None


def test_custom_aliases_replace_the_default_table() -> None:
    registry = SourceRegistry({"Tarjeta": QuoteSource.AMBITO})

    assert registry.resolve("tarjeta") is QuoteSource.AMBITO
    assert registry.resolve("oficial") is None
    assert registry.expected_count == 3


def test_conflicting_aliases_are_rejected() -> None:
    with pytest.raises(ValueError):
        SourceRegistry({"blue": QuoteSource.DOLARHOY, "BLUE": QuoteSource.AMBITO})


def test_variants_for_lists_all_spellings_of_a_source() -> None:
    assert SourceRegistry().variants_for(QuoteSource.CRONISTA) == ["bolsa", "cronista", "ccl"]
