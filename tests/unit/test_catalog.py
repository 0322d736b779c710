"""Tests for catalog decoding."""

import json

import pytest

from src.core.domain.exceptions import DecodeError
from src.modules.catalog.domain.catalog import CatalogFile, minimal_fallback


def _payload(items, **header) -> bytes:
    data = {"version": 3, "items": items}
    data.update(header)
    return json.dumps(data).encode("utf-8")


def test_direct_and_wrapped_items_decode_to_same_entries(sample_catalog_items) -> None:
    direct = CatalogFile.decode(_payload(sample_catalog_items))
    wrapped = CatalogFile.decode(_payload({"items": sample_catalog_items}))

    assert direct.items == wrapped.items
    assert [entry.id for entry in direct.items] == ["hp", "mario", "retired"]


def test_wire_names_are_mapped(sample_catalog_items) -> None:
    catalog = CatalogFile.decode(_payload(sample_catalog_items))
    hp = catalog.items[0]

    assert hp.display_name == "Harry Potter and the Forbidden Journey"
    assert hp.short_name == "HP"
    assert hp.code_name == "FJ"
    assert hp.area == "Wizarding World"
    assert hp.active is None


def test_active_entries_drop_only_explicitly_inactive(sample_catalog_items) -> None:
    catalog = CatalogFile.decode(_payload(sample_catalog_items))

    assert [entry.id for entry in catalog.active_entries()] == ["hp", "mario"]


def test_unknown_fields_are_ignored() -> None:
    items = [
        {
            "id": "a",
            "displayName": "A",
            "shortName": "A",
            "endpoint": "/a",
            "sortOrder": 7,
        }
    ]
    catalog = CatalogFile.decode(_payload(items, publisher="ops"))

    assert catalog.items[0].id == "a"


def test_unparsable_generated_at_is_treated_as_absent() -> None:
    catalog = CatalogFile.decode(_payload([], generated_at="last tuesday"))

    assert catalog.generated_at is None
    assert catalog.version == 3


def test_generated_at_is_parsed() -> None:
    catalog = CatalogFile.decode(_payload([], generated_at="2025-06-01T09:00:00Z"))

    assert catalog.generated_at is not None
    assert catalog.generated_at.year == 2025


@pytest.mark.parametrize(
    "data",
    [
        b"not json",
        b"[]",
        json.dumps({"version": 1, "items": "nope"}).encode(),
        json.dumps({"version": 1, "items": {"entries": []}}).encode(),
        json.dumps({"version": 1}).encode(),
        json.dumps({"items": []}).encode(),
    ],
)
def test_malformed_catalog_raises_decode_error(data: bytes) -> None:
    with pytest.raises(DecodeError):
        CatalogFile.decode(data)


def test_entry_missing_required_field_raises_decode_error() -> None:
    with pytest.raises(DecodeError):
        CatalogFile.decode(_payload([{"id": "a", "displayName": "A"}]))


def test_minimal_fallback_is_single_absolute_entry() -> None:
    entries = minimal_fallback()

    assert len(entries) == 1
    assert entries[0].id == "spyxr"
    assert entries[0].endpoint.startswith("https://")
    assert entries[0].is_active
