from __future__ import annotations

import logging

import pytest

from singer_protocol.catalog import (
    Catalog,
    CatalogEntry,
    InclusionType,
    Metadata,
    MetadataMapping,
    StreamMetadata,
)


def test_catalog_parsing():
    """Validate parsing works for a catalog and its stream entries."""
    catalog_dict = {
        "streams": [
            {
                "tap_stream_id": "test",
                "schema": {
                    "type": "object",
                },
                "metadata": [
                    {
                        "breadcrumb": [],
                        "metadata": {
                            "inclusion": "available",
                        },
                    },
                    {
                        "breadcrumb": ["properties", "a"],
                        "metadata": {
                            "inclusion": "unsupported",
                        },
                    },
                ],
            },
        ],
    }
    catalog = Catalog.from_dict(catalog_dict)

    assert catalog.streams[0].tap_stream_id == "test"
    assert catalog.get_stream("test").tap_stream_id == "test"  # type: ignore[union-attr]
    assert catalog["test"].metadata.to_list() == catalog_dict["streams"][0]["metadata"]
    assert catalog["test"].schema == {"type": "object"}
    assert catalog.to_dict() == catalog_dict

    new = {
        "tap_stream_id": "new",
        "metadata": [],
        "schema": {},
    }
    entry = CatalogEntry.from_dict(new)
    catalog.add_stream(entry)
    assert catalog.get_stream("new") == entry
    assert catalog.get_stream("missing") is None


def test_catalog_entry_round_trip():
    stream = {
        "tap_stream_id": "public-users",
        "stream": "users",
        "schema": {"type": "object", "properties": {"id": {"type": "integer"}}},
        "key_properties": ["id"],
        "replication_key": "updated_at",
        "replication_method": "INCREMENTAL",
        "is_view": False,
        "database_name": "app",
        "table_name": "users",
        "row_count": 42,
        "stream_alias": "people",
        "metadata": [
            {
                "breadcrumb": [],
                "metadata": {
                    "table-key-properties": ["id"],
                    "valid-replication-keys": ["updated_at"],
                    "selected": True,
                },
            },
        ],
    }
    entry = CatalogEntry.from_dict(stream)

    assert entry.database == "app"
    assert entry.table == "users"
    assert isinstance(entry.metadata.root, StreamMetadata)
    assert entry.metadata.root.table_key_properties == ["id"]
    assert entry.is_selected
    assert entry.to_dict() == stream
    assert CatalogEntry.from_dict(entry.to_dict()) == entry


def test_metadata_inclusion_enum():
    metadata = Metadata.from_dict({"inclusion": "automatic", "selected": False})
    assert metadata.inclusion is InclusionType.AUTOMATIC
    assert metadata.to_dict() == {"inclusion": "automatic", "selected": False}


def test_metadata_mapping_missing_entry():
    mapping = MetadataMapping()

    assert isinstance(mapping.root, StreamMetadata)
    assert isinstance(mapping[("properties", "id")], Metadata)
    assert len(mapping) == 2


@pytest.fixture
def selection_metadata():
    return [
        {
            "breadcrumb": (),
            "metadata": {
                "selected": True,
            },
        },
        {
            "breadcrumb": ("properties", "col_a", "properties", "col_a_2"),
            "metadata": {
                "selected": False,  # Should not be overridden by parent
            },
        },
        {
            "breadcrumb": ("properties", "col_a", "properties", "col_a_3"),
            "metadata": {},  # No metadata means parent selection is used
        },
        {
            "breadcrumb": ("properties", "col_b"),
            "metadata": {
                "selected": False,
            },
        },
        {
            "breadcrumb": ("properties", "col_b", "properties", "col_b_1"),
            "metadata": {
                "selected": True,  # Should be overridden by parent
            },
        },
        {
            "breadcrumb": ("properties", "col_c"),
            "metadata": {
                "inclusion": "unsupported",
                "selected": True,  # Should be overridden by 'inclusion'
            },
        },
        {
            "breadcrumb": ("properties", "col_d"),
            "metadata": {"selected-by-default": True},
        },
        {
            "breadcrumb": ("properties", "col_e"),
            "metadata": {
                "inclusion": "automatic",
                "selected": False,  # Should be overridden by 'inclusion'
            },
        },
        {
            "breadcrumb": ("properties", "col_f"),
            "metadata": {"inclusion": "available"},
        },
    ]


@pytest.mark.parametrize(
    "breadcrumb,selected",
    [
        ((), True),
        (("properties", "col_a"), True),
        (("properties", "col_a", "properties", "col_a_1"), True),
        (("properties", "col_a", "properties", "col_a_2"), False),
        (("properties", "col_a", "properties", "col_a_3"), True),
        (("properties", "col_b"), False),
        (("properties", "col_b", "properties", "col_b_1"), False),
        (("properties", "col_b", "properties", "col_b_2"), False),
        (("properties", "col_c"), False),
        (("properties", "col_d"), True),
        (("properties", "col_e"), True),
        (("properties", "col_f"), True),
    ],
)
def test_resolve_selection(selection_metadata, breadcrumb, selected):
    mask = MetadataMapping.from_iterable(selection_metadata).resolve_selection()
    assert mask[breadcrumb] is selected


def test_unsupported_selected_is_logged(
    selection_metadata,
    caplog: pytest.LogCaptureFixture,
):
    mapping = MetadataMapping.from_iterable(selection_metadata)
    with caplog.at_level(logging.DEBUG, logger="singer_protocol.catalog"):
        mapping.resolve_selection()

    assert "Property 'properties:col_c' was selected but is not supported" in (
        caplog.text
    )


def test_empty_metadata_is_selected():
    entry = CatalogEntry(tap_stream_id="users", schema={})
    assert entry.is_selected
