"""Tests for schema projection helpers."""

import pytest

from indexsync.platform.transformers.schema import (
    infer_type,
    is_collection,
    project_schema,
    schema_from_entry,
    selectable_fields,
    selected_paths,
)

NESTED_SCHEMA = {
    "title": "string",
    "views": "number",
    "author": {"name": "string", "bio": "string"},
    "tags": "string[]",
    "comments": "collection",
    "categories": [{"name": "string"}],
}


def test_selected_paths_flattens_nested_maps_in_declaration_order():
    """Nested maps contribute dotted leaves; collections are skipped."""
    assert selected_paths(NESTED_SCHEMA) == [
        "title",
        "views",
        "author.name",
        "author.bio",
        "tags",
    ]


def test_selected_paths_flat_schema():
    assert selected_paths({"title": "string", "description": "string"}) == [
        "title",
        "description",
    ]


def test_selected_paths_empty():
    assert selected_paths({}) == []
    assert selected_paths(None) == []


def test_project_schema_merges_siblings_under_shared_parent():
    projected = project_schema(["title", "author.name", "author.bio"], NESTED_SCHEMA)

    assert projected == {"title": "string", "author": {"name": "string", "bio": "string"}}


def test_project_schema_skips_paths_that_do_not_resolve():
    """Stale searchable attributes are ignored rather than failing."""
    projected = project_schema(["title", "missing", "author.missing", "title.deep"], NESTED_SCHEMA)

    assert projected == {"title": "string"}


def test_project_schema_copies_values():
    """The projection never aliases the source schema."""
    field_schema = {"author": {"name": "string"}}
    projected = project_schema(["author"], field_schema)

    projected["author"]["name"] = "number"

    assert field_schema == {"author": {"name": "string"}}


@pytest.mark.parametrize(
    "paths",
    [
        ["title"],
        ["title", "author.name"],
        ["author.bio", "tags", "views"],
    ],
)
def test_project_schema_is_idempotent(paths):
    """Projecting the paths of a projected schema returns the same schema."""
    once = project_schema(paths, NESTED_SCHEMA)
    twice = project_schema(selected_paths(once), once)

    assert twice == once


def test_selected_paths_then_project_reproduces_scalar_and_object_leaves():
    """Collections and arrays of objects are excluded from the round trip."""
    restored = project_schema(selected_paths(NESTED_SCHEMA), NESTED_SCHEMA)

    assert restored == {
        "title": "string",
        "views": "number",
        "author": {"name": "string", "bio": "string"},
        "tags": "string[]",
    }


def test_selectable_fields_drops_collections_not_included():
    ui_schema = {"title": "string", "author": {"name": "string"}, "tags": [{"v": 1}]}

    assert selectable_fields(ui_schema, ["author"]) == [
        {"field": "title", "searchable": True},
        {"field": "author.name", "searchable": True},
    ]


def test_selectable_fields_included_collection_is_not_searchable():
    ui_schema = {"title": "string", "comments": "collection", "tags": [{"v": 1}]}

    assert selectable_fields(ui_schema, ["comments", "tags"]) == [
        {"field": "title", "searchable": True},
        {"field": "comments", "searchable": False},
        {"field": "tags", "searchable": False},
    ]


def test_selectable_fields_drops_objects_not_included():
    ui_schema = {"title": "string", "author": {"name": "string", "bio": "string"}}

    assert selectable_fields(ui_schema, []) == [{"field": "title", "searchable": True}]


def test_is_collection():
    assert is_collection("collection")
    assert is_collection([{"name": "string"}])
    assert not is_collection("string[]")
    assert not is_collection(["a", "b"])
    assert not is_collection([])
    assert not is_collection({"name": "string"})


def test_schema_from_entry_infers_types():
    entry = {
        "potato": "hello",
        "apple": 5,
        "watermelon": {"seeds": {"many": True}},
        "banana": ["yellow", "green"],
    }

    assert schema_from_entry(entry) == {
        "potato": "string",
        "apple": "number",
        "watermelon": {"seeds": {"many": "boolean"}},
        "banana": "string[]",
    }


@pytest.mark.parametrize(
    "value, expected",
    [
        ([1, 2.5], "number[]"),
        ([{"name": "a"}], "collection"),
        ([], None),
        (["a", 1], None),
        (None, None),
        ({}, None),
    ],
)
def test_infer_type_edge_cases(value, expected):
    assert infer_type(value) == expected
