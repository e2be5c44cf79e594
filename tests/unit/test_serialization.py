from datetime import datetime, timezone

import pytest

from quarry.exceptions import SerializationError
from quarry.models import Collection, DashboardCardSeries, NativeQuerySnippet
from quarry.serialization import (
    META_KEY,
    SKIP,
    SerdesContext,
    SerdesSpec,
    dump_yaml,
    extract_one,
    generate_path,
    instantiate,
    load_one,
    load_yaml,
    make_spec,
    model_class,
    registered_models,
    validate_spec,
)
from quarry.serialization.spec import fk, location_ref, parent_ref


@pytest.fixture
def ctx():
    return SerdesContext(
        refs={
            "Card": {10: "card-eid-10", 11: "card-eid-11"},
            "Collection": {1: "coll-eid-1", 2: "coll-eid-2"},
            "User": {7: "rasta@example.com"},
        },
        parent_id=42,
    )


@pytest.mark.parametrize("model_name", registered_models())
def test_every_spec_covers_every_column(model_name):
    validate_spec(model_class(model_name), make_spec(model_name))


def test_validate_spec_catches_missing_and_unknown_columns():
    with pytest.raises(SerializationError, match="missing"):
        validate_spec(DashboardCardSeries, SerdesSpec(copy=("position",), transform={"card_id": fk("Card")}))
    with pytest.raises(SerializationError, match="unknown"):
        validate_spec(
            DashboardCardSeries,
            SerdesSpec(copy=("position", "color"), transform={"card_id": fk("Card"), "dashboardcard_id": parent_ref()}),
        )
    with pytest.raises(SerializationError, match="more than once"):
        validate_spec(
            DashboardCardSeries,
            SerdesSpec(copy=("position", "card_id"), transform={"card_id": fk("Card"), "dashboardcard_id": parent_ref()}),
        )


def test_dashboard_card_series_spec():
    spec = make_spec("DashboardCardSeries")
    assert spec.copy == ("position",)
    assert spec.skip == ()
    assert set(spec.transform) == {"dashboardcard_id", "card_id"}


def test_dashboard_card_series_is_nested_in_its_dashboard_card(ctx):
    series = DashboardCardSeries(id=3, dashboardcard_id=99, card_id=11, position=2)
    assert generate_path("DashboardCardSeries", series) is None

    exported = extract_one("DashboardCardSeries", series, ctx)
    assert exported == {"position": 2, "card_id": "card-eid-11"}

    assert load_one("DashboardCardSeries", exported, ctx) == {
        "position": 2,
        "card_id": 11,
        "dashboardcard_id": 42,
    }


def test_parent_ref_needs_a_parent():
    with pytest.raises(SerializationError):
        load_one("DashboardCardSeries", {"position": 0, "card_id": "card-eid-10"}, SerdesContext(refs={"Card": {10: "card-eid-10"}}))


def test_snippet_round_trip(ctx):
    created = datetime(2024, 1, 2, tzinfo=timezone.utc)
    snippet = NativeQuerySnippet(
        id=5,
        entity_id="snippet-eid-5",
        name="Expensive",
        content="price > 100",
        creator_id=7,
        collection_id=2,
        created_at=created,
        updated_at=created,
    )
    exported = extract_one("NativeQuerySnippet", snippet, ctx)

    assert exported[META_KEY] == [{"model": "NativeQuerySnippet", "id": "snippet-eid-5", "label": "expensive"}]
    assert exported["collection_id"] == "coll-eid-2"
    assert exported["creator_id"] == "rasta@example.com"
    assert "updated_at" not in exported

    loaded = instantiate("NativeQuerySnippet", load_yaml(dump_yaml(exported)), ctx)
    assert loaded.id is None
    assert loaded.name == "Expensive"
    assert loaded.collection_id == 2
    assert loaded.creator_id == 7


def test_root_snippet_exports_a_null_collection(ctx):
    snippet = NativeQuerySnippet(entity_id="e", name="Root", content="1", creator_id=7)
    assert extract_one("NativeQuerySnippet", snippet, ctx)["collection_id"] is None


def test_collection_location_uses_entity_ids(ctx):
    collection = Collection(id=3, entity_id="coll-eid-3", name="Nested", namespace="snippets", location="/1/2/")
    exported = extract_one("Collection", collection, ctx)
    assert exported["location"] == ["coll-eid-1", "coll-eid-2"]
    assert load_one("Collection", exported, ctx)["location"] == "/1/2/"


def test_location_ref_of_top_level_collection(ctx):
    transform = location_ref()
    assert transform.export("/", ctx) == []
    assert transform.import_([], ctx) == "/"


def test_unknown_references_fail(ctx):
    with pytest.raises(SerializationError):
        ctx.ref_for("Card", 999)
    with pytest.raises(SerializationError):
        ctx.id_for("Card", "nope")


def test_parent_ref_export_is_skipped(ctx):
    assert parent_ref().export(99, ctx) is SKIP


def test_unregistered_models_fail():
    with pytest.raises(SerializationError):
        make_spec("Pulse")
    with pytest.raises(SerializationError):
        model_class("Pulse")


def test_load_yaml_requires_a_mapping():
    with pytest.raises(SerializationError):
        load_yaml("- just\n- a list\n")
