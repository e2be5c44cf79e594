"""
Per-model serialization specs and storage paths.

Specs are registered by model name with `@register_spec("Model")`; paths
with `@register_path("Model")`. Models without a registered path get a
single labeled path element; nested models register a path of `None`.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional, Type

from sqlmodel import SQLModel

from ..exceptions import SerializationError
from ..models import Card, Collection, DashboardCard, DashboardCardSeries, NativeQuerySnippet, User
from .spec import SerdesSpec, fk, location_ref, parent_ref

MODELS: Dict[str, Type[SQLModel]] = {
    "Card": Card,
    "Collection": Collection,
    "DashboardCard": DashboardCard,
    "DashboardCardSeries": DashboardCardSeries,
    "NativeQuerySnippet": NativeQuerySnippet,
    "User": User,
}

# Column holding each model's portable reference
REF_FIELDS: Dict[str, str] = {"User": "email"}

PathElement = Dict[str, Any]

_SPECS: Dict[str, Callable[[Dict[str, Any]], SerdesSpec]] = {}
_PATHS: Dict[str, Callable[[Any], Optional[List[PathElement]]]] = {}


def register_spec(model_name: str):
    def decorator(fn: Callable[[Dict[str, Any]], SerdesSpec]):
        _SPECS[model_name] = fn
        return fn
    return decorator


def register_path(model_name: str):
    def decorator(fn: Callable[[Any], Optional[List[PathElement]]]):
        _PATHS[model_name] = fn
        return fn
    return decorator


def make_spec(model_name: str, opts: Optional[Dict[str, Any]] = None) -> SerdesSpec:
    try:
        builder = _SPECS[model_name]
    except KeyError:
        raise SerializationError(f"No serialization spec for {model_name}") from None
    return builder(opts or {})


def registered_models() -> List[str]:
    return sorted(_SPECS)


def model_class(model_name: str) -> Type[SQLModel]:
    try:
        return MODELS[model_name]
    except KeyError:
        raise SerializationError(f"Unknown model {model_name}") from None


def ref_field(model_name: str) -> str:
    return REF_FIELDS.get(model_name, "entity_id")


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def generate_path(model_name: str, entity: Any) -> Optional[List[PathElement]]:
    """Storage path of an exported entity; None for entities nested in a parent."""
    if model_name in _PATHS:
        return _PATHS[model_name](entity)
    element: PathElement = {"model": model_name, "id": getattr(entity, ref_field(model_name))}
    name = getattr(entity, "name", None)
    if name:
        element["label"] = slugify(name)
    return [element]


# -------------------------
# Model specs
# -------------------------


@register_spec("Collection")
def _collection_spec(_opts: Dict[str, Any]) -> SerdesSpec:
    return SerdesSpec(
        copy=("archived", "created_at", "description", "entity_id", "name", "namespace"),
        skip=(),
        transform={"location": location_ref()},
    )


@register_spec("NativeQuerySnippet")
def _snippet_spec(_opts: Dict[str, Any]) -> SerdesSpec:
    return SerdesSpec(
        copy=("archived", "content", "created_at", "description", "entity_id", "name"),
        skip=("updated_at",),
        transform={
            "collection_id": fk("Collection"),
            "creator_id": fk("User"),
        },
    )


@register_spec("Card")
def _card_spec(_opts: Dict[str, Any]) -> SerdesSpec:
    return SerdesSpec(
        copy=("archived", "created_at", "dataset_query", "display", "entity_id", "name"),
        skip=("updated_at",),
        transform={"collection_id": fk("Collection")},
    )


@register_path("DashboardCardSeries")
def _dashboard_card_series_path(_entity: Any) -> None:
    return None


@register_spec("DashboardCardSeries")
def _dashboard_card_series_spec(_opts: Dict[str, Any]) -> SerdesSpec:
    # `position` is carried as data rather than inferred from the export order
    return SerdesSpec(
        copy=("position",),
        skip=(),
        transform={
            "dashboardcard_id": parent_ref(),
            "card_id": fk("Card"),
        },
    )
