"""
Serialization specs.

A spec says, for every column of a model, whether it is copied verbatim,
skipped, or passed through a transform that has an `export` half (row value
-> portable value) and an `import` half (portable value -> row value).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from sqlmodel import SQLModel

from ..exceptions import SerializationError
from ..services.collections import location_path, location_path_ids


class _Skip:
    """Returned by an export fn to leave the key out of the exported map."""

    def __repr__(self) -> str:
        return "SKIP"


SKIP = _Skip()


@dataclass
class SerdesContext:
    """
    Lookups a transform may need.

    `refs[model][id]` is the portable reference (entity id, email, ...) of
    row `id`; `parent_id` is the row id of the entity being imported into.
    """

    refs: Dict[str, Dict[int, Any]] = field(default_factory=dict)
    parent_id: Optional[int] = None

    def ref_for(self, model: str, row_id: int) -> Any:
        try:
            return self.refs[model][row_id]
        except KeyError:
            raise SerializationError(f"No portable reference for {model} {row_id}") from None

    def id_for(self, model: str, ref: Any) -> int:
        for row_id, candidate in self.refs.get(model, {}).items():
            if candidate == ref:
                return row_id
        raise SerializationError(f"Unknown {model} reference {ref!r}")


@dataclass(frozen=True)
class Transform:
    export: Callable[[Any, SerdesContext], Any]
    import_: Callable[[Any, SerdesContext], Any]


@dataclass(frozen=True)
class SerdesSpec:
    copy: Tuple[str, ...] = ()
    skip: Tuple[str, ...] = ()
    transform: Dict[str, Transform] = field(default_factory=dict)

    def fields(self) -> List[str]:
        return [*self.copy, *self.skip, *self.transform]


def parent_ref() -> Transform:
    """The column points at the enclosing entity; the parent is implied by nesting."""

    def _import(_value: Any, ctx: SerdesContext) -> Any:
        if ctx.parent_id is None:
            raise SerializationError("parent_ref import needs a parent_id in the context")
        return ctx.parent_id

    return Transform(export=lambda _value, _ctx: SKIP, import_=_import)


def fk(model: str) -> Transform:
    """A foreign key exported as the target's portable reference."""

    def _export(value: Any, ctx: SerdesContext) -> Any:
        return None if value is None else ctx.ref_for(model, value)

    def _import(value: Any, ctx: SerdesContext) -> Any:
        return None if value is None else ctx.id_for(model, value)

    return Transform(export=_export, import_=_import)


def location_ref() -> Transform:
    """A collection `location` exported as the list of ancestor entity ids."""

    def _export(value: str, ctx: SerdesContext) -> List[Any]:
        return [ctx.ref_for("Collection", i) for i in location_path_ids(value)]

    def _import(value: Optional[List[Any]], ctx: SerdesContext) -> str:
        return location_path(*(ctx.id_for("Collection", ref) for ref in value or []))

    return Transform(export=_export, import_=_import)


def validate_spec(model_cls: Type[SQLModel], spec: SerdesSpec) -> None:
    """Every column except `id` must be named by the spec exactly once."""
    columns = set(model_cls.__table__.columns.keys()) - {"id"}
    named = spec.fields()

    duplicates = sorted({f for f in named if named.count(f) > 1})
    if duplicates:
        raise SerializationError(f"{model_cls.__name__} spec names {duplicates} more than once")

    missing = sorted(columns - set(named))
    if missing:
        raise SerializationError(f"{model_cls.__name__} spec is missing {missing}")

    unknown = sorted(set(named) - columns)
    if unknown:
        raise SerializationError(f"{model_cls.__name__} spec names unknown columns {unknown}")
