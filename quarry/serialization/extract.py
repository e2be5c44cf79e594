"""
Extracting rows into portable maps and loading them back.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import yaml
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..exceptions import SerializationError
from .registry import generate_path, make_spec, model_class, ref_field
from .spec import SKIP, SerdesContext

META_KEY = "serdes/meta"


def extract_one(model_name: str, entity: Any, ctx: SerdesContext, opts: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Portable map of one row, following the model's spec."""
    spec = make_spec(model_name, opts)
    out: Dict[str, Any] = {}

    path = generate_path(model_name, entity)
    if path is not None:
        out[META_KEY] = path

    for name in spec.copy:
        out[name] = getattr(entity, name)
    for name, transform in spec.transform.items():
        value = transform.export(getattr(entity, name), ctx)
        if value is not SKIP:
            out[name] = value
    return out


def load_one(
    model_name: str,
    data: Dict[str, Any],
    ctx: SerdesContext,
    opts: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Column values for a row rebuilt from `data`.

    Skipped columns are left out so the model defaults apply; transforms
    run their import half even when the key is absent, which is how
    parent references get filled from `ctx.parent_id`.
    """
    spec = make_spec(model_name, opts)
    row: Dict[str, Any] = {}

    for name in spec.copy:
        if name in data:
            row[name] = data[name]
    for name, transform in spec.transform.items():
        row[name] = transform.import_(data.get(name), ctx)
    return row


def instantiate(model_name: str, data: Dict[str, Any], ctx: SerdesContext, opts: Optional[Dict[str, Any]] = None):
    """`load_one` followed by constructing the model instance (unsaved)."""
    return model_class(model_name)(**load_one(model_name, data, ctx, opts))


async def build_context(
    session: AsyncSession,
    model_names: Iterable[str],
    parent_id: Optional[int] = None,
) -> SerdesContext:
    """Load id -> portable reference maps for every model a spec refers to."""
    refs: Dict[str, Dict[int, Any]] = {}
    for name in model_names:
        cls = model_class(name)
        column = getattr(cls, ref_field(name))
        result = await session.execute(select(cls.id, column))
        refs[name] = {row_id: ref for row_id, ref in result.all()}
    return SerdesContext(refs=refs, parent_id=parent_id)


def dump_yaml(entity_map: Dict[str, Any]) -> str:
    return yaml.safe_dump(entity_map, sort_keys=False, default_flow_style=False, allow_unicode=True)


def load_yaml(text: str) -> Dict[str, Any]:
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise SerializationError("Serialized entity must be a mapping")
    return data
