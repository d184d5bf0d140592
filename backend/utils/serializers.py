"""
ORM → JSON helpers.

Only attributes that are already loaded are emitted: columns excluded by a
`select` projection and relationships that were not populated are skipped,
so serializing a detached instance never triggers lazy IO.
"""
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect

from services.filter_compiler import to_camel


def serialize(obj, depth: int = 1) -> dict[str, Any] | None:
    """Loaded columns as camelCase keys; populated relations nested `depth` levels."""
    if obj is None:
        return None
    state = inspect(obj)
    unloaded = state.unloaded
    mapper = state.mapper

    out: dict[str, Any] = {}
    for attr in mapper.column_attrs:
        if attr.key in unloaded:
            continue
        out[to_camel(attr.key)] = getattr(obj, attr.key)

    if depth > 0:
        for rel in mapper.relationships:
            if rel.key in unloaded:
                continue
            value = getattr(obj, rel.key)
            if rel.uselist:
                out[to_camel(rel.key)] = [serialize(v, depth - 1) for v in value]
            else:
                out[to_camel(rel.key)] = serialize(value, depth - 1)

    return jsonable_encoder(out)


def serialize_many(items, depth: int = 1) -> list[dict[str, Any]]:
    return [serialize(item, depth) for item in items]
