"""
Filter compiler — turns QueryBuilder's operator dictionaries into SQLAlchemy.

QueryBuilder keeps filters in a store-neutral shape:

    {"price": {"$gte": 100, "$lte": 500},
     "status": {"$in": ["pending", "processing"]},
     "$or": [{"name": {"$regex": "shirt", "$options": "i"}}, ...]}

This module resolves the API field names (camelCase) to mapped columns and
relationships, then builds WHERE, ORDER BY, load_only and selectinload
clauses. Names that resolve to nothing are dropped with a warning.
"""
import logging
import re
from datetime import datetime, timezone

from sqlalchemy import and_, false, inspect, or_
from sqlalchemy.orm import load_only, selectinload

from utils.validators import parse_date, parse_number

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(name: str) -> str:
    """createdAt -> created_at"""
    return _CAMEL_RE.sub("_", name).lower()


def to_camel(name: str) -> str:
    """created_at -> createdAt"""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def resolve_column(model, field: str):
    """
    Map an API field name to a column attribute of `model`.

    Tries the name as-is, its snake_case form, then snake_case + "_id" (so a
    `user` filter lands on `user_id`). Returns None if nothing matches.
    """
    mapper = inspect(model)
    columns = mapper.column_attrs
    if field in ("_id", "id"):
        return getattr(model, mapper.primary_key[0].key)
    snake = to_snake(field)
    for candidate in (field, snake, f"{snake}_id"):
        if candidate in columns:
            return getattr(model, candidate)
    return None


def resolve_relationship(model, name: str):
    mapper = inspect(model)
    for candidate in (name, to_snake(name)):
        if candidate in mapper.relationships:
            return getattr(model, candidate)
    return None


def _coerce(column, value):
    """Convert query-string text to the column's Python type where possible."""
    if not isinstance(value, str):
        return value
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if python_type is bool:
        if value in ("true", "false"):
            return value == "true"
        return value
    if python_type in (int, float):
        number = parse_number(value)
        return value if number is None else number
    if python_type is datetime:
        parsed = parse_date(value)
        return value if parsed is None else parsed
    return value


def _strip_tz(value):
    # stored timestamps are naive UTC
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _compile_matcher(column, matcher):
    if isinstance(matcher, dict) and any(str(k).startswith("$") for k in matcher):
        options = str(matcher.get("$options", ""))
        clauses = []
        for op, operand in matcher.items():
            if op == "$options":
                continue
            if op == "$in":
                clauses.append(column.in_([_strip_tz(_coerce(column, v)) for v in operand]))
            elif op == "$nin":
                clauses.append(column.not_in([_strip_tz(_coerce(column, v)) for v in operand]))
            elif op == "$regex":
                term = str(operand)
                if "i" in options:
                    clauses.append(column.icontains(term, autoescape=True))
                else:
                    clauses.append(column.contains(term, autoescape=True))
            elif op in _COMPARATORS:
                clauses.append(_COMPARATORS[op](column, _strip_tz(_coerce(column, operand))))
            else:
                logger.warning(f"Unsupported filter operator {op} on {column.key}; ignored")
        if not clauses:
            return None
        return clauses[0] if len(clauses) == 1 else and_(*clauses)
    if matcher is None:
        return column.is_(None)
    return column == _strip_tz(_coerce(column, matcher))


_COMPARATORS = {
    "$eq": lambda c, v: c == v,
    "$ne": lambda c, v: c != v,
    "$gt": lambda c, v: c > v,
    "$gte": lambda c, v: c >= v,
    "$lt": lambda c, v: c < v,
    "$lte": lambda c, v: c <= v,
}


def compile_filter(model, conditions: dict) -> list:
    """Return a list of WHERE clauses (implicitly AND-ed) for `conditions`."""
    clauses = []
    for key, matcher in (conditions or {}).items():
        if key in ("$or", "$and"):
            if not isinstance(matcher, (list, tuple)):
                logger.warning(f"'{key}' expects a list of conditions; dropped")
                continue
            branches = []
            for sub in matcher:
                if not isinstance(sub, dict):
                    continue
                sub_clauses = compile_filter(model, sub)
                if sub_clauses:
                    branches.append(and_(*sub_clauses))
            if key == "$or":
                # every branch unresolvable means nothing can match
                clauses.append(or_(*branches) if branches else false())
            elif branches:
                clauses.append(and_(*branches))
            continue

        column = resolve_column(model, key)
        if column is None:
            logger.warning(f"Filter field '{key}' is not a column of {model.__name__}; dropped")
            continue
        clause = _compile_matcher(column, matcher)
        if clause is not None:
            clauses.append(clause)
    return clauses


def compile_sort(model, sort: dict) -> list:
    """ORDER BY clauses; the primary key is appended so paging is stable."""
    order_by = []
    for field, direction in (sort or {}).items():
        column = resolve_column(model, field)
        if column is None:
            logger.warning(f"Sort field '{field}' is not a column of {model.__name__}; skipped")
            continue
        order_by.append(column.desc() if direction == -1 else column.asc())
    pk = getattr(model, inspect(model).primary_key[0].key)
    order_by.append(pk.asc())
    return order_by


def _tokens(expr: str) -> list[str]:
    return [t for t in re.split(r"[\s,]+", expr or "") if t]


def compile_select(model, select: str) -> list:
    """
    load_only() option for a projection string ("name price" or "-description").

    The primary key and foreign keys always stay loaded so populated relations
    can still be resolved.
    """
    tokens = _tokens(select)
    if not tokens:
        return []

    mapper = inspect(model)
    always = {
        attr.key for attr in mapper.column_attrs
        if any(col.primary_key or col.foreign_keys for col in attr.columns)
    }

    excluded = {t[1:] for t in tokens if t.startswith("-")}
    included = [t for t in tokens if not t.startswith("-")]

    keys: list[str] = []
    if included:
        for name in included:
            column = resolve_column(model, name)
            if column is None:
                logger.debug(f"Select field '{name}' is not a column of {model.__name__}; skipped")
                continue
            keys.append(column.key)
    else:
        dropped = set()
        for name in excluded:
            column = resolve_column(model, name)
            if column is not None:
                dropped.add(column.key)
        keys = [attr.key for attr in mapper.column_attrs if attr.key not in dropped]

    keys = list(dict.fromkeys([*sorted(always), *keys]))
    return [load_only(*(getattr(model, k) for k in keys))]


def compile_populate(model, populate: str) -> list:
    """selectinload() options; dotted paths ("user.orders") chain loaders."""
    options = []
    for path in _tokens(populate):
        loader = None
        current = model
        for part in path.split("."):
            rel = resolve_relationship(current, part)
            if rel is None:
                logger.debug(f"Populate path '{path}' not resolvable on {model.__name__}; skipped")
                loader = None
                break
            loader = selectinload(rel) if loader is None else loader.selectinload(rel)
            current = rel.property.mapper.class_
        if loader is not None:
            options.append(loader)
    return options
