"""
QueryBuilder — query-string driven pagination, filtering, sorting and search.

Usage:

    result = await (
        QueryBuilder(Product, params, {"is_admin": False})
        .sort_by()
        .select_fields()
        .populate_fields()
        .search()
        .apply_filters()
        .execute(session_factory)
    )

Malformed filter values (bad ids, bad dates, non-numeric bounds, disallowed
enum values) are dropped and logged at debug level; they never raise. A query
that runs past settings.query_timeout_seconds raises QueryTimeoutError; any
other database error propagates unchanged.
"""
import asyncio
import copy
import logging
import re
import time
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from config import settings
from domain.constants import DEFAULT_SORT, RESERVED_QUERY_PARAMS
from domain.errors import QueryTimeoutError
from domain.responses import PaginationMeta
from services.filter_compiler import (
    compile_filter, compile_populate, compile_select, compile_sort,
)
from services.query_config import allowed_array_items, get_model_config, validate_filter_value
from utils.admin_sort import is_admin_request, parse_admin_sort, parse_sort_params
from utils.validators import is_valid_object_id, parse_date, parse_number

logger = logging.getLogger(__name__)

# filter[field] or filter[field][operator]
_NESTED_KEY_RE = re.compile(r"^filter\[([^\[\]]+)\](?:\[([^\[\]]+)\])?$")


@dataclass
class QueryResult:
    data: list
    pagination: PaginationMeta
    filter: dict = field(default_factory=dict)
    sort: dict = field(default_factory=dict)


def _cap(name: str) -> str:
    return name[:1].upper() + name[1:]


def normalize_filter_key(key: str) -> tuple[str, dict | None]:
    """
    Flatten the bracketed syntax into the plain key space.

    Returns (flat_key, inferred_config). inferred_config is used only when the
    filterable-field table has no entry for flat_key.

        filter[brand]            -> ("brand", None)
        filter[price][gte]       -> ("minPrice", {"type": "range", "field": "price"})
        filter[price][lte]       -> ("maxPrice", {"type": "range", "field": "price"})
        filter[status][in]       -> ("status", {"type": "array"})
        filter[createdAt][from]  -> ("createdAtFrom", {"type": "date", "field": "createdAt"})
    """
    match = _NESTED_KEY_RE.match(key)
    if not match:
        return key, None

    name, operator = match.group(1).strip(), (match.group(2) or "").strip().lower()
    if not operator or operator == "eq":
        return name, None
    if operator in ("gte", "min"):
        return f"min{_cap(name)}", {"type": "range", "field": name}
    if operator in ("lte", "max"):
        return f"max{_cap(name)}", {"type": "range", "field": name}
    if operator == "in":
        return name, {"type": "array"}
    if operator in ("from", "start"):
        return f"{name}From", {"type": "date", "field": name}
    if operator in ("to", "end"):
        return f"{name}To", {"type": "date", "field": name}

    logger.debug(f"Unknown filter operator '{operator}' for {name}; using exact match")
    return name, None


class QueryBuilder:
    """Universal list query for one ORM model, configured per model and environment."""

    def __init__(self, model, query_params: dict | None, options: dict | None = None):
        self.model = model
        self.model_name = model.__name__
        self.query_params = dict(query_params or {})

        self.config = get_model_config(self.model_name, settings.environment)
        self.options = {**self.config, **(options or {})}

        pagination = self.options["pagination"]
        self.page = self._positive_int(self.query_params.get("page"), pagination["default_page"])
        self.limit = min(
            self._positive_int(self.query_params.get("limit"), pagination["default_limit"]),
            pagination["max_limit"],
        )
        self.search_fields = list(self.options.get("search_fields") or [])
        self.timeout = float(self.options.get("timeout", settings.query_timeout_seconds))

        if "is_admin" in self.options:
            self.is_admin = bool(self.options["is_admin"])
        else:
            self.is_admin = is_admin_request(self.options.get("request_path"), self.options.get("user_role"))

        self.filter: dict = {}
        self.sort: dict = {}
        self.select = ""
        self.populate = ""

    @staticmethod
    def _positive_int(value, default: int) -> int:
        try:
            number = int(str(value).strip())
        except (TypeError, ValueError):
            return default
        return number if number >= 1 else default

    # ── Parsing steps (chainable) ──────────────────────────────────

    def paginate(self) -> "QueryBuilder":
        # page/limit are resolved in __init__; kept so call chains read naturally
        return self

    def sort_by(self) -> "QueryBuilder":
        self.sort = parse_sort_params(self.query_params) or dict(
            self.options["sorting"].get("default_sort") or DEFAULT_SORT
        )
        if self.is_admin:
            self.sort = parse_admin_sort(self.query_params, self.model_name)
        return self

    def select_fields(self) -> "QueryBuilder":
        raw = self.query_params.get("select")
        if raw:
            fields = [f.strip() for f in str(raw).split(",") if f.strip()]
            security = self.options["security"]
            allowed = security.get("allowed_fields") or []
            if security.get("enable_field_whitelist") and allowed:
                rejected = [f for f in fields if f.lstrip("-") not in allowed]
                if rejected:
                    logger.debug(f"Select fields not whitelisted for {self.model_name}: {rejected}")
                fields = [f for f in fields if f.lstrip("-") in allowed]
            self.select = " ".join(fields)
        return self

    def populate_fields(self) -> "QueryBuilder":
        raw = self.query_params.get("populate")
        if raw:
            self.populate = " ".join(p.strip() for p in str(raw).split(",") if p.strip())
        else:
            self.populate = self.options.get("default_populate") or ""
        return self

    def search(self, fields: list[str] | None = None) -> "QueryBuilder":
        if fields is not None:
            self.search_fields = list(fields)
        term = str(self.query_params.get("search") or "").strip()
        if term and self.search_fields:
            options = self.options["search"].get("search_options", "i")
            self.filter["$or"] = [
                {f: {"$regex": term, "$options": options}} for f in self.search_fields
            ]
        return self

    def apply_filters(self, filter_config: dict | None = None) -> "QueryBuilder":
        if filter_config is None:
            filter_config = self.options.get("filterable_fields") or {}

        for raw_key, value in self.query_params.items():
            if raw_key in RESERVED_QUERY_PARAMS or value is None:
                continue
            key, inferred = normalize_filter_key(raw_key)
            if key in RESERVED_QUERY_PARAMS:
                continue
            if key.startswith("$"):
                # operator keys only come from search()/handlers, never the client
                logger.debug(f"Operator key {raw_key!r} in query string; dropped")
                continue
            if isinstance(value, str) and not value.strip():
                logger.debug(f"Empty filter value for {key}; dropped")
                continue

            config = filter_config.get(key) or inferred or {}

            if not validate_filter_value(key, value, {"filterable_fields": {key: config}}):
                logger.debug(f"Filter {key}={value!r} failed validation; dropped")
                continue

            handler = self._HANDLERS.get(config.get("type"))
            if handler is None:
                self.filter[config.get("field") or key] = value
            else:
                handler(self, key, value, config)
        return self

    # ── Filter handlers ────────────────────────────────────────────

    def _matcher_for(self, field: str) -> dict:
        matcher = self.filter.get(field)
        if not isinstance(matcher, dict):
            matcher = {}
            self.filter[field] = matcher
        return matcher

    def _handle_range(self, key: str, value, config: dict) -> None:
        number = parse_number(value)
        if number is None:
            logger.debug(f"Non-numeric range value {key}={value!r}; dropped")
            return
        prefix = key[:3]
        if config.get("field"):
            field = config["field"]
        elif prefix in ("min", "max") and len(key) > 3:
            field = key[3].lower() + key[4:]
        else:
            field = key

        if prefix == "min":
            self._matcher_for(field)["$gte"] = number
        elif prefix == "max":
            self._matcher_for(field)["$lte"] = number
        else:
            self.filter[field] = number

    def _handle_array(self, key: str, value, config: dict) -> None:
        items = value if isinstance(value, list) else str(value).split(",")
        items = [str(v).strip() for v in items if str(v).strip()]
        items = allowed_array_items(key, items, {"filterable_fields": {key: config}})
        if not items:
            logger.debug(f"No usable values for {key}; dropped")
            return
        self.filter[config.get("field") or key] = {"$in": items}

    def _handle_boolean(self, key: str, value, config: dict) -> None:
        if value in ("true", "false"):
            self.filter[config.get("field") or key] = value == "true"
        else:
            logger.debug(f"Non-boolean value {key}={value!r}; ignored")

    def _handle_regex(self, key: str, value, config: dict) -> None:
        options = config.get("options") or self.options["filtering"].get("regex_options", "i")
        self.filter[config.get("field") or key] = {"$regex": str(value), "$options": options}

    def _handle_object_id(self, key: str, value, config: dict) -> None:
        if is_valid_object_id(value):
            self.filter[config.get("field") or key] = value.lower()
        else:
            logger.debug(f"Invalid id {key}={value!r}; dropped")

    def _handle_date(self, key: str, value, config: dict) -> None:
        parsed = parse_date(value)
        if parsed is None:
            logger.debug(f"Invalid date {key}={value!r}; dropped")
            return
        field = config.get("field") or key
        if "From" in key or "Start" in key:
            self._matcher_for(field)["$gte"] = parsed
        elif "To" in key or "End" in key:
            self._matcher_for(field)["$lte"] = parsed
        else:
            self.filter[field] = parsed

    _HANDLERS = {
        "range": _handle_range,
        "array": _handle_array,
        "boolean": _handle_boolean,
        "regex": _handle_regex,
        "objectId": _handle_object_id,
        "date": _handle_date,
    }

    # ── Execution ──────────────────────────────────────────────────

    def build_statements(self):
        """(data_stmt, count_stmt) for the current filter/sort/page."""
        skip = (self.page - 1) * self.limit
        where = compile_filter(self.model, self.filter)

        data_stmt = (
            select(self.model)
            .where(*where)
            .options(
                *compile_select(self.model, self.select),
                *compile_populate(self.model, self.populate),
            )
            .order_by(*compile_sort(self.model, self.sort))
            .offset(skip)
            .limit(self.limit)
        )
        count_stmt = select(func.count()).select_from(self.model).where(*where)
        return data_stmt, count_stmt

    async def execute(self, session_factory: async_sessionmaker) -> QueryResult:
        """
        Run the data and count queries concurrently, each on its own session,
        bounded by self.timeout. On timeout the awaiting tasks are cancelled and
        QueryTimeoutError is raised; statements already sent are not recalled.
        """
        data_stmt, count_stmt = self.build_statements()

        async def _fetch():
            async with session_factory() as session:
                res = await session.execute(data_stmt)
                return list(res.scalars().all())

        async def _count():
            async with session_factory() as session:
                res = await session.execute(count_stmt)
                return int(res.scalar_one())

        perf = self.options["performance"]
        if perf.get("enable_query_logging"):
            logger.info(
                f"{self.model_name} query: filter={self.filter} sort={self.sort} "
                f"page={self.page} limit={self.limit}"
            )

        started = time.perf_counter()
        try:
            data, total = await asyncio.wait_for(
                asyncio.gather(_fetch(), _count()),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"{self.model_name} query exceeded {self.timeout:g}s; abandoned")
            raise QueryTimeoutError(self.timeout, self.model_name)

        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > perf.get("slow_query_threshold_ms", 1000):
            logger.warning(f"Slow {self.model_name} query: {elapsed_ms:.0f}ms filter={self.filter}")

        return QueryResult(
            data=data,
            pagination=PaginationMeta.build(page=self.page, limit=self.limit, total=total),
            filter=copy.deepcopy(self.filter),
            sort=dict(self.sort),
        )


async def paginated_query(
    model,
    query_params: dict,
    session_factory: async_sessionmaker,
    *,
    search_fields: list[str] | None = None,
    filter_config: dict | None = None,
    default_sort: dict | None = None,
    default_populate: str | None = None,
    is_admin: bool = False,
) -> QueryResult:
    """Full parse + execute chain with per-call defaults layered on the model config."""
    options: dict = {"is_admin": is_admin}
    if default_populate is not None:
        options["default_populate"] = default_populate

    builder = QueryBuilder(model, query_params, options)
    if default_sort:
        builder.options["sorting"] = {**builder.options["sorting"], "default_sort": default_sort}

    builder.paginate().sort_by().select_fields().populate_fields()
    builder.search(search_fields).apply_filters(filter_config)
    return await builder.execute(session_factory)
