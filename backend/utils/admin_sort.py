"""
Sort parsing shared by the list endpoints, plus the admin sort resolver.

Accepted syntaxes (all from the query string):
    sort=price:asc,createdAt:desc
    sort=price,-createdAt
    sort=price&sortOrder=desc      (or order=desc)
    sortBy=price&sortOrder=asc
    sort={"total": 1}              (admin views only)

Admin list views never trust the client ordering blindly: fields are checked
against SORTABLE_FIELDS and createdAt DESC is always present as a tie-breaker.
"""
import json
import logging

from domain.constants import DEFAULT_ADMIN_SORT

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "User": ["name", "email", "createdAt", "updatedAt", "lastLogin"],
    "Order": ["orderCode", "total", "finalTotal", "createdAt", "updatedAt", "status"],
    "Product": ["name", "price", "createdAt", "updatedAt", "averageRating"],
    "Category": ["name", "createdAt", "updatedAt", "order"],
    "PaymentMethod": ["name", "code", "createdAt", "updatedAt"],
}

# /admin/<resource> path segment -> model name
ADMIN_RESOURCE_MODELS = {
    "users": "User",
    "orders": "Order",
    "products": "Product",
    "categories": "Category",
    "payments": "PaymentMethod",
}

_ASC = {"asc", "ascending", "1"}
_DESC = {"desc", "descending", "-1"}


def _direction(token, default: int) -> int:
    text = str(token).strip().lower() if token is not None else ""
    if text in _ASC:
        return 1
    if text in _DESC:
        return -1
    return default


def _parse_json_sort(raw: str) -> dict[str, int] | None:
    try:
        parsed = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(parsed, dict):
        return None
    result = {}
    for field, value in parsed.items():
        if isinstance(value, bool):
            result[str(field)] = 1
        elif isinstance(value, (int, float)):
            result[str(field)] = -1 if value < 0 else 1
        else:
            result[str(field)] = _direction(value, 1)
    return result


def parse_sort_params(query_params: dict, allow_json: bool = False, default_direction: int = 1) -> dict[str, int]:
    """
    Parse sort/sortBy/sortOrder/order into an ordered {field: 1|-1} dict.

    Returns {} when the request carries no sort input. A lone `sort=field`
    takes `default_direction` (ascending) unless an order parameter says
    otherwise; `sortBy=field` defaults to descending.
    """
    sort = (query_params.get("sort") or "").strip()
    sort_by = (query_params.get("sortBy") or "").strip()
    order = query_params.get("sortOrder") or query_params.get("order")

    if sort:
        if allow_json and sort.startswith("{"):
            parsed = _parse_json_sort(sort)
            if parsed is not None:
                return parsed

        if "," in sort or ":" in sort or sort.startswith("-"):
            result = {}
            for token in sort.split(","):
                token = token.strip()
                if not token:
                    continue
                if ":" in token:
                    field, _, direction = token.partition(":")
                    field = field.strip()
                    if field:
                        result[field] = _direction(direction, 1)
                elif token.startswith("-"):
                    if token[1:]:
                        result[token[1:]] = -1
                else:
                    result[token] = 1
            return result

        return {sort: _direction(order, default_direction)}

    if sort_by:
        return {sort_by: _direction(order, -1)}

    return {}


def parse_admin_sort(query_params: dict, model_name: str) -> dict[str, int]:
    """
    Canonical sort for admin list views. Pure: no I/O, no mutation of inputs.

    - no sort input          -> {"createdAt": -1, "updatedAt": -1}
    - unknown fields         -> discarded (warning logged)
    - nothing valid left     -> the default above
    - otherwise              -> validated fields + createdAt DESC tie-breaker
    - a lone `sort=field` with no order parameter is descending
    """
    if not query_params.get("sort") and not query_params.get("sortBy"):
        return dict(DEFAULT_ADMIN_SORT)

    requested = parse_sort_params(query_params, allow_json=True, default_direction=-1)
    allowed = SORTABLE_FIELDS.get(model_name, [])

    validated = {}
    for field, direction in requested.items():
        if field in allowed:
            validated[field] = direction
        else:
            logger.warning(f"Field '{field}' is not sortable for model '{model_name}'")

    if not validated:
        return dict(DEFAULT_ADMIN_SORT)

    if "createdAt" not in validated:
        validated["createdAt"] = -1

    return validated


def get_sortable_fields(model_name: str) -> list[str]:
    return list(SORTABLE_FIELDS.get(model_name, []))


def is_admin_request(path: str | None = None, role: str | None = None) -> bool:
    """Admin views are recognised by an /admin/ path segment or an admin caller."""
    segments = [s for s in (path or "").split("/") if s]
    return "admin" in segments or role == "admin"


def resolve_admin_model(path: str) -> str:
    """
    Infer the model behind an admin path.

    Both /api/admin/orders and /api/orders/admin are recognised; anything
    unrecognised falls back to Product.
    """
    segments = [s for s in (path or "").split("/") if s]
    if "admin" in segments:
        idx = segments.index("admin")
        for candidate in (segments[idx + 1:idx + 2] + segments[max(idx - 1, 0):idx]):
            if candidate in ADMIN_RESOURCE_MODELS:
                return ADMIN_RESOURCE_MODELS[candidate]
    return "Product"
