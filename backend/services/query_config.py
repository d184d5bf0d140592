"""
Per-entity configuration for list queries.

Three layers are merged, later ones winning key by key inside each section:

    DEFAULT_CONFIG  <  ENVIRONMENT_CONFIGS[environment]  <  MODEL_CONFIGS[model_name]

filterable_fields drives QueryBuilder.apply_filters(); each entry names a
filter type (range | array | boolean | regex | objectId | date) plus optional
constraints (field, values, min, max, max_items, required, options). The
per-entity tables themselves live in services/query_presets.py.
"""
import copy
import logging

from services.query_presets import FILTER_CONFIGS, POPULATE_CONFIGS, SEARCH_CONFIGS
from utils.validators import parse_number

logger = logging.getLogger(__name__)

_SECTIONS = ("pagination", "sorting", "filtering", "search", "performance", "security")

DEFAULT_CONFIG = {
    "pagination": {
        "default_page": 1,
        "default_limit": 10,
        "max_limit": 100,
    },
    "sorting": {
        "default_sort": {"createdAt": -1},
    },
    "filtering": {
        "regex_options": "i",
    },
    "search": {
        "search_options": "i",
    },
    "performance": {
        "enable_query_logging": False,
        "slow_query_threshold_ms": 1000,
    },
    "security": {
        "enable_field_whitelist": False,
        "allowed_fields": [],
    },
    "search_fields": [],
    "default_populate": "",
    "filterable_fields": {},
}

MODEL_CONFIGS = {
    "Product": {
        "search_fields": SEARCH_CONFIGS["product"],
        "default_populate": POPULATE_CONFIGS["product"],
        "filterable_fields": FILTER_CONFIGS["product"],
        "pagination": {
            "default_limit": 12,
            "max_limit": 50,
        },
    },

    "User": {
        "search_fields": SEARCH_CONFIGS["user"],
        "filterable_fields": FILTER_CONFIGS["user"],
        "security": {
            "enable_field_whitelist": True,
            "allowed_fields": ["id", "name", "email", "phone", "role", "isActive", "createdAt"],
        },
    },

    "Order": {
        "search_fields": SEARCH_CONFIGS["order"],
        "default_populate": POPULATE_CONFIGS["order"],
        "filterable_fields": FILTER_CONFIGS["order"],
        "pagination": {
            "default_limit": 20,
            "max_limit": 100,
        },
    },

    "Category": {
        "search_fields": SEARCH_CONFIGS["category"],
        "default_populate": POPULATE_CONFIGS["category"],
        "filterable_fields": FILTER_CONFIGS["category"],
    },

    "PaymentMethod": {
        "search_fields": SEARCH_CONFIGS["paymentMethod"],
        "filterable_fields": FILTER_CONFIGS["paymentMethod"],
    },
}

ENVIRONMENT_CONFIGS = {
    "development": {
        "performance": {
            "enable_query_logging": True,
            "slow_query_threshold_ms": 500,
        },
        "pagination": {
            "max_limit": 1000,
        },
    },

    "production": {
        "performance": {
            "enable_query_logging": False,
            "slow_query_threshold_ms": 1000,
        },
        "pagination": {
            "max_limit": 100,
        },
        "security": {
            "enable_field_whitelist": True,
        },
    },

    "test": {
        "pagination": {
            "default_limit": 5,
            "max_limit": 20,
        },
        "performance": {
            "enable_query_logging": False,
        },
    },
}


def get_model_config(model_name: str, environment: str = "development") -> dict:
    """Merged configuration for one model in one environment (a fresh copy)."""
    model_config = MODEL_CONFIGS.get(model_name, {})
    env_config = ENVIRONMENT_CONFIGS.get(environment, {})

    merged = copy.deepcopy(DEFAULT_CONFIG)
    for layer in (env_config, model_config):
        for key, value in layer.items():
            if key in _SECTIONS:
                merged[key].update(copy.deepcopy(value))
            else:
                merged[key] = copy.deepcopy(value)
    return merged


def validate_filter_value(field: str, value, config: dict) -> bool:
    """
    Check a raw query value against the constraints of its filterable field.

    Fields without an entry are always accepted. Array values are checked item
    by item against `values`; use allowed_array_items() to keep the good ones.
    """
    field_config = config.get("filterable_fields", {}).get(field)
    if not field_config:
        return True

    if field_config.get("required") and (value is None or value == ""):
        return False

    ftype = field_config.get("type")

    if ftype == "array":
        items = value if isinstance(value, list) else [v.strip() for v in str(value).split(",") if v.strip()]
        max_items = field_config.get("max_items")
        if max_items and len(items) > max_items:
            return False
        return True

    allowed = field_config.get("values")
    if allowed and value not in allowed:
        return False

    if ftype == "range":
        number = parse_number(value)
        if number is None:
            return False
        if field_config.get("min") is not None and number < field_config["min"]:
            return False
        if field_config.get("max") is not None and number > field_config["max"]:
            return False

    return True


def allowed_array_items(field: str, items: list[str], config: dict) -> list[str]:
    """Drop array items that are not in the field's `values` list (if any)."""
    field_config = config.get("filterable_fields", {}).get(field) or {}
    allowed = field_config.get("values")
    if not allowed:
        return items
    kept = [item for item in items if item in allowed]
    if len(kept) != len(items):
        logger.debug(f"Dropped disallowed values for {field}: {sorted(set(items) - set(kept))}")
    return kept
