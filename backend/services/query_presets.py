"""
Filter, search and populate presets per storefront entity.

Keys are entity names as used by the list endpoints (product, order, ...).
services/query_config.py builds MODEL_CONFIGS from these tables, and
listing_service.get_listing() applies them to any ORM model.
"""
import copy

from domain.enums import OrderStatus, PaymentStatus, UserRole

FILTER_CONFIGS = {
    "product": {
        "category": {"type": "objectId"},
        "brand": {"type": "regex"},
        "name": {"type": "regex"},
        "minPrice": {"type": "range", "field": "price", "min": 0},
        "maxPrice": {"type": "range", "field": "price", "max": 1_000_000},
        "isActive": {"type": "boolean"},
        "isFeatured": {"type": "boolean"},
        "rating": {"type": "range", "field": "averageRating", "min": 1, "max": 5},
        "minRating": {"type": "range", "field": "averageRating", "min": 0, "max": 5},
        "maxRating": {"type": "range", "field": "averageRating", "min": 0, "max": 5},
        "createdFrom": {"type": "date", "field": "createdAt"},
        "createdTo": {"type": "date", "field": "createdAt"},
    },
    "user": {
        "role": {"type": "regex", "values": [r.value for r in UserRole]},
        "email": {"type": "regex"},
        "phone": {"type": "regex"},
        "isActive": {"type": "boolean"},
        "isVerified": {"type": "boolean"},
        "createdFrom": {"type": "date", "field": "createdAt"},
        "createdTo": {"type": "date", "field": "createdAt"},
        "lastLoginFrom": {"type": "date", "field": "lastLogin"},
        "lastLoginTo": {"type": "date", "field": "lastLogin"},
    },
    "order": {
        "status": {"type": "array", "values": [s.value for s in OrderStatus]},
        "paymentStatus": {"type": "array", "values": [s.value for s in PaymentStatus]},
        "user": {"type": "objectId"},
        "paymentMethod": {"type": "objectId"},
        "minTotal": {"type": "range", "field": "total", "min": 0},
        "maxTotal": {"type": "range", "field": "total", "max": 10_000_000},
        "orderDateFrom": {"type": "date", "field": "createdAt"},
        "orderDateTo": {"type": "date", "field": "createdAt"},
        "orderCode": {"type": "regex"},
    },
    "category": {
        "parent": {"type": "objectId"},
        "isActive": {"type": "boolean"},
        "name": {"type": "regex"},
        "level": {"type": "range", "min": 0, "max": 5},
    },
    "paymentMethod": {
        "code": {"type": "array", "max_items": 10},
        "isActive": {"type": "boolean"},
    },
    # review, post, banner and productVariant have no table yet; get_listing()
    # applies these presets once a model exists.
    "review": {
        "product": {"type": "objectId"},
        "user": {"type": "objectId"},
        "rating": {"type": "array", "values": ["1", "2", "3", "4", "5"]},
        "minRating": {"type": "range", "field": "rating", "min": 1, "max": 5},
        "maxRating": {"type": "range", "field": "rating", "min": 1, "max": 5},
    },
    "post": {
        "author": {"type": "objectId"},
        "isPublished": {"type": "boolean"},
        "title": {"type": "regex"},
        "content": {"type": "regex"},
        "tags": {"type": "array"},
        "publishedFrom": {"type": "date", "field": "publishedAt"},
        "publishedTo": {"type": "date", "field": "publishedAt"},
    },
    "banner": {
        "isActive": {"type": "boolean"},
        "title": {"type": "regex"},
        "startDateFrom": {"type": "date", "field": "startDate"},
        "startDateTo": {"type": "date", "field": "startDate"},
        "endDateFrom": {"type": "date", "field": "endDate"},
        "endDateTo": {"type": "date", "field": "endDate"},
    },
    "productVariant": {
        "product": {"type": "objectId"},
        "color": {"type": "objectId"},
        "size": {"type": "objectId"},
        "minPrice": {"type": "range", "field": "price", "min": 0},
        "maxPrice": {"type": "range", "field": "price"},
        "minStock": {"type": "range", "field": "stock", "min": 0},
        "maxStock": {"type": "range", "field": "stock"},
        "isActive": {"type": "boolean"},
    },
}

SEARCH_CONFIGS = {
    "product": ["name", "description", "brand"],
    "user": ["name", "email", "phone"],
    "order": ["orderCode"],
    "category": ["name", "description"],
    "paymentMethod": ["code", "name"],
    "review": ["comment"],
    "post": ["title", "content", "excerpt"],
    "banner": ["title", "description"],
    "productVariant": [],
}

POPULATE_CONFIGS = {
    "product": "category",
    "order": "user paymentMethod",
    "category": "parent",
    "review": "user product order",
    "post": "author",
    "productVariant": "product color size",
}


def get_preset(entity: str) -> dict:
    """search_fields / filter_config / default_populate for one entity (copies)."""
    return {
        "search_fields": list(SEARCH_CONFIGS.get(entity, [])),
        "filter_config": copy.deepcopy(FILTER_CONFIGS.get(entity, {})),
        "default_populate": POPULATE_CONFIGS.get(entity, ""),
    }
