"""
Domain constants used across services/routers.
"""

# Query-string keys that control the list query instead of filtering it
RESERVED_QUERY_PARAMS = frozenset({
    "page", "limit", "sort", "sortBy", "sortOrder", "order",
    "select", "populate", "search",
})

# Default ordering when the request carries no sort input
DEFAULT_SORT = {"createdAt": -1}

# Admin list views: newest first, ties broken by last update
DEFAULT_ADMIN_SORT = {"createdAt": -1, "updatedAt": -1}

# Third-party online gateways; their payment status is externally authoritative
DIGITAL_GATEWAY_METHODS = frozenset({"vnpay", "momo", "zalopay"})

COD_METHOD = "cod"
