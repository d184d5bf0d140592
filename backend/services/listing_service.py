"""
Listing service — preconfigured paginated queries per entity.

get_listing() applies an entity's preset (search fields, filter table,
default populate) from services/query_presets.py to any ORM model and runs
the QueryBuilder chain. The named helpers below are the ones the routes use.
"""
from sqlalchemy.ext.asyncio import async_sessionmaker

from db_models import Category, Order, Product, User
from services.query_builder import QueryResult, paginated_query
from services.query_presets import get_preset


async def get_listing(
    entity: str,
    model,
    session_factory: async_sessionmaker,
    query_params: dict,
    *,
    default_sort: dict | None = None,
    is_admin: bool = False,
) -> QueryResult:
    preset = get_preset(entity)
    return await paginated_query(
        model,
        query_params,
        session_factory,
        search_fields=preset["search_fields"],
        filter_config=preset["filter_config"],
        default_sort=default_sort,
        default_populate=preset["default_populate"],
        is_admin=is_admin,
    )


async def get_products(session_factory: async_sessionmaker, query_params: dict, *, is_admin: bool = False) -> QueryResult:
    params = dict(query_params)
    if not is_admin:
        # storefront never lists deactivated products
        params["isActive"] = "true"
    return await get_listing("product", Product, session_factory, params, is_admin=is_admin)


async def get_orders(session_factory: async_sessionmaker, query_params: dict, *, is_admin: bool = True) -> QueryResult:
    return await get_listing("order", Order, session_factory, query_params, is_admin=is_admin)


async def get_users(session_factory: async_sessionmaker, query_params: dict, *, is_admin: bool = True) -> QueryResult:
    return await get_listing("user", User, session_factory, query_params, is_admin=is_admin)


async def get_categories(session_factory: async_sessionmaker, query_params: dict, *, is_admin: bool = False) -> QueryResult:
    return await get_listing(
        "category",
        Category,
        session_factory,
        query_params,
        default_sort={"order": 1, "name": 1},
        is_admin=is_admin,
    )
