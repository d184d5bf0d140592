"""
Product listing endpoints — public storefront list and admin list.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from database import get_session_factory
from deps import list_query_params, require_admin
from domain.responses import paginated_response
from services import listing_service
from utils.serializers import serialize_many

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
async def list_products(
    params: dict = Depends(list_query_params),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Active products with pagination, filters, search and sort.

    Example: /api/products?minPrice=100000&maxPrice=500000&sort=price:asc&page=2&limit=10
    """
    result = await listing_service.get_products(session_factory, params)
    return paginated_response(serialize_many(result.data), result.pagination, result.filter, result.sort)


@router.get("/admin")
async def list_products_admin(
    params: dict = Depends(list_query_params),
    _admin=Depends(require_admin),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """All products (including inactive) in canonical admin order."""
    result = await listing_service.get_products(session_factory, params, is_admin=True)
    return paginated_response(serialize_many(result.data), result.pagination, result.filter, result.sort)
