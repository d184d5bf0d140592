"""
Category endpoints — public listing.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from database import get_session_factory
from deps import list_query_params
from domain.responses import paginated_response
from services import listing_service
from utils.serializers import serialize_many

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
async def list_categories(
    params: dict = Depends(list_query_params),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    result = await listing_service.get_categories(session_factory, params)
    return paginated_response(serialize_many(result.data), result.pagination, result.filter, result.sort)
