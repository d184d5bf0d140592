"""
User endpoints — admin listing.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from database import get_session_factory
from deps import list_query_params, require_admin
from domain.responses import paginated_response
from services import listing_service
from utils.serializers import serialize_many

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/admin")
async def list_users_admin(
    params: dict = Depends(list_query_params),
    _admin=Depends(require_admin),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """Paginated user list. Projections are limited to whitelisted fields."""
    result = await listing_service.get_users(session_factory, params)
    return paginated_response(serialize_many(result.data), result.pagination, result.filter, result.sort)
