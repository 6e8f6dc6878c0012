"""
Conduit Backend: Tag Route Handler
===================================

GET /api/tags → {"tags": [...]}: every tag in use, distinct and sorted.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db_session
from conduit.schemas.article import TagListResponse
from conduit.services.article_service import article_service

router = APIRouter(prefix="/api", tags=["Tags"])


@router.get("/tags", response_model=TagListResponse)
async def list_tags(db: AsyncSession = Depends(get_db_session)) -> TagListResponse:
    return TagListResponse(tags=await article_service.list_tags(db))
