from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from planipeda.database import get_db
from planipeda.services.dashboard_service import DashboardService

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

@router.get("/stats")
async def get_stats(db: AsyncSession = Depends(get_db)):
    return await DashboardService.stats(db)
