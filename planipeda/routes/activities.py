from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from planipeda.database import get_db
from planipeda.schemas.activity_schema import ActivityRequest, ActivityResponse, ActivitySummary
from planipeda.services.activity_service import ActivityService

router = APIRouter(prefix="/api/activities", tags=["activities"])

@router.get("", response_model=List[ActivitySummary])
async def list_activities(
    chapitre_id: Optional[int] = None,
    unite_id: Optional[int] = None,
    option_id: Optional[int] = None,
    niveau_id: Optional[int] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    return await ActivityService.list_activities(db, chapitre_id, unite_id, option_id, niveau_id, search)

@router.get("/{activite_id}", response_model=ActivityResponse)
async def get_activity(activite_id: int, db: AsyncSession = Depends(get_db)):
    return await ActivityService.get(db, activite_id)

@router.post("", response_model=ActivityResponse)
async def create_activity(req: ActivityRequest, db: AsyncSession = Depends(get_db)):
    return await ActivityService.save(db, req)

@router.put("/{activite_id}", response_model=ActivityResponse)
async def update_activity(activite_id: int, req: ActivityRequest, db: AsyncSession = Depends(get_db)):
    return await ActivityService.save(db, req, activite_id)

@router.delete("/{activite_id}")
async def delete_activity(activite_id: int, db: AsyncSession = Depends(get_db)):
    await ActivityService.delete(db, activite_id)
    return {"message": "Activity deleted successfully"}
