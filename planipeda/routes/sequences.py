from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from planipeda.database import get_db
from planipeda.schemas.sequence_schema import SequenceRequest, SequenceResponse, SequenceSummary
from planipeda.services.sequence_service import SequenceService

router = APIRouter(prefix="/api/sequences", tags=["sequences"])

@router.get("", response_model=List[SequenceSummary])
async def list_sequences(
    chapitre_id: Optional[int] = None,
    unite_id: Optional[int] = None,
    option_id: Optional[int] = None,
    niveau_id: Optional[int] = None,
    statut: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    return await SequenceService.list_sequences(db, chapitre_id, unite_id, option_id, niveau_id, statut)

@router.put("/chapitres/{chapitre_id}/ordre", response_model=List[SequenceSummary])
async def reorder_sequences(chapitre_id: int, sequence_ids: List[int] = Body(...), db: AsyncSession = Depends(get_db)):
    return await SequenceService.reorder_chapitre(db, chapitre_id, sequence_ids)

@router.get("/{sequence_id}", response_model=SequenceResponse)
async def get_sequence(sequence_id: int, db: AsyncSession = Depends(get_db)):
    return await SequenceService.get(db, sequence_id)

@router.post("", response_model=SequenceResponse)
async def create_sequence(req: SequenceRequest, db: AsyncSession = Depends(get_db)):
    return await SequenceService.save(db, req)

@router.put("/{sequence_id}", response_model=SequenceResponse)
async def update_sequence(sequence_id: int, req: SequenceRequest, db: AsyncSession = Depends(get_db)):
    return await SequenceService.save(db, req, sequence_id)

@router.delete("/{sequence_id}")
async def delete_sequence(sequence_id: int, db: AsyncSession = Depends(get_db)):
    await SequenceService.delete(db, sequence_id)
    return {"message": "Sequence deleted successfully"}
