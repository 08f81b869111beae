from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from planipeda.database import get_db
from planipeda.schemas.evaluation_schema import EvaluationRequest, EvaluationResponse, EvaluationSummary, ResultatsRequest
from planipeda.services.evaluation_service import EvaluationService

router = APIRouter(prefix="/api/evaluations", tags=["evaluations"])

@router.get("", response_model=List[EvaluationSummary])
async def list_evaluations(
    chapitre_id: Optional[int] = None,
    unite_id: Optional[int] = None,
    option_id: Optional[int] = None,
    niveau_id: Optional[int] = None,
    type_evaluation: Optional[str] = None,
    sequence_id: Optional[int] = None,
    activite_id: Optional[int] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    return await EvaluationService.list_evaluations(
        db, chapitre_id, unite_id, option_id, niveau_id, type_evaluation, sequence_id, activite_id, search
    )

@router.get("/{evaluation_id}", response_model=EvaluationResponse)
async def get_evaluation(evaluation_id: int, db: AsyncSession = Depends(get_db)):
    return await EvaluationService.get(db, evaluation_id)

@router.post("", response_model=EvaluationResponse)
async def create_evaluation(req: EvaluationRequest, db: AsyncSession = Depends(get_db)):
    return await EvaluationService.save(db, req)

@router.put("/{evaluation_id}", response_model=EvaluationResponse)
async def update_evaluation(evaluation_id: int, req: EvaluationRequest, db: AsyncSession = Depends(get_db)):
    return await EvaluationService.save(db, req, evaluation_id)

@router.put("/{evaluation_id}/resultats", response_model=EvaluationResponse)
async def record_resultats(evaluation_id: int, req: ResultatsRequest, db: AsyncSession = Depends(get_db)):
    return await EvaluationService.record_resultats(db, evaluation_id, req)

@router.delete("/{evaluation_id}")
async def delete_evaluation(evaluation_id: int, db: AsyncSession = Depends(get_db)):
    await EvaluationService.delete(db, evaluation_id)
    return {"message": "Evaluation deleted successfully"}
