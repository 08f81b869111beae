from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from planipeda.database import get_db
from planipeda.schemas.referentiel_schema import (
    CapaciteRequest, CapaciteResponse, CompetenceRequest, CompetenceResponse, ConnaissanceRequest,
    ConnaissanceResponse, ModaliteRequest, ModaliteResponse,
)
from planipeda.services.referentiel_service import ReferentielService

router = APIRouter(prefix="/api/referentiels", tags=["referentiels"])

# Listing endpoints carry their own filters

@router.get("/competences", response_model=List[CompetenceResponse])
async def list_competences(
    type_competence: Optional[str] = None,
    unite_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db)
):
    return await ReferentielService.list_items(db, "competences", type_competence=type_competence, unite_id=unite_id)

@router.get("/connaissances", response_model=List[ConnaissanceResponse])
async def list_connaissances(chapitre_id: Optional[int] = None, db: AsyncSession = Depends(get_db)):
    return await ReferentielService.list_items(db, "connaissances", chapitre_id=chapitre_id)

@router.get("/capacites", response_model=List[CapaciteResponse])
async def list_capacites(db: AsyncSession = Depends(get_db)):
    return await ReferentielService.list_items(db, "capacites")

@router.get("/modalites", response_model=List[ModaliteResponse])
async def list_modalites(db: AsyncSession = Depends(get_db)):
    return await ReferentielService.list_items(db, "modalites")


def register_referentiel(name: str, request_model, response_model):

    @router.get(f"/{name}/{{item_id}}", response_model=response_model, name=f"get_{name}")
    async def get_item(item_id: int, db: AsyncSession = Depends(get_db)):
        return await ReferentielService.get_item(db, name, item_id)

    @router.post(f"/{name}", response_model=response_model, name=f"create_{name}")
    async def create_item(req: request_model, db: AsyncSession = Depends(get_db)):
        return await ReferentielService.create_item(db, name, req.model_dump())

    @router.put(f"/{name}/{{item_id}}", response_model=response_model, name=f"update_{name}")
    async def update_item(item_id: int, req: request_model, db: AsyncSession = Depends(get_db)):
        return await ReferentielService.update_item(db, name, item_id, req.model_dump())

    @router.delete(f"/{name}/{{item_id}}", name=f"delete_{name}")
    async def delete_item(item_id: int, db: AsyncSession = Depends(get_db)):
        await ReferentielService.delete_item(db, name, item_id)
        return {"message": "Deleted successfully"}


register_referentiel("competences", CompetenceRequest, CompetenceResponse)
register_referentiel("connaissances", ConnaissanceRequest, ConnaissanceResponse)
register_referentiel("capacites", CapaciteRequest, CapaciteResponse)
register_referentiel("modalites", ModaliteRequest, ModaliteResponse)
