from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from planipeda.database import get_db
from planipeda.schemas.curriculum_schema import (
    ChapitrePath, ChapitreRequest, ChapitreResponse, ImportChapitresRequest, NiveauNode, NiveauRequest,
    NiveauResponse, ObjectifRequest, ObjectifResponse, OptionRequest, OptionResponse, SelectorResponse,
    UniteRequest, UniteResponse,
)
from planipeda.services.hierarchy_service import HierarchyService

router = APIRouter(prefix="/api/curriculum", tags=["curriculum"])

@router.post("/seed")
async def seed_data(db: AsyncSession = Depends(get_db)):
    # Demo hierarchy and reference data, only on an empty database
    return await HierarchyService.seed(db)

@router.get("/selector", response_model=SelectorResponse)
async def get_selector(
    niveau_id: Optional[int] = None,
    option_id: Optional[int] = None,
    unite_id: Optional[int] = None,
    chapitre_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db)
):
    return await HierarchyService.selector(db, niveau_id, option_id, unite_id, chapitre_id)

@router.get("/tree", response_model=List[NiveauNode])
async def get_tree(db: AsyncSession = Depends(get_db)):
    return await HierarchyService.tree(db)

@router.get("/chapitres/{chapitre_id}/path", response_model=ChapitrePath)
async def get_chapitre_path(chapitre_id: int, db: AsyncSession = Depends(get_db)):
    return await HierarchyService.chapitre_path(db, chapitre_id)

@router.post("/unites/{unite_id}/import-chapitres", response_model=List[ChapitreResponse])
async def import_chapitres(unite_id: int, req: ImportChapitresRequest, db: AsyncSession = Depends(get_db)):
    return await HierarchyService.import_chapitres(db, unite_id, req.contenu)


def register_level(level_name: str, request_model, response_model, parent_field: Optional[str] = None):
    """CRUD endpoints of one hierarchy level, listing filtered by its parent id."""

    @router.get(f"/{level_name}", response_model=List[response_model], name=f"list_{level_name}")
    async def list_items(
        parent_id: Optional[int] = Query(None, alias=parent_field or "parent_id"),
        db: AsyncSession = Depends(get_db)
    ):
        return await HierarchyService.list_items(db, level_name, parent_id)

    @router.get(f"/{level_name}/{{item_id}}", response_model=response_model, name=f"get_{level_name}")
    async def get_item(item_id: int, db: AsyncSession = Depends(get_db)):
        return await HierarchyService.get_item(db, level_name, item_id)

    @router.post(f"/{level_name}", response_model=response_model, name=f"create_{level_name}")
    async def create_item(req: request_model, db: AsyncSession = Depends(get_db)):
        return await HierarchyService.create_item(db, level_name, req.model_dump())

    @router.put(f"/{level_name}/{{item_id}}", response_model=response_model, name=f"update_{level_name}")
    async def update_item(item_id: int, req: request_model, db: AsyncSession = Depends(get_db)):
        return await HierarchyService.update_item(db, level_name, item_id, req.model_dump())

    @router.delete(f"/{level_name}/{{item_id}}", name=f"delete_{level_name}")
    async def delete_item(item_id: int, db: AsyncSession = Depends(get_db)):
        await HierarchyService.delete_item(db, level_name, item_id)
        return {"message": "Deleted successfully"}


register_level("niveaux", NiveauRequest, NiveauResponse)
register_level("options", OptionRequest, OptionResponse, "niveau_id")
register_level("unites", UniteRequest, UniteResponse, "option_id")
register_level("chapitres", ChapitreRequest, ChapitreResponse, "unite_id")
register_level("objectifs", ObjectifRequest, ObjectifResponse, "chapitre_id")
