from fastapi import APIRouter, Body, Depends, Response
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import io

from planipeda.database import get_db
from planipeda.schemas.planning_schema import AddItemRequest, FicheSummary, MoveItemRequest, PlanChapitre
from planipeda.services.export_service import DOCX_MEDIA_TYPE, ExportService, export_title, safe_filename
from planipeda.services.planning_service import PlanningService

router = APIRouter(prefix="/api/planning", tags=["planning"])

@router.get("/fiches", response_model=List[FicheSummary])
async def list_fiches(
    chapitre_id: Optional[int] = None,
    unite_id: Optional[int] = None,
    option_id: Optional[int] = None,
    niveau_id: Optional[int] = None,
    statut: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    return await PlanningService.list_fiches(db, chapitre_id, unite_id, option_id, niveau_id, statut)

@router.get("/fiches/{fiche_id}", response_model=PlanChapitre)
async def load_fiche(fiche_id: int, db: AsyncSession = Depends(get_db)):
    return await PlanningService.load(db, fiche_id)

@router.post("/fiches", response_model=PlanChapitre)
async def create_fiche(plan: PlanChapitre, db: AsyncSession = Depends(get_db)):
    return await PlanningService.save(db, plan)

@router.put("/fiches/{fiche_id}", response_model=PlanChapitre)
async def update_fiche(fiche_id: int, plan: PlanChapitre, db: AsyncSession = Depends(get_db)):
    return await PlanningService.save(db, plan, fiche_id)

@router.delete("/fiches/{fiche_id}")
async def delete_fiche(fiche_id: int, db: AsyncSession = Depends(get_db)):
    await PlanningService.delete(db, fiche_id)
    return {"message": "Fiche deleted successfully"}

# --- Progression ---

@router.post("/fiches/{fiche_id}/items", response_model=PlanChapitre)
async def add_item(fiche_id: int, req: AddItemRequest, db: AsyncSession = Depends(get_db)):
    return await PlanningService.add_item(db, fiche_id, req)

@router.post("/fiches/{fiche_id}/items/move", response_model=PlanChapitre)
async def move_item(fiche_id: int, req: MoveItemRequest, db: AsyncSession = Depends(get_db)):
    return await PlanningService.move_item(db, fiche_id, req)

@router.put("/fiches/{fiche_id}/items/order", response_model=PlanChapitre)
async def reorder_items(fiche_id: int, item_ids: List[str] = Body(...), db: AsyncSession = Depends(get_db)):
    return await PlanningService.reorder(db, fiche_id, item_ids)

@router.delete("/fiches/{fiche_id}/items/{item_id}", response_model=PlanChapitre)
async def remove_item(fiche_id: int, item_id: str, db: AsyncSession = Depends(get_db)):
    return await PlanningService.remove_item(db, fiche_id, item_id)

# --- Export ---

@router.get("/fiches/{fiche_id}/export/pdf")
async def export_fiche_pdf(fiche_id: int, db: AsyncSession = Depends(get_db)):
    plan, path = await ExportService.load(db, fiche_id)
    pdf_bytes = ExportService.to_pdf(plan, path)
    filename = safe_filename(export_title(plan))
    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"attachment; filename={filename}.pdf",
            "Access-Control-Expose-Headers": "Content-Disposition"
        }
    )

@router.get("/fiches/{fiche_id}/export/docx")
async def export_fiche_docx(fiche_id: int, db: AsyncSession = Depends(get_db)):
    plan, path = await ExportService.load(db, fiche_id)
    file_stream = ExportService.to_docx(plan, path)
    filename = safe_filename(export_title(plan))
    return Response(
        content=file_stream.getvalue(),
        media_type=DOCX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f"attachment; filename={filename}.docx",
            "Access-Control-Expose-Headers": "Content-Disposition"
        }
    )
