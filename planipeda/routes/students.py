from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from planipeda.database import get_db
from planipeda.schemas.student_schema import (
    AbsenceRequest, AbsenceResponse, ClasseNotesResponse, ClasseRequest, ClasseResponse, EleveDetail, EleveRequest,
    EleveResponse, NotesRequest, NotesResponse,
)
from planipeda.services.student_service import StudentService

router = APIRouter(prefix="/api", tags=["students"])

# Classes

@router.get("/classes", response_model=List[ClasseResponse])
async def list_classes(
    niveau_id: Optional[int] = None,
    option_id: Optional[int] = None,
    annee_scolaire: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    return await StudentService.list_classes(db, niveau_id, option_id, annee_scolaire)

@router.get("/classes/{classe_id}", response_model=ClasseResponse)
async def get_class(classe_id: int, db: AsyncSession = Depends(get_db)):
    return await StudentService.get_class(db, classe_id)

@router.get("/classes/{classe_id}/notes", response_model=ClasseNotesResponse)
async def get_class_notes(classe_id: int, db: AsyncSession = Depends(get_db)):
    return await StudentService.class_notes(db, classe_id)

@router.post("/classes", response_model=ClasseResponse)
async def create_class(req: ClasseRequest, db: AsyncSession = Depends(get_db)):
    return await StudentService.create_class(db, req)

@router.put("/classes/{classe_id}", response_model=ClasseResponse)
async def update_class(classe_id: int, req: ClasseRequest, db: AsyncSession = Depends(get_db)):
    return await StudentService.update_class(db, classe_id, req)

@router.delete("/classes/{classe_id}")
async def delete_class(classe_id: int, db: AsyncSession = Depends(get_db)):
    await StudentService.delete_class(db, classe_id)
    return {"message": "Class deleted successfully"}

# Students

@router.get("/eleves", response_model=List[EleveResponse])
async def list_students(classe_id: Optional[int] = None, search: Optional[str] = None, db: AsyncSession = Depends(get_db)):
    return await StudentService.list_students(db, classe_id, search)

@router.get("/eleves/{eleve_id}", response_model=EleveDetail)
async def get_student(eleve_id: int, db: AsyncSession = Depends(get_db)):
    return await StudentService.get_student(db, eleve_id)

@router.post("/eleves", response_model=EleveDetail)
async def create_student(req: EleveRequest, db: AsyncSession = Depends(get_db)):
    return await StudentService.create_student(db, req)

@router.put("/eleves/{eleve_id}", response_model=EleveDetail)
async def update_student(eleve_id: int, req: EleveRequest, db: AsyncSession = Depends(get_db)):
    return await StudentService.update_student(db, eleve_id, req)

@router.delete("/eleves/{eleve_id}")
async def delete_student(eleve_id: int, db: AsyncSession = Depends(get_db)):
    await StudentService.delete_student(db, eleve_id)
    return {"message": "Student deleted successfully"}

# Grades and absences

@router.get("/eleves/{eleve_id}/notes", response_model=NotesResponse)
async def get_notes(eleve_id: int, db: AsyncSession = Depends(get_db)):
    return await StudentService.get_notes(db, eleve_id)

@router.put("/eleves/{eleve_id}/notes", response_model=NotesResponse)
async def save_notes(eleve_id: int, req: NotesRequest, db: AsyncSession = Depends(get_db)):
    return await StudentService.save_notes(db, eleve_id, req)

@router.get("/eleves/{eleve_id}/absences", response_model=List[AbsenceResponse])
async def list_absences(eleve_id: int, db: AsyncSession = Depends(get_db)):
    return await StudentService.list_absences(db, eleve_id)

@router.post("/eleves/{eleve_id}/absences", response_model=AbsenceResponse)
async def add_absence(eleve_id: int, req: AbsenceRequest, db: AsyncSession = Depends(get_db)):
    return await StudentService.add_absence(db, eleve_id, req)

@router.delete("/eleves/{eleve_id}/absences/{absence_id}")
async def delete_absence(eleve_id: int, absence_id: int, db: AsyncSession = Depends(get_db)):
    await StudentService.delete_absence(db, eleve_id, absence_id)
    return {"message": "Absence deleted successfully"}
