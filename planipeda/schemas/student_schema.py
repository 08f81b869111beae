from datetime import date, datetime
from pydantic import BaseModel, Field
from typing import List, Optional

class ClasseRequest(BaseModel):
    nom_classe: str = Field(..., example="TC-3")
    annee_scolaire: Optional[str] = Field(None, example="2024-2025")
    niveau_id: Optional[int] = None
    option_id: Optional[int] = None

class ClasseResponse(BaseModel):
    id: int
    nom_classe: str
    annee_scolaire: Optional[str] = None
    niveau_id: Optional[int] = None
    option_id: Optional[int] = None
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class EleveRequest(BaseModel):
    # Checked by the service so the user gets the form's own messages
    code_eleve: Optional[str] = Field(None, example="J130245678")
    nom: Optional[str] = Field(None, example="Benali")
    prenom: Optional[str] = Field(None, example="Sara")
    date_naissance: Optional[date] = None
    classe_id: Optional[int] = None

class EleveResponse(BaseModel):
    id: int
    code_eleve: str
    nom: str
    prenom: str
    date_naissance: Optional[date] = None
    classe_id: int
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class EleveDetail(EleveResponse):
    nom_classe: Optional[str] = None
    total_heures_absence: float = 0

class NotesRequest(BaseModel):
    cc1: Optional[float] = Field(None, example=14.5)
    cc2: Optional[float] = None
    cc3: Optional[float] = None
    c_act: Optional[float] = None

class NotesResponse(NotesRequest):
    eleve_id: int
    moyenne: Optional[float] = None
    updated_at: Optional[datetime] = None

class ClasseNotesLine(NotesResponse):
    code_eleve: str
    nom: str
    prenom: str

class AbsenceRequest(BaseModel):
    date_absence: date
    heures: float = Field(..., example=2)
    motif: Optional[str] = None

class AbsenceResponse(BaseModel):
    id: int
    eleve_id: int
    date_absence: date
    heures: float
    motif: Optional[str] = None
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class ClasseNotesResponse(BaseModel):
    classe: ClasseResponse
    eleves: List[ClasseNotesLine] = []
