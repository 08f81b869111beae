from pydantic import BaseModel, Field
from typing import Optional

class CompetenceRequest(BaseModel):
    titre_competence: str
    description_competence: Optional[str] = None
    type_competence: str = Field("spécifique", example="spécifique") # générale | spécifique
    unite_id: Optional[int] = None

class CompetenceResponse(BaseModel):
    id: int
    titre_competence: str
    description_competence: Optional[str] = None
    type_competence: str
    unite_id: Optional[int] = None
    class Config:
        from_attributes = True

class ConnaissanceRequest(BaseModel):
    titre_connaissance: str
    description_connaissance: Optional[str] = None
    chapitre_id: Optional[int] = None

class ConnaissanceResponse(BaseModel):
    id: int
    titre_connaissance: str
    description_connaissance: Optional[str] = None
    chapitre_id: Optional[int] = None
    class Config:
        from_attributes = True

class CapaciteRequest(BaseModel):
    titre_capacite_habilete: str

class CapaciteResponse(BaseModel):
    id: int
    titre_capacite_habilete: str
    class Config:
        from_attributes = True

class ModaliteRequest(BaseModel):
    nom_modalite: str

class ModaliteResponse(BaseModel):
    id: int
    nom_modalite: str
    class Config:
        from_attributes = True
