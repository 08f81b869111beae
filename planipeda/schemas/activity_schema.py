from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from planipeda.schemas.curriculum_schema import HierarchyPath, ObjectifResponse

class ActivityRequest(BaseModel):
    titre_activite: Optional[str] = Field(None, example="Observation d'une combustion")
    chapitre_id: Optional[int] = None
    description: Optional[str] = None
    role_enseignant: Optional[str] = None
    materiel: Optional[str] = None
    duree_minutes: Optional[int] = Field(None, example=55)
    modalite_deroulement: Optional[str] = None
    modalite_evaluation: Optional[str] = None
    commentaires: Optional[str] = None
    ressource_urls: List[str] = []
    objectifs: List[int] = [] # objective ids

class ActivitySummary(BaseModel):
    id: int
    titre_activite: str
    chapitre_id: Optional[int] = None
    duree_minutes: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    hierarchy: HierarchyPath = HierarchyPath()

class ActivityResponse(ActivitySummary):
    description: Optional[str] = None
    role_enseignant: Optional[str] = None
    materiel: Optional[str] = None
    modalite_deroulement: Optional[str] = None
    modalite_evaluation: Optional[str] = None
    commentaires: Optional[str] = None
    ressource_urls: List[str] = []
    objectifs: List[ObjectifResponse] = []
