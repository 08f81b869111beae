from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

ProgressionType = Literal["sequence", "activity", "evaluation"]

class ProgressionItem(BaseModel):
    id: Optional[str] = None # seq-<n>, act-<n>, eval-<n>
    type: ProgressionType
    sourceId: int
    ordre: Optional[int] = None
    chapficheId: Optional[int] = None
    titre: Optional[str] = None
    description: Optional[str] = None

class PlanChapitre(BaseModel):
    id: Optional[int] = None
    chapitreReferenceId: Optional[int] = None
    niveauId: Optional[int] = None
    optionId: Optional[int] = None
    uniteId: Optional[int] = None
    titreChapitre: Optional[str] = None
    objectifsGeneraux: Optional[str] = None
    objectifsReferencesIds: List[int] = []
    nomFichePlanification: Optional[str] = None
    statut: str = "Brouillon"
    createdBy: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    progressionItems: List[ProgressionItem] = []

class AddItemRequest(BaseModel):
    type: ProgressionType
    sourceId: int

class MoveItemRequest(BaseModel):
    # Drag and drop
    fromIndex: Optional[int] = None
    toIndex: Optional[int] = None
    # Arrow buttons
    itemId: Optional[str] = None
    direction: Optional[Literal["up", "down"]] = None

class FicheSummary(BaseModel):
    id: int
    nomFichePlanification: Optional[str] = None
    statut: str
    chapitreReferenceId: int
    titreChapitre: Optional[str] = None
    createdBy: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    itemCount: int = Field(0, description="Number of progression items")
