from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from planipeda.schemas.curriculum_schema import HierarchyPath

ItemType = Literal["activity", "evaluation"]

class SequenceItemRef(BaseModel):
    type: ItemType
    id: int

class SequenceRequest(BaseModel):
    titre_sequence: Optional[str] = Field(None, example="Séquence 1 : la combustion")
    chapitre_id: Optional[int] = None
    objectifs_specifiques: Optional[str] = None
    description: Optional[str] = None
    duree_estimee: Optional[int] = None
    prerequis: Optional[str] = None
    statut: str = "brouillon"
    ordre: Optional[int] = None
    items: List[SequenceItemRef] = [] # display order

class SequenceItem(BaseModel):
    id: int
    type: ItemType
    titre: str
    order_in_sequence: int
    link_id: int
    description: Optional[str] = None
    objectifs: List[str] = [] # activities
    type_evaluation: Optional[str] = None
    introduction_activite: Optional[str] = None
    consignes_specifiques: Optional[str] = None
    connaissances: List[str] = []
    capacites_evaluees: List[str] = []

class SequenceSummary(BaseModel):
    id: int
    titre_sequence: str
    statut: str
    chapitre_id: int
    ordre: Optional[int] = None
    duree_estimee: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    hierarchy: HierarchyPath = HierarchyPath()

class SequenceResponse(SequenceSummary):
    objectifs_specifiques: Optional[str] = None
    description: Optional[str] = None
    prerequis: Optional[str] = None
    items: List[SequenceItem] = []
