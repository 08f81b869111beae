from pydantic import BaseModel, Field
from typing import List, Optional

# --- Requests ---

class NiveauRequest(BaseModel):
    nom_niveau: str = Field(..., example="Tronc commun")

class OptionRequest(BaseModel):
    nom_option: str = Field(..., example="Sciences expérimentales")
    niveau_id: int

class UniteRequest(BaseModel):
    titre_unite: str = Field(..., example="La matière et ses transformations")
    option_id: int

class ChapitreRequest(BaseModel):
    titre_chapitre: str = Field(..., example="Les réactions chimiques")
    unite_id: int

class ObjectifRequest(BaseModel):
    chapitre_id: int
    objectif_type: Optional[str] = Field(None, example="Savoir-faire")
    description_objectif: str

class ImportChapitresRequest(BaseModel):
    contenu: str = Field(..., example="Chapitre 1\nChapitre 2")

# --- Responses ---

class NiveauResponse(BaseModel):
    id: int
    nom_niveau: str
    class Config:
        from_attributes = True

class OptionResponse(BaseModel):
    id: int
    nom_option: str
    niveau_id: int
    class Config:
        from_attributes = True

class UniteResponse(BaseModel):
    id: int
    titre_unite: str
    option_id: int
    class Config:
        from_attributes = True

class ChapitreResponse(BaseModel):
    id: int
    titre_chapitre: str
    unite_id: int
    class Config:
        from_attributes = True

class ObjectifResponse(BaseModel):
    id: int
    chapitre_id: int
    objectif_type: Optional[str] = None
    description_objectif: str
    class Config:
        from_attributes = True

class Selection(BaseModel):
    niveau_id: Optional[int] = None
    option_id: Optional[int] = None
    unite_id: Optional[int] = None
    chapitre_id: Optional[int] = None

class SelectorResponse(BaseModel):
    selection: Selection
    niveaux: List[NiveauResponse] = []
    options: List[OptionResponse] = []
    unites: List[UniteResponse] = []
    chapitres: List[ChapitreResponse] = []
    objectifs: List[ObjectifResponse] = []

class ChapitrePath(BaseModel):
    chapitre: ChapitreResponse
    unite: UniteResponse
    option: OptionResponse
    niveau: NiveauResponse
    objectifs: List[ObjectifResponse] = []

# Nested tree

class ChapitreNode(ChapitreResponse):
    objectifs: List[ObjectifResponse] = []

class UniteNode(UniteResponse):
    chapitres: List[ChapitreNode] = []

class OptionNode(OptionResponse):
    unites: List[UniteNode] = []

class NiveauNode(NiveauResponse):
    options: List[OptionNode] = []

class HierarchyPath(BaseModel):
    """Names of the chapter's ancestors, shown in editor headers and lists."""
    niveau_id: Optional[int] = None
    nom_niveau: Optional[str] = None
    option_id: Optional[int] = None
    nom_option: Optional[str] = None
    unite_id: Optional[int] = None
    titre_unite: Optional[str] = None
    chapitre_id: Optional[int] = None
    titre_chapitre: Optional[str] = None
