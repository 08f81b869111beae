from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from planipeda.schemas.curriculum_schema import HierarchyPath, ObjectifResponse
from planipeda.schemas.referentiel_schema import (
    CapaciteResponse, CompetenceResponse, ConnaissanceResponse, ModaliteResponse,
)

MediaPosition = Literal["left", "right", "center", "full"]

class ContentBlockData(BaseModel):
    order: Optional[int] = None # display order, list position when missing
    type: str = Field("text", example="text") # text, image, questions
    text_content_html: Optional[str] = None
    questions_html: Optional[str] = None
    media_url: Optional[str] = None
    media_alt_text: Optional[str] = None
    media_position: Optional[MediaPosition] = None

class EvaluationRequest(BaseModel):
    # Checked by the service so the user gets the form's own messages
    titre_evaluation: Optional[str] = Field(None, example="Contrôle n°1")
    chapitre_id: Optional[int] = None
    sequence_id: Optional[int] = None
    activite_id: Optional[int] = None

    type_evaluation: Optional[str] = Field(None, example="Formative")
    grille_correction: Optional[str] = None
    introduction_activite: Optional[str] = None
    consignes_specifiques: Optional[str] = None
    ressource_urls: List[str] = []
    ressources_eleve_urls: List[str] = []

    modalite_evaluation_ids: List[int] = []
    modalite_evaluation_autre_texte: Optional[str] = None
    objectifs: List[int] = []

    selected_competence_id: Optional[int] = None
    selected_general_competence_ids: List[int] = []
    selected_connaissance_ids: List[int] = []
    new_connaissance_text: Optional[str] = None
    selected_capacite_habilete_ids: List[int] = []

    contenu_blocs: List[ContentBlockData] = []

class ContentBlockResponse(BaseModel):
    id: int
    block_order: int
    block_type: str
    text_content_html: Optional[str] = None
    questions_html: Optional[str] = None
    media_url: Optional[str] = None
    media_alt_text: Optional[str] = None
    media_position: Optional[str] = None
    class Config:
        from_attributes = True

class LinkedCompetence(CompetenceResponse):
    resultat: Optional[str] = None

class LinkedCapacite(CapaciteResponse):
    resultat: Optional[str] = None

class ResultatData(BaseModel):
    id: int # competence or capacity id, already linked to the evaluation
    resultat: Optional[str] = Field(None, example="Acquis")

class ResultatsRequest(BaseModel):
    competences: List[ResultatData] = []
    capacites_habiletes: List[ResultatData] = []

class EvaluationSummary(BaseModel):
    id: int
    titre_evaluation: str
    type_evaluation: Optional[str] = None
    chapitre_id: Optional[int] = None
    sequence_id: Optional[int] = None
    activite_id: Optional[int] = None
    created_at: Optional[datetime] = None
    date_mise_a_jour: Optional[datetime] = None
    hierarchy: HierarchyPath = HierarchyPath()

class EvaluationResponse(EvaluationSummary):
    grille_correction: Optional[str] = None
    introduction_activite: Optional[str] = None
    consignes_specifiques: Optional[str] = None
    ressource_urls: List[str] = []
    ressources_eleve_urls: List[str] = []
    modalite_evaluation_autre_texte: Optional[str] = None

    objectifs: List[ObjectifResponse] = []
    competences: List[LinkedCompetence] = []
    connaissances: List[ConnaissanceResponse] = []
    modalites: List[ModaliteResponse] = []
    capacites_habiletes: List[LinkedCapacite] = []
    contenu_blocs: List[ContentBlockResponse] = []
