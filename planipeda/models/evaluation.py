from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, UniqueConstraint
from planipeda.database import Base
from planipeda.utils.time_utils import get_local_time

class Evaluation(Base):
    __tablename__ = "evaluations"

    id = Column(Integer, primary_key=True, index=True)
    titre_evaluation = Column(String, nullable=False)

    # Optional anchors
    chapitre_id = Column(Integer, ForeignKey("chapitres.id", ondelete="SET NULL"), nullable=True, index=True)
    sequence_id = Column(Integer, ForeignKey("sequences.id", ondelete="SET NULL"), nullable=True, index=True)
    activite_id = Column(Integer, ForeignKey("activites.id", ondelete="SET NULL"), nullable=True, index=True)

    type_evaluation = Column(String, nullable=True) # Diagnostique, Formative, Sommative
    grille_correction = Column(Text, nullable=True)
    introduction_activite = Column(Text, nullable=False) # HTML
    consignes_specifiques = Column(Text, nullable=True)

    ressource_urls_json = Column(JSON, nullable=True) # enseignant resources
    ressources_eleve_urls = Column(JSON, nullable=True) # élève resources

    modalite_evaluation_autre_texte = Column(Text, nullable=True)

    created_at = Column(DateTime, default=get_local_time)
    date_mise_a_jour = Column(DateTime, default=get_local_time, onupdate=get_local_time)

# --- Many-to-many links, rewritten as a whole on every save ---

class EvaluationObjectif(Base):
    __tablename__ = "evaluation_objectifs"
    __table_args__ = (UniqueConstraint("evaluation_id", "objectif_id"),)

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    objectif_id = Column(Integer, ForeignKey("objectifs.id", ondelete="CASCADE"), nullable=False)

class EvaluationCompetence(Base):
    __tablename__ = "evaluation_competences"
    __table_args__ = (UniqueConstraint("evaluation_id", "competence_id"),)

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    competence_id = Column(Integer, ForeignKey("competences.id", ondelete="CASCADE"), nullable=False)
    resultat = Column(String, nullable=True)

class EvaluationConnaissance(Base):
    __tablename__ = "evaluation_connaissances"
    __table_args__ = (UniqueConstraint("evaluation_id", "connaissance_id"),)

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    connaissance_id = Column(Integer, ForeignKey("connaissances.id", ondelete="CASCADE"), nullable=False)

class EvaluationModalite(Base):
    __tablename__ = "evaluation_modalites"
    __table_args__ = (UniqueConstraint("evaluation_id", "modalite_id"),)

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    modalite_id = Column(Integer, ForeignKey("modalites.id", ondelete="CASCADE"), nullable=False)

class EvaluationCapaciteHabilete(Base):
    __tablename__ = "evaluation_capacite_habilete"
    __table_args__ = (UniqueConstraint("evaluation_id", "capacite_habilete_id"),)

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    capacite_habilete_id = Column(Integer, ForeignKey("capacites_habiletes.id", ondelete="CASCADE"), nullable=False)
    resultat = Column(String, nullable=True)

class EvaluationContentBlock(Base):
    __tablename__ = "evaluation_content_blocks"

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    block_order = Column(Integer, nullable=False)
    block_type = Column(String, nullable=False) # text, image, questions
    text_content_html = Column(Text, nullable=True)
    questions_html = Column(Text, nullable=True)
    media_url = Column(String, nullable=True)
    media_alt_text = Column(String, nullable=True)
    media_position = Column(String, nullable=True) # left, right, center, full
