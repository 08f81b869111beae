from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from planipeda.database import Base
from planipeda.utils.time_utils import get_local_time

class StatutFiche:
    BROUILLON = "Brouillon"
    FINALISE = "Finalisé"
    ARCHIVE = "Archivé"

    ALL = (BROUILLON, FINALISE, ARCHIVE)

class Chapfiche(Base):
    """Planning sheet of a chapter: an ordered progression of sequences, activities and evaluations."""
    __tablename__ = "chapfiches"

    id = Column(Integer, primary_key=True, index=True)
    chapitre_id = Column(Integer, ForeignKey("chapitres.id"), nullable=False, index=True)
    nom_fiche_planification = Column(String, nullable=True)
    statut = Column(String, nullable=False, default=StatutFiche.BROUILLON)
    created_by = Column(String, nullable=True)

    date_creation = Column(DateTime, default=get_local_time)
    updated_at = Column(DateTime, default=get_local_time, onupdate=get_local_time)

# Progression links: the three tables share one `ordre` numbering per fiche

class ChapficheSequence(Base):
    __tablename__ = "chapfiche_sequence"

    chapfiche_id = Column(Integer, ForeignKey("chapfiches.id", ondelete="CASCADE"), primary_key=True)
    sequence_id = Column(Integer, ForeignKey("sequences.id", ondelete="CASCADE"), primary_key=True)
    ordre = Column(Integer, nullable=False)
    date_ajout = Column(DateTime, default=get_local_time)

class ChapficheActivite(Base):
    __tablename__ = "chapfiche_activite"

    chapfiche_id = Column(Integer, ForeignKey("chapfiches.id", ondelete="CASCADE"), primary_key=True)
    activite_id = Column(Integer, ForeignKey("activites.id", ondelete="CASCADE"), primary_key=True)
    ordre = Column(Integer, nullable=False)
    date_ajout = Column(DateTime, default=get_local_time)

class ChapficheEvaluation(Base):
    __tablename__ = "chapfiche_evaluation"

    chapfiche_id = Column(Integer, ForeignKey("chapfiches.id", ondelete="CASCADE"), primary_key=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), primary_key=True)
    ordre = Column(Integer, nullable=False)
    date_ajout = Column(DateTime, default=get_local_time)
