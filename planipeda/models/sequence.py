from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from planipeda.database import Base
from planipeda.utils.time_utils import get_local_time

class SequenceStatut:
    BROUILLON = "brouillon"
    VALIDEE = "validee"
    ARCHIVEE = "archivee"

    ALL = (BROUILLON, VALIDEE, ARCHIVEE)

class Sequence(Base):
    __tablename__ = "sequences"

    id = Column(Integer, primary_key=True, index=True)
    titre_sequence = Column(String, nullable=False)
    objectifs_specifiques = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    duree_estimee = Column(Integer, nullable=True) # hours
    prerequis = Column(Text, nullable=True)
    statut = Column(String, nullable=False, default=SequenceStatut.BROUILLON)
    chapitre_id = Column(Integer, ForeignKey("chapitres.id"), nullable=False, index=True)
    ordre = Column(Integer, nullable=True) # position inside the chapter

    created_at = Column(DateTime, default=get_local_time)
    updated_at = Column(DateTime, default=get_local_time, onupdate=get_local_time)

# Activities and evaluations share one numbering inside a sequence

class SequenceActivite(Base):
    __tablename__ = "sequence_activite"
    __table_args__ = (UniqueConstraint("sequence_id", "activite_id"),)

    id = Column(Integer, primary_key=True, index=True)
    sequence_id = Column(Integer, ForeignKey("sequences.id", ondelete="CASCADE"), nullable=False, index=True)
    activite_id = Column(Integer, ForeignKey("activites.id", ondelete="CASCADE"), nullable=False)
    ordre = Column(Integer, nullable=False)

class SequenceEvaluation(Base):
    __tablename__ = "sequence_evaluation"
    __table_args__ = (UniqueConstraint("sequence_id", "evaluation_id"),)

    id = Column(Integer, primary_key=True, index=True)
    sequence_id = Column(Integer, ForeignKey("sequences.id", ondelete="CASCADE"), nullable=False, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False)
    ordre = Column(Integer, nullable=False)
