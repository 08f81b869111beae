from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, UniqueConstraint
from planipeda.database import Base
from planipeda.utils.time_utils import get_local_time

class Activite(Base):
    __tablename__ = "activites"

    id = Column(Integer, primary_key=True, index=True)
    chapitre_id = Column(Integer, ForeignKey("chapitres.id", ondelete="SET NULL"), nullable=True, index=True)

    titre_activite = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    role_enseignant = Column(Text, nullable=True)
    materiel = Column(Text, nullable=True)
    duree_minutes = Column(Integer, nullable=True)
    modalite_deroulement = Column(Text, nullable=True)
    modalite_evaluation = Column(Text, nullable=True)
    commentaires = Column(Text, nullable=True)
    ressource_urls = Column(JSON, nullable=True) # list of URLs

    created_at = Column(DateTime, default=get_local_time)
    updated_at = Column(DateTime, default=get_local_time, onupdate=get_local_time)

class ActiviteObjectif(Base):
    __tablename__ = "activite_objectifs"
    __table_args__ = (UniqueConstraint("activite_id", "objectif_id"),)

    id = Column(Integer, primary_key=True, index=True)
    activite_id = Column(Integer, ForeignKey("activites.id", ondelete="CASCADE"), nullable=False, index=True)
    objectif_id = Column(Integer, ForeignKey("objectifs.id", ondelete="CASCADE"), nullable=False)
