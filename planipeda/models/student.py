from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Float, ForeignKey
from planipeda.database import Base
from planipeda.utils.time_utils import get_local_time

class Classe(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)
    nom_classe = Column(String, nullable=False) # TC-3, 1BAC-SE-2, ...
    annee_scolaire = Column(String, nullable=True) # 2024-2025
    niveau_id = Column(Integer, ForeignKey("niveaux.id", ondelete="SET NULL"), nullable=True, index=True)
    option_id = Column(Integer, ForeignKey("options.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime, default=get_local_time)

class Eleve(Base):
    __tablename__ = "eleves"

    id = Column(Integer, primary_key=True, index=True)
    code_eleve = Column(String, unique=True, nullable=False, index=True) # Massar code
    nom = Column(String, nullable=False)
    prenom = Column(String, nullable=False)
    date_naissance = Column(Date, nullable=True)
    classe_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)

    created_at = Column(DateTime, default=get_local_time)

class NoteEleve(Base):
    """Continuous assessment grades, one row per student, each out of 20."""
    __tablename__ = "notes_eleves"

    id = Column(Integer, primary_key=True, index=True)
    eleve_id = Column(Integer, ForeignKey("eleves.id", ondelete="CASCADE"), unique=True, nullable=False)
    cc1 = Column(Float, nullable=True)
    cc2 = Column(Float, nullable=True)
    cc3 = Column(Float, nullable=True)
    c_act = Column(Float, nullable=True) # activités / participation

    updated_at = Column(DateTime, default=get_local_time, onupdate=get_local_time)

class AbsenceEleve(Base):
    __tablename__ = "absences_eleves"

    id = Column(Integer, primary_key=True, index=True)
    eleve_id = Column(Integer, ForeignKey("eleves.id", ondelete="CASCADE"), nullable=False, index=True)
    date_absence = Column(Date, nullable=False)
    heures = Column(Float, nullable=False)
    motif = Column(Text, nullable=True)

    created_at = Column(DateTime, default=get_local_time)
